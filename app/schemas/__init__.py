"""
Pydantic schema exports.
Provides request/response models for API endpoints.
"""
from app.schemas.community import (
    CategoryStats,
    CommunityCategoriesResponse,
    CommunityCreate,
    CommunityDiscoverResponse,
    CommunityListResponse,
    CommunityMembershipResponse,
    CommunityResponse,
)
from app.schemas.conversation import (
    ConversationArchiveUpdate,
    ConversationListResponse,
    ConversationResponse,
    ConversationStart,
    GroupConversationCreate,
    MarkReadResponse,
)
from app.schemas.message import (
    MediaAttachment,
    MessageCreate,
    MessageDeleteResponse,
    MessageListResponse,
    MessageReactionResponse,
    MessageReactionToggle,
    MessageResponse,
    MessageUpdate,
    ReactionToggleResponse,
)
from app.schemas.notification import (
    MarkAllReadResponse,
    NotificationCountsResponse,
    NotificationListResponse,
    NotificationResponse,
)
from app.schemas.tweet import (
    LikeToggleResponse,
    RetweetToggleResponse,
    TweetCreate,
    TweetListResponse,
    TweetResponse,
)
from app.schemas.user import (
    FollowToggleResponse,
    UserListResponse,
    UserProfileResponse,
    UserPublic,
    UserSuggestion,
    UserSuggestionsResponse,
    UserUpdate,
)

__all__ = [
    # Communities
    "CategoryStats",
    "CommunityCategoriesResponse",
    "CommunityCreate",
    "CommunityDiscoverResponse",
    "CommunityListResponse",
    "CommunityMembershipResponse",
    "CommunityResponse",
    # Conversations
    "ConversationArchiveUpdate",
    "ConversationListResponse",
    "ConversationResponse",
    "ConversationStart",
    "GroupConversationCreate",
    "MarkReadResponse",
    # Messages
    "MediaAttachment",
    "MessageCreate",
    "MessageDeleteResponse",
    "MessageListResponse",
    "MessageReactionResponse",
    "MessageReactionToggle",
    "MessageResponse",
    "MessageUpdate",
    "ReactionToggleResponse",
    # Notifications
    "MarkAllReadResponse",
    "NotificationCountsResponse",
    "NotificationListResponse",
    "NotificationResponse",
    # Tweets
    "LikeToggleResponse",
    "RetweetToggleResponse",
    "TweetCreate",
    "TweetListResponse",
    "TweetResponse",
    # Users
    "FollowToggleResponse",
    "UserListResponse",
    "UserProfileResponse",
    "UserPublic",
    "UserSuggestion",
    "UserSuggestionsResponse",
    "UserUpdate",
]
