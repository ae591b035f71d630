"""
SQLAlchemy models for the Chirp social server.

All models must be imported here for Alembic auto-generation to work.
"""

# Import Base first
from app.models.base import Base, TimestampMixin, UUIDMixin

# Import all models (order matters for foreign keys)
from app.models.user import User, Follow
from app.models.community import Community, CommunityMember, CommunityRole, COMMUNITY_CATEGORIES
from app.models.tweet import Tweet, TweetLike, TweetRetweet
from app.models.conversation import Conversation, ConversationParticipant
from app.models.message import Message, MessageRead, MessageReaction, MessageType
from app.models.user_deleted_message import UserDeletedMessage
from app.models.notification import Notification, NotificationType

# Export all models and enums
__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Users
    "User",
    "Follow",
    # Communities
    "Community",
    "CommunityMember",
    "CommunityRole",
    "COMMUNITY_CATEGORIES",
    # Tweets
    "Tweet",
    "TweetLike",
    "TweetRetweet",
    # Conversations
    "Conversation",
    "ConversationParticipant",
    # Messages
    "Message",
    "MessageRead",
    "MessageReaction",
    "MessageType",
    "UserDeletedMessage",
    # Notifications
    "Notification",
    "NotificationType",
]
