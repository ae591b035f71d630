"""
Repository layer exports.
Provides database access layer for the application.
"""
from app.repositories.base import BaseRepository
from app.repositories.community_repo import CommunityRepository
from app.repositories.conversation_repo import ConversationRepository
from app.repositories.message_repo import (
    MessageReactionRepository,
    MessageReadRepository,
    MessageRepository,
    UserDeletedMessageRepository,
)
from app.repositories.notification_repo import NotificationRepository
from app.repositories.tweet_repo import (
    TweetLikeRepository,
    TweetRepository,
    TweetRetweetRepository,
)
from app.repositories.user_repo import FollowRepository, UserRepository

__all__ = [
    "BaseRepository",
    "CommunityRepository",
    "ConversationRepository",
    "FollowRepository",
    "MessageReactionRepository",
    "MessageReadRepository",
    "MessageRepository",
    "NotificationRepository",
    "TweetLikeRepository",
    "TweetRepository",
    "TweetRetweetRepository",
    "UserDeletedMessageRepository",
    "UserRepository",
]
