"""
Service layer exports.
Provides business logic for the application.
"""
from app.services.message_service import MessageService
from app.services.conversation_service import ConversationService
from app.services.user_service import UserService
from app.services.notification_service import NotificationService
from app.services.tweet_service import TweetService
from app.services.community_service import CommunityService

__all__ = [
    "MessageService",
    "ConversationService",
    "UserService",
    "NotificationService",
    "TweetService",
    "CommunityService",
]
