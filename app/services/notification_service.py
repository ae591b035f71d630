"""
Notification service for business logic.
Handles deduplicated notification creation and the recipient inbox.
"""
from typing import Any, Dict, List, Optional, Tuple, Union
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.cache import cache
from app.core.exceptions import ForbiddenError, NotFoundError, ValidationFailedError
from app.core.websocket import connection_manager
from app.models.notification import Notification, NotificationType
from app.repositories.notification_repo import NotificationRepository
from app.schemas.common import to_payload
from app.schemas.user import UserPublic
from app.services.user_service import UserService
from app.utils.datetime_utils import utc_now, window_start
from app.utils.helpers import build_pagination, calculate_time_ago, generate_cache_key

logger = logging.getLogger(__name__)

NOTIFICATION_MESSAGES = {
    NotificationType.LIKE: "liked your tweet",
    NotificationType.RETWEET: "retweeted your tweet",
    NotificationType.REPLY: "replied to your tweet",
    NotificationType.FOLLOW: "started following you",
    NotificationType.MENTION: "mentioned you in a tweet",
    NotificationType.QUOTE: "quoted your tweet",
}

DEFAULT_NOTIFICATION_MESSAGE = "interacted with your content"

# Realtime event pushed alongside each notification type
NOTIFICATION_EVENTS = {
    NotificationType.LIKE: "new-like",
    NotificationType.RETWEET: "new-retweet",
    NotificationType.REPLY: "new-reply",
    NotificationType.FOLLOW: "new-follower",
    NotificationType.MENTION: "new-mention",
    NotificationType.QUOTE: "new-quote",
}


def notification_message(type: Union[NotificationType, str]) -> str:
    """Human readable text for a notification type."""
    try:
        return NOTIFICATION_MESSAGES[NotificationType(type)]
    except ValueError:
        return DEFAULT_NOTIFICATION_MESSAGE


class NotificationService:
    """Service for notification-related business logic."""

    def __init__(self, db: AsyncSession):
        """Initialize notification service."""
        self.db = db
        self.notification_repo = NotificationRepository(db)
        self.user_service = UserService(db)
        self.ws_manager = connection_manager

    async def _get_or_create(
        self,
        recipient_id: str,
        sender_id: str,
        type: NotificationType,
        tweet_id: Optional[str]
    ) -> Tuple[Notification, bool]:
        since = window_start(settings.notification_dedup_hours)
        lock_key = generate_cache_key(
            "notification", recipient_id, sender_id, type.value, tweet_id or "-"
        )

        async with cache.lock(lock_key):
            existing = await self.notification_repo.find_recent_duplicate(
                recipient_id=recipient_id,
                sender_id=sender_id,
                type=type,
                tweet_id=tweet_id,
                since=since
            )
            if existing:
                logger.debug(f"Suppressed duplicate {type.value} notification {existing.id}")
                return existing, False

            notification = await self.notification_repo.create(
                recipient_id=recipient_id,
                sender_id=sender_id,
                type=type,
                message=notification_message(type),
                tweet_id=tweet_id,
                is_read=False
            )
            await self.db.commit()

        logger.info(f"Created {type.value} notification {notification.id} for {recipient_id}")
        return notification, True

    async def create_notification(
        self,
        recipient_id: str,
        sender_id: str,
        type: Union[NotificationType, str],
        tweet_id: Optional[str] = None
    ) -> Optional[Notification]:
        """
        Create a notification unless it would notify the sender about
        themselves or duplicate a recent one.

        A notification with the same recipient, sender, type and tweet
        created inside the dedup window is returned unchanged instead of
        inserting a new row. The window check runs under a Redis lock when
        Redis is available; without it two concurrent calls may both insert.

        Args:
            recipient_id: User being notified
            sender_id: User who acted
            type: Notification type
            tweet_id: Subject tweet, if any

        Returns:
            The new or existing notification, or None for self-notifications

        Raises:
            ValidationFailedError: Unknown notification type
        """
        if recipient_id == sender_id:
            return None

        try:
            type = NotificationType(type)
        except ValueError:
            raise ValidationFailedError(f"Unknown notification type: {type}")

        notification, _ = await self._get_or_create(recipient_id, sender_id, type, tweet_id)
        return notification

    async def notify(
        self,
        recipient_id: str,
        sender_id: str,
        type: NotificationType,
        tweet_id: Optional[str] = None
    ) -> Optional[Notification]:
        """
        Create a notification and push the matching realtime event.

        The event only goes out when a new row was stored, so duplicates
        suppressed by the window are silent.
        """
        if recipient_id == sender_id:
            return None

        notification, created = await self._get_or_create(recipient_id, sender_id, type, tweet_id)
        if created:
            actor = await self.user_service.get_projection(sender_id)
            payload: Dict[str, Any] = {
                "actor": to_payload(UserPublic, actor) if actor else None,
            }
            if tweet_id:
                payload["tweetId"] = tweet_id
            await self.ws_manager.notify_user(recipient_id, NOTIFICATION_EVENTS[type], payload)

        return notification

    async def _serialize(self, notifications: List[Notification]) -> List[Dict[str, Any]]:
        senders = await self.user_service.get_projections(n.sender_id for n in notifications)
        return [
            {
                "id": n.id,
                "recipient_id": n.recipient_id,
                "sender_id": n.sender_id,
                "sender": senders.get(n.sender_id),
                "type": n.type,
                "message": n.message,
                "tweet_id": n.tweet_id,
                "is_read": n.is_read,
                "read_at": n.read_at,
                "created_at": n.created_at,
                "time_ago": calculate_time_ago(n.created_at),
            }
            for n in notifications
        ]

    async def list_notifications(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False
    ) -> Dict[str, Any]:
        """
        Get a user's notifications, newest first.

        Returns:
            Dict with notifications, unread count and pagination
        """
        notifications = await self.notification_repo.list_for_recipient(
            user_id,
            limit=limit,
            offset=(page - 1) * limit,
            unread_only=unread_only
        )

        unread_count = await self.notification_repo.count(recipient_id=user_id, is_read=False)
        total = unread_count if unread_only else await self.notification_repo.count(recipient_id=user_id)

        return {
            "notifications": await self._serialize(notifications),
            "unread_count": unread_count,
            "pagination": build_pagination(page, limit, total),
        }

    async def _get_owned(self, notification_id: str, user_id: str) -> Notification:
        notification = await self.notification_repo.get(notification_id)
        if not notification:
            raise NotFoundError("Notification not found")
        if notification.recipient_id != user_id:
            raise ForbiddenError("Not authorized to access this notification")
        return notification

    async def mark_as_read(self, notification_id: str, user_id: str) -> Dict[str, Any]:
        """Mark one notification read. Marking an already read one is a no-op."""
        notification = await self._get_owned(notification_id, user_id)

        if not notification.is_read:
            notification = await self.notification_repo.update(
                notification_id,
                is_read=True,
                read_at=utc_now()
            )
            await self.db.commit()

        return (await self._serialize([notification]))[0]

    async def mark_all_as_read(self, user_id: str) -> int:
        """
        Mark every unread notification of a user as read.

        Returns:
            Number of notifications that flipped to read
        """
        updated = await self.notification_repo.update_where(
            Notification.recipient_id == user_id,
            Notification.is_read.is_(False),
            is_read=True,
            read_at=utc_now()
        )
        await self.db.commit()

        logger.info(f"Marked {updated} notifications read for {user_id}")
        return updated

    async def delete_notification(self, notification_id: str, user_id: str) -> None:
        await self._get_owned(notification_id, user_id)
        await self.notification_repo.delete(notification_id)
        await self.db.commit()

    async def get_counts(self, user_id: str) -> Dict[str, int]:
        return {
            "unread_count": await self.notification_repo.count(recipient_id=user_id, is_read=False),
            "total_count": await self.notification_repo.count(recipient_id=user_id),
        }
