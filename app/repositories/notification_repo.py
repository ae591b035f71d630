"""
Notification repository for database operations.
Handles the dedup lookup and recipient-side listing.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification, NotificationType
from app.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Repository for notification database operations."""

    def __init__(self, db: AsyncSession):
        """Initialize notification repository."""
        super().__init__(Notification, db)

    async def find_recent_duplicate(
        self,
        recipient_id: str,
        sender_id: str,
        type: NotificationType,
        tweet_id: Optional[str],
        since: datetime
    ) -> Optional[Notification]:
        """
        Find a notification with the same key created at or after ``since``.

        Args:
            recipient_id: Recipient user ID
            sender_id: Sender user ID
            type: Notification type
            tweet_id: Subject tweet (None matches only notifications without one)
            since: Start of the dedup window

        Returns:
            Most recent matching notification or None
        """
        tweet_clause = (
            Notification.tweet_id.is_(None)
            if tweet_id is None
            else Notification.tweet_id == tweet_id
        )
        result = await self.db.execute(
            select(Notification)
            .where(
                and_(
                    Notification.recipient_id == recipient_id,
                    Notification.sender_id == sender_id,
                    Notification.type == type,
                    tweet_clause,
                    Notification.created_at >= since
                )
            )
            .order_by(desc(Notification.created_at))
            .limit(1)
        )
        return result.scalars().first()

    async def list_for_recipient(
        self,
        recipient_id: str,
        limit: int = 20,
        offset: int = 0,
        unread_only: bool = False
    ) -> List[Notification]:
        """Get a recipient's notifications, newest first."""
        query = select(Notification).where(Notification.recipient_id == recipient_id)

        if unread_only:
            query = query.where(Notification.is_read.is_(False))

        result = await self.db.execute(
            query.order_by(desc(Notification.created_at), desc(Notification.id))
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())
