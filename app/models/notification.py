"""
Notification model.

A notification records one interaction (like, follow, ...) surfaced to its
recipient. Self-notifications are never stored, and identical
(recipient, sender, type, tweet) notifications are suppressed inside a
rolling window by the notification service.
"""
import enum
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin


class NotificationType(str, enum.Enum):
    """Enum for notification types."""
    LIKE = "like"
    RETWEET = "retweet"
    REPLY = "reply"
    FOLLOW = "follow"
    MENTION = "mention"
    QUOTE = "quote"


class Notification(Base, UUIDMixin, TimestampMixin):
    """Notification delivered to ``recipient_id`` because of ``sender_id``."""

    __tablename__ = "notifications"

    recipient_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="User who receives the notification"
    )

    sender_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="User whose action triggered the notification"
    )

    type: Mapped[NotificationType] = mapped_column(
        SQLEnum(NotificationType, name="notification_type", native_enum=False),
        nullable=False
    )

    message: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Human readable text, e.g. 'liked your tweet'"
    )

    tweet_id: Mapped[str | None] = mapped_column(
        String(255),
        ForeignKey("tweets.id", ondelete="CASCADE"),
        nullable=True,
        doc="Subject tweet (null for follows)"
    )

    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint("recipient_id <> sender_id", name="ck_notifications_not_self"),
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, type={self.type}, recipient_id={self.recipient_id})>"


# Indexes for performance
Index("idx_notifications_recipient_created", Notification.recipient_id, Notification.created_at)
Index(
    "idx_notifications_dedup",
    Notification.recipient_id,
    Notification.sender_id,
    Notification.type,
    Notification.tweet_id,
)
