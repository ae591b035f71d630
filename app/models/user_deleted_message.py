"""
UserDeletedMessage model - tracks per-user message deletions.

"Delete for me" adds a row here and hides the message only from that user.
Once every participant of the conversation has a row for a message, the
message itself is tombstoned (``Message.is_deleted``).
"""
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.utils.datetime_utils import utc_now


class UserDeletedMessage(Base):
    """Message hidden for one user."""

    __tablename__ = "user_deleted_messages"

    # Composite primary key
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        doc="User who deleted the message for themselves"
    )

    message_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("messages.id", ondelete="CASCADE"),
        primary_key=True,
        doc="Message that was deleted for this user"
    )

    deleted_at: Mapped[datetime] = mapped_column(
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        doc="When the user deleted this message"
    )

    def __repr__(self) -> str:
        return f"<UserDeletedMessage(user_id={self.user_id}, message_id={self.message_id})>"


Index("idx_user_deleted_messages_message", UserDeletedMessage.message_id)
