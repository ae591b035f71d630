"""
Conversation and ConversationParticipant models.

Handles both direct messages and group chats. A direct conversation is
identified by its canonical participant key (the two user ids sorted and
joined with ``:``); the unique constraint on that key guarantees at most one
direct conversation per unordered pair.
"""
from datetime import datetime

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, Index, Integer, String, false, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin
from app.utils.datetime_utils import utc_now


class Conversation(Base, UUIDMixin, TimestampMixin):
    """
    Conversation model for direct messages and group chats.

    Conversations are never hard-deleted; each participant can archive
    one out of their own inbox instead.
    """

    __tablename__ = "conversations"

    is_group: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        doc="True for group chats"
    )

    # Group metadata (null for direct conversations)
    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Group name"
    )

    avatar_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        doc="Group avatar URL"
    )

    participant_key: Mapped[str | None] = mapped_column(
        String(600),
        unique=True,
        nullable=True,
        doc="Sorted 'a:b' user id pair for direct conversations, null for groups"
    )

    created_by: Mapped[str | None] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        doc="User who created the conversation"
    )

    last_message_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Most recent message (no FK: messages reference conversations)"
    )

    last_activity_at: Mapped[datetime] = mapped_column(
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        doc="Bumped on every new message; conversation list sort key"
    )

    last_sequence: Mapped[int] = mapped_column(
        BigInteger,
        default=0,
        server_default="0",
        nullable=False,
        doc="Highest message sequence number issued in this conversation"
    )

    def __repr__(self) -> str:
        return f"<Conversation(id={self.id}, is_group={self.is_group}, name={self.name})>"


class ConversationParticipant(Base):
    """
    Participant row - membership plus the participant's unread counter.

    One row per participant, created with ``unread_count = 0`` when the
    participant joins. Counters are only ever changed with targeted
    ``UPDATE ... SET unread_count = unread_count + 1`` statements.
    """

    __tablename__ = "conversation_participants"

    # Composite primary key
    conversation_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        primary_key=True,
        doc="Conversation ID"
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        doc="User ID"
    )

    unread_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
        doc="Messages from others not yet read by this participant"
    )

    is_archived: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
        doc="Hidden from this participant's inbox until a new message arrives"
    )

    joined_at: Mapped[datetime] = mapped_column(
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        doc="When the user joined the conversation"
    )

    __table_args__ = (
        CheckConstraint("unread_count >= 0", name="ck_participants_unread_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<ConversationParticipant(conversation_id={self.conversation_id}, "
            f"user_id={self.user_id}, unread_count={self.unread_count})>"
        )


# Indexes for performance
Index("idx_conversation_participants_user", ConversationParticipant.user_id)
Index("idx_conversations_last_activity", Conversation.last_activity_at)
