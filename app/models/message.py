"""
Message, MessageRead, and MessageReaction models.

Read receipts and reactions live in their own tables keyed by
(message, user) so a receipt or reaction is added and removed without
rewriting the message row.
"""
import enum
from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin
from app.utils.datetime_utils import utc_now


class MessageType(str, enum.Enum):
    """Enum for message types."""
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    GIF = "gif"
    FILE = "file"
    TWEET_SHARE = "tweet_share"


class Message(Base, UUIDMixin, TimestampMixin):
    """
    Message model.

    ``is_deleted`` is the tombstone hiding a message from everyone; per-user
    hiding lives in ``user_deleted_messages``. Rows are never removed.
    """

    __tablename__ = "messages"

    # References
    conversation_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Conversation this message belongs to"
    )

    sender_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="User who sent the message"
    )

    # Message content
    content: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        doc="Message text (max 1000 chars, null for media-only messages)"
    )

    message_type: Mapped[MessageType] = mapped_column(
        SQLEnum(MessageType, name="message_type", native_enum=False),
        default=MessageType.TEXT,
        nullable=False
    )

    media_json: Mapped[list] = mapped_column(
        JSON,
        default=list,
        nullable=False,
        doc="Ordered attachments: [{type, url, metadata}]"
    )

    shared_tweet_id: Mapped[str | None] = mapped_column(
        String(255),
        ForeignKey("tweets.id", ondelete="SET NULL"),
        nullable=True,
        doc="Tweet shared into the conversation"
    )

    # Threading
    reply_to_id: Mapped[str | None] = mapped_column(
        String(255),
        ForeignKey("messages.id", ondelete="SET NULL"),
        nullable=True,
        doc="ID of message this is replying to"
    )

    # Sequence number for deterministic ordering
    sequence_number: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        doc="Monotonically increasing per conversation (tie-breaker for created_at)"
    )

    # Edit state
    is_edited: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    edited_at: Mapped[datetime | None] = mapped_column(nullable=True)
    original_content: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        doc="Content before the first edit"
    )

    # Tombstone
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("conversation_id", "sequence_number", name="uq_conversation_sequence"),
    )

    def __repr__(self) -> str:
        content_preview = self.content[:50] if self.content else f"<{self.message_type}>"
        return f"<Message(id={self.id}, type={self.message_type}, content='{content_preview}')>"


class MessageRead(Base):
    """Read receipt: ``user_id`` has read ``message_id``."""

    __tablename__ = "message_reads"

    message_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("messages.id", ondelete="CASCADE"),
        primary_key=True
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True
    )

    read_at: Mapped[datetime] = mapped_column(
        default=utc_now,
        server_default=func.now(),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<MessageRead(message_id={self.message_id}, user_id={self.user_id})>"


class MessageReaction(Base, UUIDMixin):
    """
    MessageReaction model - emoji reactions to messages.

    Each user can react with several emojis, but only once per emoji.
    """

    __tablename__ = "message_reactions"

    message_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("messages.id", ondelete="CASCADE"),
        nullable=False,
        doc="Message being reacted to"
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="User who reacted"
    )

    emoji: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Emoji character(s)"
    )

    created_at: Mapped[datetime] = mapped_column(
        default=utc_now,
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        UniqueConstraint("message_id", "user_id", "emoji", name="uq_message_reactions_user_emoji"),
    )

    def __repr__(self) -> str:
        return f"<MessageReaction(message_id={self.message_id}, user_id={self.user_id}, emoji={self.emoji})>"


# Indexes for performance
Index(
    "idx_messages_conversation_created",
    Message.conversation_id,
    Message.created_at,
    Message.sequence_number,
)
Index("idx_message_reads_user", MessageRead.user_id)
Index("idx_message_reactions_message", MessageReaction.message_id)
