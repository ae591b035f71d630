"""
User and Follow models.

Counters (followers, following, tweets) are authoritative columns updated
with atomic increments when the relation changes.
"""
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin
from app.utils.datetime_utils import utc_now


class User(Base, UUIDMixin, TimestampMixin):
    """
    User model.

    Identity is established upstream; this service receives a verified JWT
    whose subject is ``User.id``.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        doc="Unique handle used in @mentions"
    )

    display_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Name shown next to the handle"
    )

    bio: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        doc="Short profile description"
    )

    profile_image_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        doc="Avatar URL"
    )

    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        doc="Verified badge"
    )

    followers_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False
    )

    following_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False
    )

    tweets_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("followers_count >= 0", name="ck_users_followers_count"),
        CheckConstraint("following_count >= 0", name="ck_users_following_count"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"


class Follow(Base):
    """Directed follow edge: follower_id follows following_id."""

    __tablename__ = "follows"

    follower_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True
    )

    following_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True
    )

    created_at: Mapped[datetime] = mapped_column(
        default=utc_now,
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("follower_id <> following_id", name="ck_follows_not_self"),
    )

    def __repr__(self) -> str:
        return f"<Follow(follower_id={self.follower_id}, following_id={self.following_id})>"


Index("idx_follows_following", Follow.following_id)
