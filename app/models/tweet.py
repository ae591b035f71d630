"""
Tweet, TweetLike, and TweetRetweet models.

Likes and retweets are relation rows keyed by (tweet, user); the matching
counters on the tweet are updated atomically alongside them.
"""
from datetime import datetime

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin
from app.utils.datetime_utils import utc_now


class Tweet(Base, UUIDMixin, TimestampMixin):
    """Tweet model. Deletion is soft (``is_deleted``)."""

    __tablename__ = "tweets"

    author_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Tweet text (max 280 chars)"
    )

    media_json: Mapped[list] = mapped_column(
        JSON,
        default=list,
        nullable=False,
        doc="Attached media URLs"
    )

    reply_to_id: Mapped[str | None] = mapped_column(
        String(255),
        ForeignKey("tweets.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    quote_tweet_id: Mapped[str | None] = mapped_column(
        String(255),
        ForeignKey("tweets.id", ondelete="SET NULL"),
        nullable=True
    )

    community_id: Mapped[str | None] = mapped_column(
        String(255),
        ForeignKey("communities.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    likes_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    retweets_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    replies_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<Tweet(id={self.id}, author_id={self.author_id})>"


class TweetLike(Base):
    __tablename__ = "tweet_likes"

    tweet_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("tweets.id", ondelete="CASCADE"),
        primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(default=utc_now, server_default=func.now(), nullable=False)


class TweetRetweet(Base):
    __tablename__ = "tweet_retweets"

    tweet_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("tweets.id", ondelete="CASCADE"),
        primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(default=utc_now, server_default=func.now(), nullable=False)


Index("idx_tweet_likes_user", TweetLike.user_id)
Index("idx_tweet_retweets_user", TweetRetweet.user_id)
