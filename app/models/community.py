"""
Community and CommunityMember models.
"""
import enum
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin
from app.utils.datetime_utils import utc_now


class CommunityRole(str, enum.Enum):
    """Enum for community member roles."""
    MEMBER = "member"
    MODERATOR = "moderator"
    ADMIN = "admin"


COMMUNITY_CATEGORIES = (
    "Technology", "Sports", "Entertainment", "News", "Gaming",
    "Business", "Science", "Education", "Health", "Politics",
    "Art", "Music", "Travel", "Food", "Fashion", "Other",
)


class Community(Base, UUIDMixin, TimestampMixin):
    """Community model. The creator joins as admin on creation."""

    __tablename__ = "communities"

    name: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False
    )

    description: Mapped[str] = mapped_column(
        Text,
        default="",
        nullable=False
    )

    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True
    )

    creator_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    members_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    is_private: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<Community(id={self.id}, name={self.name})>"


class CommunityMember(Base):
    """Membership row with the member's role."""

    __tablename__ = "community_members"

    community_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("communities.id", ondelete="CASCADE"),
        primary_key=True
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True
    )

    role: Mapped[CommunityRole] = mapped_column(
        SQLEnum(CommunityRole, name="community_role", native_enum=False),
        default=CommunityRole.MEMBER,
        nullable=False
    )

    joined_at: Mapped[datetime] = mapped_column(default=utc_now, server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<CommunityMember(community_id={self.community_id}, "
            f"user_id={self.user_id}, role={self.role})>"
        )


Index("idx_community_members_user", CommunityMember.user_id)
