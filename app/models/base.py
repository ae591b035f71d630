"""
Base model classes and mixins for SQLAlchemy ORM.
Provides common functionality for all database models.
"""
import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.utils.datetime_utils import utc_now


class Base(AsyncAttrs, DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Includes AsyncAttrs mixin for async relationship access.
    All datetimes are stored timezone-aware (UTC).
    """

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""

    # Set in Python so ordering keeps microsecond resolution on every backend
    created_at: Mapped[datetime] = mapped_column(
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        index=True,
        doc="Timestamp when the record was created"
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        onupdate=utc_now,
        nullable=True,
        doc="Timestamp when the record was last updated"
    )


class UUIDMixin:
    """Mixin for string ID primary key (UUID4 text)."""

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        default=lambda: generate_uuid(),
        doc="String ID primary key"
    )


def generate_uuid() -> str:
    """Generate a new UUID v4 string."""
    return str(uuid.uuid4())
