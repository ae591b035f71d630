"""
Pydantic schemas for notification responses.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.notification import NotificationType
from app.schemas.common import UTCDateTime
from app.schemas.user import UserPublic


class NotificationResponse(BaseModel):
    """Notification with sender projection."""

    id: str
    recipient_id: str = Field(serialization_alias="recipientId")
    sender_id: str = Field(serialization_alias="senderId")
    sender: Optional[UserPublic] = None
    type: NotificationType
    message: str
    tweet_id: Optional[str] = Field(None, serialization_alias="tweetId")
    is_read: bool = Field(False, serialization_alias="isRead")
    read_at: Optional[UTCDateTime] = Field(None, serialization_alias="readAt")
    created_at: UTCDateTime = Field(serialization_alias="createdAt")
    time_ago: Optional[str] = Field(None, serialization_alias="timeAgo")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int = Field(serialization_alias="unreadCount")
    pagination: Dict[str, Any]

    model_config = ConfigDict(populate_by_name=True)


class NotificationCountsResponse(BaseModel):
    unread_count: int = Field(serialization_alias="unreadCount")
    total_count: int = Field(serialization_alias="totalCount")

    model_config = ConfigDict(populate_by_name=True)


class MarkAllReadResponse(BaseModel):
    updated_count: int = Field(serialization_alias="updatedCount")

    model_config = ConfigDict(populate_by_name=True)
