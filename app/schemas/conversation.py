"""
Pydantic schemas for conversation requests and responses.
Handles validation for conversation-related API endpoints.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import UTCDateTime
from app.schemas.message import MessageResponse
from app.schemas.user import UserPublic


# ============================================================================
# Request Schemas
# ============================================================================

class ConversationStart(BaseModel):
    """Start (or reopen) a direct conversation with a user."""

    username: str = Field(..., min_length=1, max_length=50)

    model_config = ConfigDict(json_schema_extra={"example": {"username": "bob"}})


class GroupConversationCreate(BaseModel):
    """Schema for creating a group conversation."""

    name: str = Field(..., min_length=1, max_length=255)
    member_ids: List[str] = Field(
        ...,
        min_length=2,
        max_length=100,
        alias="memberIds",
        description="Other members (the creator is added automatically)"
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name cannot be empty or whitespace only")
        return v.strip()

    @field_validator("member_ids")
    @classmethod
    def validate_member_ids(cls, v: List[str]) -> List[str]:
        if len(v) != len(set(v)):
            raise ValueError("Duplicate member IDs are not allowed")
        return v


class ConversationArchiveUpdate(BaseModel):
    archived: bool = True


# ============================================================================
# Response Schemas
# ============================================================================

class ConversationResponse(BaseModel):
    """Conversation as seen by one participant."""

    id: str
    is_group: bool = Field(serialization_alias="isGroup")
    name: Optional[str] = None
    avatar_url: Optional[str] = Field(None, serialization_alias="avatarUrl")
    participants: List[UserPublic] = Field(default_factory=list)
    last_message: Optional[MessageResponse] = Field(None, serialization_alias="lastMessage")
    last_activity_at: UTCDateTime = Field(serialization_alias="lastActivityAt")
    unread_count: int = Field(0, serialization_alias="unreadCount")
    unread_counts: Dict[str, int] = Field(default_factory=dict, serialization_alias="unreadCounts")
    is_archived: bool = Field(False, serialization_alias="isArchived")
    created_at: UTCDateTime = Field(serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ConversationListResponse(BaseModel):
    conversations: List[ConversationResponse]
    pagination: Dict[str, Any]


class MarkReadResponse(BaseModel):
    """Result of marking a conversation read."""

    marked_count: int = Field(serialization_alias="markedCount")
    unread_count: int = Field(0, serialization_alias="unreadCount")

    model_config = ConfigDict(populate_by_name=True)
