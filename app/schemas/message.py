"""
Pydantic schemas for message requests and responses.
Handles validation for message-related API endpoints.
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.message import MessageType
from app.schemas.common import UTCDateTime
from app.schemas.user import UserPublic


# ============================================================================
# Request Schemas
# ============================================================================

class MediaAttachment(BaseModel):
    """One attachment of a message."""

    type: Literal["image", "video", "gif", "file"]
    url: str = Field(..., min_length=1, max_length=1000)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class MessageCreate(BaseModel):
    """
    Schema for sending a message.

    At least one of content, media or shared tweet is required; the service
    enforces that and the content length.
    """

    content: Optional[str] = Field(None, description="Message text (max 1000 chars)")
    message_type: MessageType = Field(default=MessageType.TEXT, alias="messageType")
    media: List[MediaAttachment] = Field(default_factory=list, max_length=10)
    shared_tweet_id: Optional[str] = Field(None, alias="sharedTweetId")
    reply_to_id: Optional[str] = Field(None, alias="replyToId")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "content": "hi",
                "messageType": "text",
                "media": [],
                "sharedTweetId": None,
                "replyToId": None
            }
        }
    )


class MessageUpdate(BaseModel):
    """Schema for editing a message."""

    content: str = Field(..., min_length=1, description="Updated message content")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Ensure content is not empty or whitespace."""
        if len(v.strip()) == 0:
            raise ValueError("Content cannot be empty or whitespace only")
        return v


class MessageReactionToggle(BaseModel):
    """Schema for toggling a reaction on a message."""

    emoji: str = Field(..., min_length=1, max_length=16, description="Emoji reaction")

    @field_validator("emoji")
    @classmethod
    def validate_emoji(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Emoji cannot be empty")
        return v.strip()

    model_config = ConfigDict(json_schema_extra={"example": {"emoji": "👍"}})


# ============================================================================
# Response Schemas
# ============================================================================

class MessageReactionResponse(BaseModel):
    """Schema for message reaction response."""

    user_id: str = Field(serialization_alias="userId")
    emoji: str
    created_at: UTCDateTime = Field(serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class MessageResponse(BaseModel):
    """Schema for message response with read receipts and reactions."""

    id: str
    conversation_id: str = Field(serialization_alias="conversationId")
    sender_id: str = Field(serialization_alias="senderId")
    sender: Optional[UserPublic] = None
    content: Optional[str] = None
    message_type: MessageType = Field(serialization_alias="messageType")
    media: List[Dict[str, Any]] = Field(default_factory=list)
    shared_tweet_id: Optional[str] = Field(None, serialization_alias="sharedTweetId")
    reply_to_id: Optional[str] = Field(None, serialization_alias="replyToId")
    sequence_number: int = Field(serialization_alias="sequenceNumber")
    is_edited: bool = Field(False, serialization_alias="isEdited")
    edited_at: Optional[UTCDateTime] = Field(None, serialization_alias="editedAt")
    is_deleted: bool = Field(False, serialization_alias="isDeleted")
    deleted_at: Optional[UTCDateTime] = Field(None, serialization_alias="deletedAt")
    created_at: UTCDateTime = Field(serialization_alias="createdAt")
    read_by: List[str] = Field(default_factory=list, serialization_alias="readBy")
    reactions: List[MessageReactionResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class MessageListResponse(BaseModel):
    """Schema for paginated message list response (chronological order)."""

    messages: List[MessageResponse]
    pagination: Dict[str, Any]


class ReactionToggleResponse(BaseModel):
    """Which action happened and the resulting reaction set."""

    action: Literal["add", "remove"]
    reactions: List[MessageReactionResponse]


class MessageDeleteResponse(BaseModel):
    """Response for message deletion."""

    message_id: str = Field(serialization_alias="messageId")
    scope: Literal["self", "everyone"]
    is_deleted: bool = Field(serialization_alias="isDeleted")

    model_config = ConfigDict(populate_by_name=True)
