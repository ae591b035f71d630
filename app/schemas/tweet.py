"""
Pydantic schemas for tweet requests and responses.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import UTCDateTime
from app.schemas.user import UserPublic


# ============================================================================
# Request Schemas
# ============================================================================

class TweetCreate(BaseModel):
    """Schema for posting a tweet, reply, or quote."""

    content: str = Field(..., min_length=1, description="Tweet text (max 280 chars)")
    media_urls: List[str] = Field(default_factory=list, max_length=4, alias="mediaUrls")
    reply_to_id: Optional[str] = Field(None, alias="replyToId")
    quote_tweet_id: Optional[str] = Field(None, alias="quoteTweetId")
    community_id: Optional[str] = Field(None, alias="communityId")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "content": "Hello @bob!",
                "mediaUrls": [],
                "replyToId": None,
                "quoteTweetId": None,
                "communityId": None
            }
        }
    )

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Content cannot be empty or whitespace only")
        return v


# ============================================================================
# Response Schemas
# ============================================================================

class TweetResponse(BaseModel):
    """Tweet with author projection and viewer-specific flags."""

    id: str
    author_id: str = Field(serialization_alias="authorId")
    author: Optional[UserPublic] = None
    content: str
    media_urls: List[str] = Field(default_factory=list, serialization_alias="mediaUrls")
    reply_to_id: Optional[str] = Field(None, serialization_alias="replyToId")
    quote_tweet_id: Optional[str] = Field(None, serialization_alias="quoteTweetId")
    community_id: Optional[str] = Field(None, serialization_alias="communityId")
    likes_count: int = Field(0, serialization_alias="likesCount")
    retweets_count: int = Field(0, serialization_alias="retweetsCount")
    replies_count: int = Field(0, serialization_alias="repliesCount")
    is_liked: bool = Field(False, serialization_alias="isLiked")
    is_retweeted: bool = Field(False, serialization_alias="isRetweeted")
    created_at: UTCDateTime = Field(serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class TweetListResponse(BaseModel):
    tweets: List[TweetResponse]
    pagination: Dict[str, Any]


class LikeToggleResponse(BaseModel):
    is_liked: bool = Field(serialization_alias="isLiked")
    likes_count: int = Field(serialization_alias="likesCount")

    model_config = ConfigDict(populate_by_name=True)


class RetweetToggleResponse(BaseModel):
    is_retweeted: bool = Field(serialization_alias="isRetweeted")
    retweets_count: int = Field(serialization_alias="retweetsCount")

    model_config = ConfigDict(populate_by_name=True)
