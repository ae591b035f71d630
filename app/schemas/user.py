"""
Pydantic schemas for user requests and responses.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import UTCDateTime


# ============================================================================
# Request Schemas
# ============================================================================

class UserUpdate(BaseModel):
    """Schema for updating the current user's profile."""

    display_name: Optional[str] = Field(None, min_length=1, max_length=50, alias="displayName")
    bio: Optional[str] = Field(None, max_length=160)
    profile_image_url: Optional[str] = Field(None, max_length=500, alias="profileImageUrl")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Display name cannot be empty or whitespace only")
        return v.strip() if v else v


# ============================================================================
# Response Schemas
# ============================================================================

class UserPublic(BaseModel):
    """Minimal user projection embedded in other responses."""

    id: str
    username: str
    display_name: str = Field(serialization_alias="displayName")
    profile_image_url: Optional[str] = Field(None, serialization_alias="profileImageUrl")
    is_verified: bool = Field(False, serialization_alias="isVerified")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class UserProfileResponse(UserPublic):
    """Full public profile."""

    bio: Optional[str] = None
    followers_count: int = Field(0, serialization_alias="followersCount")
    following_count: int = Field(0, serialization_alias="followingCount")
    tweets_count: int = Field(0, serialization_alias="tweetsCount")
    created_at: UTCDateTime = Field(serialization_alias="createdAt")
    is_following: Optional[bool] = Field(None, serialization_alias="isFollowing")


class UserListResponse(BaseModel):
    users: List[UserPublic]
    pagination: Dict[str, Any]


class UserSuggestion(UserPublic):
    """Account suggested to follow."""

    bio: Optional[str] = None
    followers_count: int = Field(0, serialization_alias="followersCount")


class UserSuggestionsResponse(BaseModel):
    suggestions: List[UserSuggestion]


class FollowToggleResponse(BaseModel):
    """Result of a follow/unfollow toggle."""

    is_following: bool = Field(serialization_alias="isFollowing")
    followers_count: int = Field(serialization_alias="followersCount")
    following_count: int = Field(serialization_alias="followingCount")

    model_config = ConfigDict(populate_by_name=True)
