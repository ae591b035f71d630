"""
Pydantic schemas for community requests and responses.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.community import COMMUNITY_CATEGORIES, CommunityRole
from app.schemas.common import UTCDateTime


class CommunityCreate(BaseModel):
    """Schema for creating a community."""

    name: str = Field(..., min_length=2, max_length=50, pattern=r"^[a-zA-Z0-9\s_-]+$")
    description: str = Field("", max_length=500)
    category: str
    is_private: bool = Field(False, alias="isPrivate")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        if v not in COMMUNITY_CATEGORIES:
            raise ValueError(f"Category must be one of: {', '.join(COMMUNITY_CATEGORIES)}")
        return v

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class CommunityResponse(BaseModel):
    id: str
    name: str
    description: str = ""
    category: str
    creator_id: str = Field(serialization_alias="creatorId")
    members_count: int = Field(0, serialization_alias="membersCount")
    is_private: bool = Field(False, serialization_alias="isPrivate")
    created_at: UTCDateTime = Field(serialization_alias="createdAt")
    role: Optional[CommunityRole] = Field(None, description="Viewer's role, if a member")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class CommunityListResponse(BaseModel):
    communities: List[CommunityResponse]
    pagination: Dict[str, Any]


class CommunityDiscoverResponse(BaseModel):
    communities: List[CommunityResponse]


class CategoryStats(BaseModel):
    """Community and member totals for one category."""

    name: str
    community_count: int = Field(serialization_alias="communityCount")
    total_members: int = Field(serialization_alias="totalMembers")

    model_config = ConfigDict(populate_by_name=True)


class CommunityCategoriesResponse(BaseModel):
    categories: List[CategoryStats]


class CommunityMembershipResponse(BaseModel):
    community_id: str = Field(serialization_alias="communityId")
    is_member: bool = Field(serialization_alias="isMember")
    members_count: int = Field(serialization_alias="membersCount")

    model_config = ConfigDict(populate_by_name=True)
