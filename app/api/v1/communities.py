"""
Community API routes.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings
from app.core.database import get_db
from app.dependencies import get_current_user, get_current_user_optional, get_pagination_params
from app.models.user import User
from app.schemas.community import (
    CommunityCategoriesResponse,
    CommunityCreate,
    CommunityDiscoverResponse,
    CommunityListResponse,
    CommunityMembershipResponse,
    CommunityResponse,
)
from app.schemas.tweet import TweetListResponse
from app.services.community_service import CommunityService

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


@router.post(
    "/",
    response_model=CommunityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a community"
)
@limiter.limit("5/minute")
async def create_community(
    request: Request,
    data: CommunityCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a community; the creator becomes its admin."""
    service = CommunityService(db)
    return await service.create_community(
        creator_id=current_user.id,
        name=data.name,
        category=data.category,
        description=data.description,
        is_private=data.is_private
    )


@router.get("/", response_model=CommunityListResponse)
async def list_communities(
    category: Optional[str] = None,
    q: Optional[str] = Query(None, description="Name or description fragment"),
    pagination: dict = Depends(get_pagination_params),
    db: AsyncSession = Depends(get_db)
):
    service = CommunityService(db)
    return await service.list_communities(
        category=category,
        query=q,
        page=pagination["page"],
        limit=pagination["limit"]
    )


@router.get("/my-communities", response_model=CommunityListResponse)
async def list_my_communities(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = CommunityService(db)
    return await service.list_user_communities(current_user.id)


@router.get("/discover", response_model=CommunityDiscoverResponse)
async def discover_communities(
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Public communities the caller has not joined, largest first."""
    service = CommunityService(db)
    return await service.discover_communities(current_user.id, limit=limit)


@router.get("/categories", response_model=CommunityCategoriesResponse)
async def list_categories(db: AsyncSession = Depends(get_db)):
    """Number of communities and members per category."""
    service = CommunityService(db)
    return await service.get_categories()


@router.get("/{community_id}", response_model=CommunityResponse)
async def get_community(
    community_id: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    service = CommunityService(db)
    return await service.get_community(community_id, current_user.id if current_user else None)


@router.post("/{community_id}/join", response_model=CommunityMembershipResponse)
async def join_community(
    community_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = CommunityService(db)
    return await service.join_community(community_id, current_user.id)


@router.delete("/{community_id}/leave", response_model=CommunityMembershipResponse)
async def leave_community(
    community_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = CommunityService(db)
    return await service.leave_community(community_id, current_user.id)


@router.get("/{community_id}/posts", response_model=TweetListResponse)
async def list_community_posts(
    community_id: str,
    sort: str = Query("newest", pattern="^(newest|popular)$"),
    pagination: dict = Depends(get_pagination_params),
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    """
    Community posts, newest first or most liked with ``sort=popular``.

    Private communities require membership.
    """
    service = CommunityService(db)
    return await service.list_community_tweets(
        community_id,
        viewer_id=current_user.id if current_user else None,
        page=pagination["page"],
        limit=pagination["limit"],
        sort=sort
    )
