"""
User API routes.
Provides profile, follow graph and user search endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings
from app.core.database import get_db
from app.dependencies import get_current_user, get_current_user_optional, get_pagination_params
from app.models.user import User
from app.schemas.user import (
    FollowToggleResponse,
    UserListResponse,
    UserProfileResponse,
    UserSuggestionsResponse,
    UserUpdate,
)
from app.services.user_service import UserService

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


@router.get("/me", response_model=UserProfileResponse)
async def get_current_user_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the authenticated user's own profile."""
    service = UserService(db)
    return await service.get_profile(current_user.username)


@router.put("/me", response_model=UserProfileResponse)
async def update_current_user_profile(
    updates: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update the authenticated user's profile.

    Only provided fields are updated.
    """
    service = UserService(db)
    return await service.update_profile(current_user.id, **updates.model_dump(exclude_unset=True))


@router.get("/search", response_model=UserListResponse)
async def search_users(
    q: str = Query(..., min_length=1, description="Username or display name fragment"),
    pagination: dict = Depends(get_pagination_params),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = UserService(db)
    return await service.search_users(q, page=pagination["page"], limit=pagination["limit"])


@router.get("/suggestions", response_model=UserSuggestionsResponse)
async def get_suggestions(
    limit: int = Query(5, ge=1, le=20),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Accounts the caller does not follow yet, most followed first."""
    service = UserService(db)
    return await service.get_suggestions(current_user.id, limit=limit)


@router.get("/{username}", response_model=UserProfileResponse)
async def get_user_profile(
    username: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    """Get a public profile; ``isFollowing`` is set for authenticated viewers."""
    service = UserService(db)
    return await service.get_profile(username, viewer_id=current_user.id if current_user else None)


@router.post("/{username}/follow", response_model=FollowToggleResponse)
@limiter.limit("60/minute")
async def toggle_follow(
    request: Request,
    username: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Follow the user, or unfollow when already following."""
    service = UserService(db)
    return await service.toggle_follow(current_user.id, username)


@router.get("/{username}/followers", response_model=UserListResponse)
async def list_followers(
    username: str,
    pagination: dict = Depends(get_pagination_params),
    db: AsyncSession = Depends(get_db)
):
    service = UserService(db)
    return await service.list_followers(username, page=pagination["page"], limit=pagination["limit"])


@router.get("/{username}/following", response_model=UserListResponse)
async def list_following(
    username: str,
    pagination: dict = Depends(get_pagination_params),
    db: AsyncSession = Depends(get_db)
):
    service = UserService(db)
    return await service.list_following(username, page=pagination["page"], limit=pagination["limit"])
