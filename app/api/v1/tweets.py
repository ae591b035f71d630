"""
Tweet API routes.
Provides posting, timeline, like and retweet endpoints.
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
from app.schemas.tweet import (
    LikeToggleResponse,
    RetweetToggleResponse,
    TweetCreate,
    TweetListResponse,
    TweetResponse,
)
from app.services.tweet_service import TweetService

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


@router.post(
    "/",
    response_model=TweetResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a tweet, reply or quote"
)
@limiter.limit(settings.tweet_rate_limit)
async def create_tweet(
    request: Request,
    tweet_data: TweetCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Post a tweet.

    - **content**: Tweet text (max 280 chars); ``@username`` mentions notify those users
    - **mediaUrls**: Up to four media URLs
    - **replyToId**: Parent tweet for replies
    - **quoteTweetId**: Quoted tweet
    - **communityId**: Community to post in (membership required)
    """
    service = TweetService(db)
    return await service.create_tweet(
        author_id=current_user.id,
        content=tweet_data.content,
        media=tweet_data.media_urls,
        reply_to_id=tweet_data.reply_to_id,
        quote_tweet_id=tweet_data.quote_tweet_id,
        community_id=tweet_data.community_id
    )


@router.get("/", response_model=TweetListResponse, summary="Timeline")
async def list_timeline(
    username: Optional[str] = Query(None, description="Only tweets by this user"),
    pagination: dict = Depends(get_pagination_params),
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    service = TweetService(db)
    return await service.list_timeline(
        viewer_id=current_user.id if current_user else None,
        page=pagination["page"],
        limit=pagination["limit"],
        author_username=username
    )


@router.get("/{tweet_id}", response_model=TweetResponse)
async def get_tweet(
    tweet_id: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    service = TweetService(db)
    return await service.get_tweet(tweet_id, viewer_id=current_user.id if current_user else None)


@router.delete("/{tweet_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tweet(
    tweet_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = TweetService(db)
    await service.delete_tweet(tweet_id, current_user.id)


@router.post("/{tweet_id}/like", response_model=LikeToggleResponse)
@limiter.limit("120/minute")
async def toggle_like(
    request: Request,
    tweet_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Like the tweet, or unlike it when already liked."""
    service = TweetService(db)
    return await service.toggle_like(tweet_id, current_user.id)


@router.post("/{tweet_id}/retweet", response_model=RetweetToggleResponse)
@limiter.limit("60/minute")
async def toggle_retweet(
    request: Request,
    tweet_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Retweet the tweet, or undo the retweet."""
    service = TweetService(db)
    return await service.toggle_retweet(tweet_id, current_user.id)
