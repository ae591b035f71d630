"""
User service for business logic.
Handles user projections (cached), profiles, and the follow graph.
"""
import logging
from typing import Any, Dict, Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import (
    cache_user_projection,
    get_cached_user_projection,
    invalidate_user_cache,
)
from app.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from app.models.notification import NotificationType
from app.models.user import Follow, User
from app.repositories.user_repo import FollowRepository, UserRepository
from app.utils.helpers import build_pagination

logger = logging.getLogger(__name__)


def project_user(user: User) -> Dict[str, Any]:
    """Minimal public projection embedded in messages, tweets and events."""
    return {
        "id": user.id,
        "username": user.username,
        "display_name": user.display_name,
        "profile_image_url": user.profile_image_url,
        "is_verified": user.is_verified,
    }


class UserService:
    """Service for user-related business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)
        self.follow_repo = FollowRepository(db)

    async def get_projection(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a user's public projection, served from Redis when cached.

        Returns:
            Projection dict or None if the user does not exist
        """
        cached = await get_cached_user_projection(user_id)
        if cached:
            return cached

        user = await self.user_repo.get(user_id)
        if user is None:
            return None

        projection = project_user(user)
        await cache_user_projection(user_id, projection)
        return projection

    async def get_projections(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """Get projections for several users, keyed by id (missing users skipped)."""
        projections: Dict[str, Dict[str, Any]] = {}
        missing = []
        for user_id in dict.fromkeys(user_ids):
            cached = await get_cached_user_projection(user_id)
            if cached:
                projections[user_id] = cached
            else:
                missing.append(user_id)

        for user in await self.user_repo.get_many(missing):
            projection = project_user(user)
            projections[user.id] = projection
            await cache_user_projection(user.id, projection)

        return projections

    async def get_user_or_404(self, username: str) -> User:
        user = await self.user_repo.get_by_username(username)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def get_profile(self, username: str, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Get a public profile.

        ``is_following`` is filled in when a viewer is given.
        """
        user = await self.get_user_or_404(username)

        profile = {
            **project_user(user),
            "bio": user.bio,
            "followers_count": user.followers_count,
            "following_count": user.following_count,
            "tweets_count": user.tweets_count,
            "created_at": user.created_at,
        }
        if viewer_id and viewer_id != user.id:
            profile["is_following"] = await self.follow_repo.get_follow(viewer_id, user.id) is not None

        return profile

    async def update_profile(self, user_id: str, **fields: Any) -> Dict[str, Any]:
        """Update editable profile fields and drop the cached projection."""
        updates = {key: value for key, value in fields.items() if value is not None}
        if not updates:
            raise ValidationFailedError("No valid fields to update")

        user = await self.user_repo.update(user_id, **updates)
        if user is None:
            raise NotFoundError("User not found")

        await self.db.commit()
        await invalidate_user_cache(user_id)
        return await self.get_profile(user.username)

    async def toggle_follow(self, follower_id: str, username: str) -> Dict[str, Any]:
        """
        Follow ``username``, or unfollow when already following.

        Counters on both users move with atomic increments. A new follow
        notifies the target (``follow`` notification plus ``new-follower``).

        Raises:
            NotFoundError: Target user does not exist
            ValidationFailedError: Following yourself
        """
        from app.services.notification_service import NotificationService

        target = await self.get_user_or_404(username)
        if target.id == follower_id:
            raise ValidationFailedError("You cannot follow yourself")

        existing = await self.follow_repo.get_follow(follower_id, target.id)

        if existing:
            await self.follow_repo.remove(follower_id, target.id)
            await self.user_repo.increment_counters(target.id, followers_count=-1)
            await self.user_repo.increment_counters(follower_id, following_count=-1)
        else:
            try:
                self.db.add(Follow(follower_id=follower_id, following_id=target.id))
                await self.db.flush()
            except IntegrityError:
                await self.db.rollback()
                raise ConflictError("Already following this user")
            await self.user_repo.increment_counters(target.id, followers_count=1)
            await self.user_repo.increment_counters(follower_id, following_count=1)

        await self.db.commit()

        if not existing:
            await NotificationService(self.db).notify(
                recipient_id=target.id,
                sender_id=follower_id,
                type=NotificationType.FOLLOW
            )

        refreshed_target = await self.user_repo.get(target.id)
        follower = await self.user_repo.get(follower_id)

        logger.info(f"User {follower_id} {'unfollowed' if existing else 'followed'} {target.id}")

        return {
            "is_following": not existing,
            "followers_count": refreshed_target.followers_count,
            "following_count": follower.following_count,
        }

    async def list_followers(self, username: str, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        user = await self.get_user_or_404(username)
        users = await self.follow_repo.list_followers(user.id, limit=limit, offset=(page - 1) * limit)
        return {
            "users": [project_user(u) for u in users],
            "pagination": build_pagination(page, limit, user.followers_count),
        }

    async def list_following(self, username: str, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        user = await self.get_user_or_404(username)
        users = await self.follow_repo.list_following(user.id, limit=limit, offset=(page - 1) * limit)
        return {
            "users": [project_user(u) for u in users],
            "pagination": build_pagination(page, limit, user.following_count),
        }

    async def search_users(self, query: str, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        query = query.strip().replace("%", "").replace("_", "")
        if not query:
            raise ValidationFailedError("Search query cannot be empty")

        users = await self.user_repo.search(query, limit=limit + 1, offset=(page - 1) * limit)
        has_next = len(users) > limit
        return {
            "users": [project_user(u) for u in users[:limit]],
            "pagination": {"currentPage": page, "hasNext": has_next, "hasPrev": page > 1},
        }

    async def get_suggestions(self, user_id: str, limit: int = 5) -> Dict[str, Any]:
        """Accounts to follow: everyone the user does not follow yet, most followed first."""
        users = await self.user_repo.suggest_for(user_id, limit=limit)
        return {
            "suggestions": [
                {**project_user(u), "bio": u.bio, "followers_count": u.followers_count}
                for u in users
            ],
        }
