"""
User repository for database operations.
Handles user lookups, follow edges, and atomic counter updates.
"""
from typing import Iterable, List, Optional

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import Follow, User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for user database operations."""

    def __init__(self, db: AsyncSession):
        """Initialize user repository."""
        super().__init__(User, db)

    async def get_by_username(self, username: str) -> Optional[User]:
        """
        Get user by username.

        Example:
            ```python
            user = await user_repo.get_by_username("alice")
            ```
        """
        result = await self.db.execute(
            select(User)
            .where(User.username == username)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_usernames(self, usernames: Iterable[str]) -> List[User]:
        """Get every existing user among ``usernames``."""
        usernames = list(usernames)
        if not usernames:
            return []

        result = await self.db.execute(
            select(User).where(User.username.in_(usernames))
        )
        return list(result.scalars().all())

    async def increment_counters(self, user_id: str, **deltas: int) -> None:
        """
        Atomically add ``deltas`` to counter columns.

        Example:
            ```python
            await user_repo.increment_counters(user_id, followers_count=1)
            ```
        """
        values = {
            name: getattr(User, name) + delta
            for name, delta in deltas.items()
        }
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()

    async def search(self, query: str, limit: int = 20, offset: int = 0) -> List[User]:
        """Case-insensitive search over username and display name."""
        pattern = f"%{query}%"
        result = await self.db.execute(
            select(User)
            .where(
                or_(
                    User.username.ilike(pattern),
                    User.display_name.ilike(pattern)
                )
            )
            .order_by(User.followers_count.desc(), User.username)
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def suggest_for(self, user_id: str, limit: int = 5) -> List[User]:
        """Users ``user_id`` does not follow yet, most followed first."""
        followed = select(Follow.following_id).where(Follow.follower_id == user_id)
        result = await self.db.execute(
            select(User)
            .where(and_(User.id != user_id, User.id.not_in(followed)))
            .order_by(User.followers_count.desc(), User.username)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())


class FollowRepository(BaseRepository[Follow]):
    """Repository for follow edges."""

    def __init__(self, db: AsyncSession):
        super().__init__(Follow, db)

    async def get_follow(self, follower_id: str, following_id: str) -> Optional[Follow]:
        result = await self.db.execute(
            select(Follow).where(
                and_(
                    Follow.follower_id == follower_id,
                    Follow.following_id == following_id
                )
            )
        )
        return result.scalar_one_or_none()

    async def remove(self, follower_id: str, following_id: str) -> bool:
        """Delete a follow edge. Returns False if it did not exist."""
        result = await self.db.execute(
            delete(Follow).where(
                and_(
                    Follow.follower_id == follower_id,
                    Follow.following_id == following_id
                )
            )
        )
        await self.db.flush()
        return result.rowcount > 0

    async def list_followers(self, user_id: str, limit: int = 20, offset: int = 0) -> List[User]:
        """Users following ``user_id``, most recent first."""
        result = await self.db.execute(
            select(User)
            .join(Follow, Follow.follower_id == User.id)
            .where(Follow.following_id == user_id)
            .order_by(Follow.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def list_following(self, user_id: str, limit: int = 20, offset: int = 0) -> List[User]:
        """Users ``user_id`` follows, most recent first."""
        result = await self.db.execute(
            select(User)
            .join(Follow, Follow.following_id == User.id)
            .where(Follow.follower_id == user_id)
            .order_by(Follow.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())
