"""
Tweet repository for database operations.
Handles tweets, like/retweet relation rows, and atomic counters.
"""
from typing import Iterable, List, Optional, Set, Type

from sqlalchemy import and_, delete, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.community import Community, CommunityMember
from app.models.tweet import Tweet, TweetLike, TweetRetweet
from app.repositories.base import BaseRepository


class TweetRepository(BaseRepository[Tweet]):
    """Repository for tweet database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(Tweet, db)

    async def get_active(self, tweet_id: str) -> Optional[Tweet]:
        """Get a tweet unless it is soft-deleted."""
        tweet = await self.get(tweet_id)
        if tweet is None or tweet.is_deleted:
            return None
        return tweet

    async def increment(self, tweet_id: str, **deltas: int) -> None:
        """
        Atomically add ``deltas`` to counter columns.

        Example:
            ```python
            await tweet_repo.increment(tweet_id, likes_count=-1)
            ```
        """
        values = {name: getattr(Tweet, name) + delta for name, delta in deltas.items()}
        await self.db.execute(
            update(Tweet)
            .where(Tweet.id == tweet_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()

    def _visible_to(self, viewer_id: Optional[str]):
        """Tweets outside communities, or in public communities or ones the viewer belongs to."""
        readable = Community.is_private.is_(False)
        if viewer_id is not None:
            readable = or_(
                readable,
                Community.id.in_(
                    select(CommunityMember.community_id).where(CommunityMember.user_id == viewer_id)
                )
            )
        return or_(
            Tweet.community_id.is_(None),
            Tweet.community_id.in_(select(Community.id).where(readable))
        )

    def _timeline_query(
        self,
        author_id: Optional[str],
        community_id: Optional[str],
        viewer_id: Optional[str]
    ):
        query = select(Tweet).where(
            and_(Tweet.is_deleted.is_(False), self._visible_to(viewer_id))
        )
        if author_id is not None:
            query = query.where(Tweet.author_id == author_id)
        if community_id is not None:
            query = query.where(Tweet.community_id == community_id)
        return query

    async def list_timeline(
        self,
        limit: int = 20,
        offset: int = 0,
        author_id: Optional[str] = None,
        community_id: Optional[str] = None,
        viewer_id: Optional[str] = None,
        sort: str = "newest"
    ) -> List[Tweet]:
        """
        Get non-deleted tweets ``viewer_id`` may read, optionally scoped.

        ``sort="popular"`` orders by likes then retweets; anything else is
        newest first.
        """
        order = [desc(Tweet.created_at), desc(Tweet.id)]
        if sort == "popular":
            order = [desc(Tweet.likes_count), desc(Tweet.retweets_count), *order]

        result = await self.db.execute(
            self._timeline_query(author_id, community_id, viewer_id)
            .order_by(*order)
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def count_timeline(
        self,
        author_id: Optional[str] = None,
        community_id: Optional[str] = None,
        viewer_id: Optional[str] = None
    ) -> int:
        subquery = self._timeline_query(author_id, community_id, viewer_id).subquery()
        result = await self.db.execute(select(func.count()).select_from(subquery))
        return result.scalar() or 0


class _TweetActionRepository(BaseRepository):
    """Shared operations for (tweet, user) relation tables."""

    async def has_acted(self, tweet_id: str, user_id: str) -> bool:
        result = await self.db.execute(
            select(func.count())
            .select_from(self.model)
            .where(
                and_(
                    self.model.tweet_id == tweet_id,
                    self.model.user_id == user_id
                )
            )
        )
        return (result.scalar() or 0) > 0

    async def add(self, tweet_id: str, user_id: str) -> None:
        self.db.add(self.model(tweet_id=tweet_id, user_id=user_id))
        await self.db.flush()

    async def remove(self, tweet_id: str, user_id: str) -> bool:
        result = await self.db.execute(
            delete(self.model).where(
                and_(
                    self.model.tweet_id == tweet_id,
                    self.model.user_id == user_id
                )
            )
        )
        await self.db.flush()
        return result.rowcount > 0

    async def acted_tweet_ids(self, tweet_ids: Iterable[str], user_id: str) -> Set[str]:
        """Subset of ``tweet_ids`` the user has acted on."""
        tweet_ids = list(tweet_ids)
        if not tweet_ids:
            return set()

        result = await self.db.execute(
            select(self.model.tweet_id).where(
                and_(
                    self.model.tweet_id.in_(tweet_ids),
                    self.model.user_id == user_id
                )
            )
        )
        return set(result.scalars().all())


class TweetLikeRepository(_TweetActionRepository):
    def __init__(self, db: AsyncSession):
        super().__init__(TweetLike, db)


class TweetRetweetRepository(_TweetActionRepository):
    def __init__(self, db: AsyncSession):
        super().__init__(TweetRetweet, db)
