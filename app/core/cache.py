"""
Redis cache management.
Provides connection pooling, helper functions for caching operations and
best-effort distributed locks for check-then-act flows.

Redis is optional: when it is not configured or unreachable every helper
degrades to a no-op and callers fall back to the database.
"""
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from redis import asyncio as aioredis
from redis.exceptions import LockError, RedisError

from app.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    """Redis cache manager with connection pooling."""

    def __init__(self):
        """Initialize Redis connection pool."""
        self.redis: Optional[aioredis.Redis] = None

    async def connect(self) -> None:
        """Establish connection to Redis."""
        if not settings.redis_url:
            logger.info("No Redis URL provided - running without Redis cache")
            self.redis = None
            return

        try:
            self.redis = aioredis.from_url(
                settings.redis_url,
                password=settings.redis_password or None,
                encoding="utf-8",
                decode_responses=True,
                max_connections=50,
            )
            await self.redis.ping()
            logger.info("Connected to Redis successfully")
        except (RedisError, OSError) as e:
            logger.warning(f"Could not connect to Redis, running without cache: {e}")
            self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        if not self.redis:
            return None

        value = await self.redis.get(key)
        if value:
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value
        return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None
    ) -> bool:
        """
        Set value in cache with optional TTL.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds

        Returns:
            True if successful
        """
        if not self.redis:
            return False

        if isinstance(value, (dict, list)):
            value = json.dumps(value, default=str)

        if ttl:
            return bool(await self.redis.setex(key, ttl, value))
        return bool(await self.redis.set(key, value))

    async def delete(self, key: str) -> bool:
        """
        Delete key from cache.

        Args:
            key: Cache key

        Returns:
            True if key was deleted
        """
        if not self.redis:
            return False

        return bool(await self.redis.delete(key))

    @asynccontextmanager
    async def lock(
        self,
        key: str,
        blocking_timeout: float = 2.0
    ) -> AsyncIterator[bool]:
        """
        Hold a short-lived distributed lock around a check-then-act section.

        Yields whether the lock was actually acquired. The lock only narrows
        race windows; callers must still tolerate duplicates (or rely on a
        database uniqueness constraint) when Redis is unavailable.

        Args:
            key: Lock name (prefixed with ``lock:``)
            blocking_timeout: Seconds to wait for a contended lock

        Example:
            ```python
            async with cache.lock(f"dm:{pair_key}"):
                conversation = await repo.find_direct(pair_key)
            ```
        """
        if not self.redis:
            yield False
            return

        redis_lock = self.redis.lock(
            f"lock:{key}",
            timeout=settings.lock_timeout_seconds,
            blocking_timeout=blocking_timeout,
        )
        try:
            acquired = await redis_lock.acquire()
        except RedisError as e:
            logger.warning(f"Lock {key} unavailable, continuing without it: {e}")
            acquired = False

        try:
            yield acquired
        finally:
            if acquired:
                try:
                    await redis_lock.release()
                except LockError:
                    logger.warning(f"Lock {key} expired before release")


# Global cache instance
cache = RedisCache()


# Helper functions for common cache patterns
async def cache_user_projection(user_id: str, user_data: dict) -> bool:
    """Cache a user's public projection."""
    return await cache.set(f"user:{user_id}", user_data, ttl=settings.cache_user_ttl)


async def get_cached_user_projection(user_id: str) -> Optional[dict]:
    """Get a cached user projection."""
    return await cache.get(f"user:{user_id}")


async def invalidate_user_cache(user_id: str) -> bool:
    """Invalidate user cache (profile or counters changed)."""
    return await cache.delete(f"user:{user_id}")
