"""Read-through cache service.

Course statistics are the only cached read.  Two mechanisms keep them
fresh: every entry carries a TTL, and every progress mutation deletes
the entry for its course.  Either one alone bounds staleness; together
a missed invalidation costs at most one TTL.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from redis.exceptions import RedisError

from lms.db.redis import redis_pool

logger = logging.getLogger(__name__)


@runtime_checkable
class CacheService(Protocol):
    async def get(self, key: str) -> str | None:
        """Fetch a cached value.  Returns None on cache miss."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value with a TTL (time to live)."""
        ...

    async def delete(self, key: str) -> None:
        """Explicitly invalidate a cached entry."""
        ...


class InMemoryCacheService:
    """Process-local cache for dev and tests; TTLs are not enforced."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)


class RedisCacheService:
    """Redis-backed cache shared across API instances.

    Redis outages degrade to cache misses: reads return None and writes
    are dropped, so callers always fall back to the repositories.
    """

    _PREFIX = "lms:cache:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        try:
            return await self._redis.get(f"{self._PREFIX}{key}")
        except RedisError:
            logger.warning("Cache read failed key=%s", key, exc_info=True)
            return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, value)
        except RedisError:
            logger.warning("Cache write failed key=%s", key, exc_info=True)

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(f"{self._PREFIX}{key}")
        except RedisError:
            logger.warning("Cache invalidation failed key=%s", key, exc_info=True)


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_pool is not None:
    cache_service: CacheService = RedisCacheService(redis_pool)
else:
    cache_service = InMemoryCacheService()
