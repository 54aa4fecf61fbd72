from __future__ import annotations

import asyncio

from redis.exceptions import ConnectionError as RedisConnectionError

from lms.services.cache import CacheService, InMemoryCacheService, RedisCacheService


class _FakeRedis:
    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.data[key] = value
        self.ttls[key] = ttl

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class _DownRedis:
    async def get(self, key: str) -> str | None:
        raise RedisConnectionError("connection refused")

    async def setex(self, key: str, ttl: int, value: str) -> None:
        raise RedisConnectionError("connection refused")

    async def delete(self, key: str) -> None:
        raise RedisConnectionError("connection refused")


def test_implementations_satisfy_protocol() -> None:
    assert isinstance(InMemoryCacheService(), CacheService)
    assert isinstance(RedisCacheService(_FakeRedis()), CacheService)


def test_in_memory_set_get_delete() -> None:
    cache = InMemoryCacheService()
    asyncio.run(cache.set("k", "v", 60))
    assert asyncio.run(cache.get("k")) == "v"
    asyncio.run(cache.delete("k"))
    assert asyncio.run(cache.get("k")) is None


def test_redis_cache_prefixes_keys_and_sets_ttl() -> None:
    redis = _FakeRedis()
    cache = RedisCacheService(redis)
    asyncio.run(cache.set("stats:1", "{}", 300))
    assert redis.data == {"lms:cache:stats:1": "{}"}
    assert redis.ttls["lms:cache:stats:1"] == 300
    assert asyncio.run(cache.get("stats:1")) == "{}"
    asyncio.run(cache.delete("stats:1"))
    assert redis.data == {}


def test_redis_outage_degrades_to_miss(caplog) -> None:
    cache = RedisCacheService(_DownRedis())
    assert asyncio.run(cache.get("stats:1")) is None
    asyncio.run(cache.set("stats:1", "{}", 300))
    asyncio.run(cache.delete("stats:1"))
    assert sum("Cache" in r.getMessage() for r in caplog.records) == 3
