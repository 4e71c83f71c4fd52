"""Unit tests for the Redis connection wrapper."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from mediafeed.cache.connection import RedisCache


class TestRedisCache:
    """Test suite for RedisCache class."""

    def test_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("REDIS_URL", "redis://:secret@cache.internal:6380/2")

        cache = RedisCache()

        assert cache.redis_url == "redis://:secret@cache.internal:6380/2"
        assert cache.host == "cache.internal:6380/2"
        assert cache.is_available()

    def test_invalid_url_leaves_cache_unavailable(self):
        cache = RedisCache("memcached://localhost:11211")

        assert cache.client is None
        assert not cache.is_available()

    @pytest.mark.asyncio
    async def test_ping_without_client(self):
        cache = RedisCache("memcached://localhost:11211")

        assert await cache.ping() is False

    @pytest.mark.asyncio
    async def test_ping_unreachable(self):
        cache = RedisCache("redis://localhost:6379/0")
        cache.client = AsyncMock()
        cache.client.ping = AsyncMock(side_effect=RedisConnectionError("refused"))

        assert await cache.ping() is False

    @pytest.mark.asyncio
    async def test_ping_healthy(self):
        cache = RedisCache("redis://localhost:6379/0")
        cache.client = AsyncMock()
        cache.client.ping = AsyncMock(return_value=True)

        assert await cache.ping() is True

    @pytest.mark.asyncio
    async def test_close_releases_client(self):
        cache = RedisCache("redis://localhost:6379/0")
        client = AsyncMock()
        cache.client = client

        await cache.close()
        await cache.close()

        client.aclose.assert_awaited_once()
        assert not cache.is_available()
