"""Pooled Redis connection behind the category cache.

The cache is optional. A client that cannot be built stays ``None`` and
every cache read becomes a miss.
"""

import os
from typing import Optional

import redis.asyncio as redis
import structlog
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError

logger = structlog.get_logger(__name__)

DEFAULT_REDIS_URL = "redis://localhost:6379/0"
MAX_CONNECTIONS = 10
SOCKET_TIMEOUT_SECONDS = 5


class RedisCache:
    """
    Owns the connection pool shared by MediaCacheManager.

    Attributes:
        redis_url: Connection URL (REDIS_URL by default)
        client: Pool-owning client, or None when the URL is unusable
    """

    def __init__(self, redis_url: Optional[str] = None, max_connections: int = MAX_CONNECTIONS) -> None:
        self.redis_url = redis_url or os.getenv("REDIS_URL", DEFAULT_REDIS_URL)
        self.client: Optional[redis.Redis] = None

        try:
            pool = ConnectionPool.from_url(
                self.redis_url,
                max_connections=max_connections,
                decode_responses=True,
                socket_timeout=SOCKET_TIMEOUT_SECONDS,
                socket_connect_timeout=SOCKET_TIMEOUT_SECONDS,
                retry_on_timeout=True,
            )
        except ValueError as e:
            logger.error("redis_url_invalid", host=self.host, error=str(e))
            return

        self.client = redis.Redis.from_pool(pool)
        logger.info("redis_pool_created", host=self.host, max_connections=max_connections)

    @property
    def host(self) -> str:
        """The URL without its credentials."""
        return self.redis_url.rpartition("@")[2]

    def is_available(self) -> bool:
        """Whether a client exists. Use ping() for reachability."""
        return self.client is not None

    async def ping(self) -> bool:
        if self.client is None:
            return False

        try:
            return bool(await self.client.ping())
        except (RedisError, OSError) as e:
            logger.warning("redis_unreachable", host=self.host, error=str(e))
            return False

    async def close(self) -> None:
        """Close the client together with its pool."""
        if self.client is None:
            return

        client, self.client = self.client, None
        try:
            await client.aclose()
        except (RedisError, OSError) as e:
            logger.warning("redis_close_failed", host=self.host, error=str(e))
            return

        logger.info("redis_pool_closed", host=self.host)
