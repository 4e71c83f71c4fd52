"""Redis cache for aggregated media lists.

This package provides:
- Connection pooling (RedisCache)
- Cache key generation (CacheKeyGenerator)
- Per-category list storage with 24h eviction (MediaCacheManager)
- Graceful fail-open behavior
"""

from mediafeed.cache.connection import RedisCache
from mediafeed.cache.keys import CacheKeyGenerator
from mediafeed.cache.manager import CachedEntry, MediaCacheManager

__all__ = [
    # Connection
    "RedisCache",
    # Key generation
    "CacheKeyGenerator",
    # Cache manager
    "CachedEntry",
    "MediaCacheManager",
]
