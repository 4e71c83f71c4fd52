"""Cache key generation for per-category media lists."""

import hashlib

import structlog

logger = structlog.get_logger(__name__)


class CacheKeyGenerator:
    """
    Generate cache keys for aggregated category lists.

    Keys follow the pattern: mediafeed:{namespace}:{category_hash}:{version}

    Category names are hashed so arbitrary configured names (spaces, colons)
    never break the key format.

    Attributes:
        PREFIX: Key prefix shared by every media-feed entry
        VERSION: Cache schema version (increment when the item format changes)
    """

    PREFIX = "mediafeed"
    VERSION = "v1"

    @staticmethod
    def generate(namespace: str, category: str) -> str:
        """
        Generate the cache key for a category.

        Example:
            >>> key = CacheKeyGenerator.generate("media", "nature")
            >>> key.startswith("mediafeed:media:")
            True
        """
        category_hash = hashlib.md5(category.encode("utf-8")).hexdigest()[:12]
        cache_key = (
            f"{CacheKeyGenerator.PREFIX}:{namespace}:{category_hash}:"
            f"{CacheKeyGenerator.VERSION}"
        )

        logger.debug("cache_key_generated", namespace=namespace, category=category, cache_key=cache_key)

        return cache_key
