"""Per-category media cache with fail-open error handling.

Entries hold the full unfiltered aggregated list of a category together
with the time it was written. Entries older than 24 hours are evicted on
read; Redis also expires them through the key TTL.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

import structlog
from pydantic import ValidationError

from mediafeed.cache.keys import CacheKeyGenerator
from mediafeed.feed.pagination import CACHE_TTL, is_stale, merge_cached_items
from mediafeed.models.media import CanonicalMediaItem

logger = structlog.get_logger(__name__)

NAMESPACE = "media"


@dataclass
class CachedEntry:
    """A decoded cache entry."""

    items: List[CanonicalMediaItem]
    written_at: datetime

    def age_seconds(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        return max(0, int((now - self.written_at).total_seconds()))


class MediaCacheManager:
    """
    Cache operations for aggregated category lists.

    Every operation fails open: when Redis is missing or errors, reads
    behave as misses and writes report False.

    Attributes:
        redis: Async Redis client, or None when the cache is unavailable
    """

    def __init__(self, redis_client: Any = None) -> None:
        self.redis = redis_client
        self.ttl_seconds = int(CACHE_TTL.total_seconds())

    @staticmethod
    def key_for(category: str) -> str:
        return CacheKeyGenerator.generate(NAMESPACE, category)

    async def load_entry(self, category: str) -> Optional[CachedEntry]:
        """
        Load the cache entry for a category.

        Stale and corrupt entries are deleted and reported as misses.

        Returns:
            CachedEntry, or None on miss
        """
        if not self.redis:
            logger.debug("cache_get_skipped", reason="redis_not_available", category=category)
            return None

        key = self.key_for(category)

        try:
            value = await self.redis.get(key)
        except Exception as e:
            logger.error(
                "cache_get_error",
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        if not value:
            logger.debug("cache_miss", key=key, category=category)
            return None

        try:
            raw = json.loads(value)
            written_at = datetime.fromisoformat(raw["written_at"])
            if written_at.tzinfo is None:
                written_at = written_at.replace(tzinfo=timezone.utc)
            items = [CanonicalMediaItem.model_validate(item) for item in raw["items"]]
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            logger.error(
                "cache_entry_corrupt",
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            await self.clear(category)
            return None

        if is_stale(written_at):
            logger.info("cache_entry_stale", key=key, category=category)
            await self.clear(category)
            return None

        entry = CachedEntry(items=items, written_at=written_at)

        logger.debug(
            "cache_hit",
            key=key,
            category=category,
            items=len(items),
            age_seconds=entry.age_seconds(),
        )

        return entry

    async def load(self, category: str) -> Optional[List[CanonicalMediaItem]]:
        """Cached items for a category, or None on miss."""
        entry = await self.load_entry(category)
        return entry.items if entry else None

    async def save(self, category: str, items: Iterable[CanonicalMediaItem]) -> bool:
        """
        Store the full item list for a category.

        Returns:
            True if stored, False otherwise
        """
        if not self.redis:
            logger.debug("cache_set_skipped", reason="redis_not_available", category=category)
            return False

        key = self.key_for(category)

        try:
            payload = json.dumps(
                {
                    "items": [item.to_dict() for item in items],
                    "written_at": datetime.now(timezone.utc).isoformat(),
                }
            )
            await self.redis.setex(key, self.ttl_seconds, payload)

            logger.debug("cache_set", key=key, category=category, data_size=len(payload))
            return True

        except (TypeError, ValueError) as e:
            logger.error(
                "cache_set_serialization_error",
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        except Exception as e:
            logger.error(
                "cache_set_error",
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def merge(
        self, category: str, fresh: Iterable[CanonicalMediaItem]
    ) -> List[CanonicalMediaItem]:
        """
        Merge freshly aggregated items into the cached list and store it.

        New items are prepended; items whose content_url is already cached
        are dropped. A missing or stale entry is treated as empty.

        Returns:
            The merged list, whether or not the write succeeded
        """
        cached = await self.load(category) or []
        merged = merge_cached_items(cached, fresh)

        await self.save(category, merged)

        logger.info(
            "cache_merged",
            category=category,
            cached=len(cached),
            added=len(merged) - len(cached),
        )

        return merged

    async def clear(self, category: str) -> bool:
        """Delete the entry for a category."""
        if not self.redis:
            logger.debug("cache_delete_skipped", reason="redis_not_available", category=category)
            return False

        key = self.key_for(category)

        try:
            result = await self.redis.delete(key)
            logger.debug("cache_delete", key=key, deleted=bool(result))
            return bool(result)

        except Exception as e:
            logger.error(
                "cache_delete_error",
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
