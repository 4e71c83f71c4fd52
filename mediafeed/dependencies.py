"""
Centralized wiring of the aggregation pipeline.

All singletons (TokenGate, clients, Aggregator, cache) are created lazily
here and shared by the MCP tools. A single TokenGate feeds both source
clients so token issuance is totally ordered across the process.

Tests replace a dependency by clearing the getter's cache or by patching
the getter where a tool imports it.
"""
from __future__ import annotations

import os
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from mediafeed.cache.connection import RedisCache
    from mediafeed.cache.manager import MediaCacheManager
    from mediafeed.clips.client import ClipClient
    from mediafeed.feed.aggregator import Aggregator
    from mediafeed.feed.categories import CategorySpec
    from mediafeed.reddit.client import RedditPostClient
    from mediafeed.reddit.normalizer import PostNormalizer
    from mediafeed.token_gate import TokenGate


@lru_cache(maxsize=1)
def get_token_gate() -> TokenGate:
    from mediafeed.token_gate import TokenGate
    interval_ms = float(os.getenv("TOKEN_MIN_INTERVAL_MS", "600"))
    return TokenGate(min_interval_seconds=interval_ms / 1000)


@lru_cache(maxsize=1)
def get_http_client() -> httpx.AsyncClient:
    import httpx
    return httpx.AsyncClient(timeout=10, follow_redirects=True)


@lru_cache(maxsize=1)
def get_clip_client() -> ClipClient:
    from mediafeed.clips.client import ClipClient
    return ClipClient(get_token_gate(), get_http_client())


@lru_cache(maxsize=1)
def get_post_client() -> RedditPostClient:
    from mediafeed.reddit.client import RedditPostClient
    return RedditPostClient(get_token_gate())


@lru_cache(maxsize=1)
def get_normalizer() -> PostNormalizer:
    from mediafeed.reddit.normalizer import PostNormalizer
    return PostNormalizer(get_clip_client())


@lru_cache(maxsize=1)
def get_category_spec() -> CategorySpec:
    from mediafeed.feed.categories import load_category_spec
    return load_category_spec()


@lru_cache(maxsize=1)
def get_aggregator() -> Aggregator:
    from mediafeed.feed.aggregator import Aggregator
    return Aggregator(get_post_client(), get_normalizer(), get_category_spec())


@lru_cache(maxsize=1)
def get_redis_cache() -> RedisCache:
    from mediafeed.cache.connection import RedisCache
    return RedisCache()


@lru_cache(maxsize=1)
def get_cache_manager() -> MediaCacheManager:
    from mediafeed.cache.manager import MediaCacheManager
    return MediaCacheManager(get_redis_cache().client)


async def close_resources() -> None:
    """Close pooled connections that were actually opened."""
    if get_http_client.cache_info().currsize:
        await get_http_client().aclose()
    if get_redis_cache.cache_info().currsize:
        await get_redis_cache().close()
