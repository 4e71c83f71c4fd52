"""
Cross-channel media aggregation.

Fans out to the channels selected for a category in fixed-size batches,
normalizes every surviving post, drops duplicate content and orders the
result newest first. Per-channel failures never abort a run.
"""

import asyncio
import math
import random
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence, Set

import structlog

from mediafeed.exceptions import FetchError, InvalidCategory, UpstreamAuthError
from mediafeed.feed.categories import (
    CategorySpec,
    ChannelPool,
    select_channels,
    unique_channels,
)
from mediafeed.feed.pagination import (
    TypeFilter,
    filter_items,
    overfetch_limit,
    upstream_may_have_more,
)
from mediafeed.models.media import CanonicalMediaItem
from mediafeed.reddit.normalizer import PostNormalizer, is_media_candidate

logger = structlog.get_logger(__name__)

DEFAULT_BATCH_SIZE = 3
DEFAULT_BATCH_DELAY_SECONDS = 1.0


class PostSource(Protocol):
    async def list_posts(self, channel: str) -> List[Dict[str, Any]]: ...


@dataclass
class ChannelResult:
    """Outcome of one channel within a batch."""

    channel: str
    items: List[CanonicalMediaItem] = field(default_factory=list)
    error: Optional[Exception] = None


@dataclass
class AggregationRun:
    """
    State of one aggregation run.

    ``seen_content_urls`` is confined to the run; concurrent runs never
    share it.
    """

    category: str
    items: List[CanonicalMediaItem] = field(default_factory=list)
    seen_content_urls: Set[str] = field(default_factory=set)
    failed_channels: Dict[str, str] = field(default_factory=dict)
    auth_failures: int = 0
    channels_queried: int = 0

    def add(self, result: ChannelResult) -> int:
        """Record a channel result, keeping only unseen content. Returns kept count."""
        self.channels_queried += 1

        if result.error is not None:
            self.failed_channels[result.channel] = str(result.error)
            if isinstance(result.error, UpstreamAuthError):
                self.auth_failures += 1

        kept = 0
        for item in result.items:
            if item.content_url in self.seen_content_urls:
                continue
            self.seen_content_urls.add(item.content_url)
            self.items.append(item)
            kept += 1
        return kept


def sort_newest_first(items: Sequence[CanonicalMediaItem]) -> List[CanonicalMediaItem]:
    """Stable sort by source_timestamp descending; missing timestamps go last."""
    return sorted(
        items,
        key=lambda item: (
            item.source_timestamp if item.source_timestamp is not None else -math.inf
        ),
        reverse=True,
    )


def _batches(channels: Sequence[str], size: int) -> Iterator[List[str]]:
    for start in range(0, len(channels), size):
        yield list(channels[start:start + size])


class Aggregator:
    """
    Aggregates canonical media items for a category.

    Upstream concurrency is capped by the batch size and burst rate by the
    inter-batch delay, independently of the TokenGate.

    Example:
        >>> aggregator = Aggregator(post_client, PostNormalizer(clips), spec)
        >>> items = await aggregator.aggregate("nature")
    """

    def __init__(
        self,
        post_client: PostSource,
        normalizer: PostNormalizer,
        spec: CategorySpec,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.post_client = post_client
        self.normalizer = normalizer
        self.spec = spec
        self.batch_size = max(1, batch_size)
        self.batch_delay_seconds = batch_delay_seconds
        self.rng = rng or random.Random()

    async def aggregate(self, category: str) -> List[CanonicalMediaItem]:
        """
        Run a full aggregation for a category.

        Args:
            category: Configured category name or the "All" meta-category

        Returns:
            Deduplicated items, newest first. Empty for unknown categories.

        Raises:
            UpstreamAuthError: If every channel failed to obtain a token
        """
        try:
            channels = unique_channels(select_channels(self.spec, category, self.rng))
        except InvalidCategory as e:
            logger.warning("invalid_category", category=category, error=str(e))
            return []

        allow_clips = self.spec.allows_clips(category)
        run = AggregationRun(category)

        logger.info(
            "aggregation_started",
            category=category,
            channels=len(channels),
            allow_clips=allow_clips,
        )

        for index, batch in enumerate(_batches(channels, self.batch_size)):
            if index:
                await asyncio.sleep(self.batch_delay_seconds)
            await self._run_batch(batch, allow_clips, run)

        if channels and run.auth_failures == len(channels):
            logger.error("aggregation_auth_failed", category=category)
            raise UpstreamAuthError(f"No upstream token could be obtained for '{category}'")

        items = sort_newest_first(run.items)

        logger.info(
            "aggregation_completed",
            category=category,
            items=len(items),
            channels_queried=run.channels_queried,
            channels_failed=len(run.failed_channels),
        )

        return items

    async def sample(
        self,
        category: str,
        count: int,
        type_filter: TypeFilter = None,
        cold_cache: bool = True,
    ) -> List[CanonicalMediaItem]:
        """
        Collect a random sample of at least ``count`` items when possible.

        Channels are drawn from a shrinking pool one batch at a time; when a
        channel yields nothing the next draw simply comes from the channels
        left. The search overfetches before filtering and stops as soon as
        enough items are held or the pool is empty.

        Returns:
            Up to ``count`` filtered items, newest first

        Raises:
            UpstreamAuthError: If every channel tried failed to obtain a token
        """
        try:
            pool = ChannelPool(select_channels(self.spec, category, self.rng), self.rng)
        except InvalidCategory as e:
            logger.warning("invalid_category", category=category, error=str(e))
            return []

        allow_clips = self.spec.allows_clips(category)
        target = overfetch_limit(count, cold_cache)
        run = AggregationRun(category)
        first_batch = True
        may_have_more = True

        while (
            may_have_more
            and not pool.exhausted
            and len(filter_items(run.items, type_filter)) < target
        ):
            if not first_batch:
                await asyncio.sleep(self.batch_delay_seconds)
            first_batch = False

            held = len(filter_items(run.items, type_filter))
            batch = pool.draw(self.batch_size)
            await self._run_batch(batch, allow_clips, run)

            # Only a short draw from the pool ends the search
            may_have_more = upstream_may_have_more(
                returned=len(filter_items(run.items, type_filter)) - held,
                requested=self.batch_size,
                reported_total=len(batch),
            )

        if run.channels_queried and run.auth_failures == run.channels_queried:
            logger.error("sample_auth_failed", category=category)
            raise UpstreamAuthError(f"No upstream token could be obtained for '{category}'")

        sampled = filter_items(sort_newest_first(run.items), type_filter)[:count]

        logger.info(
            "sample_completed",
            category=category,
            requested=count,
            returned=len(sampled),
            channels_queried=run.channels_queried,
        )

        return sampled

    async def _run_batch(
        self, batch: List[str], allow_clips: bool, run: AggregationRun
    ) -> None:
        # Shielded so an abandoned run still lets the in-flight batch finish
        results = await asyncio.shield(
            asyncio.gather(*(self._collect_channel(channel, allow_clips) for channel in batch))
        )

        for result in results:
            kept = run.add(result)
            logger.debug(
                "channel_collected",
                channel=result.channel,
                normalized=len(result.items),
                kept=kept,
            )

    async def _collect_channel(self, channel: str, allow_clips: bool) -> ChannelResult:
        try:
            posts = await self.post_client.list_posts(channel)

            items: List[CanonicalMediaItem] = []
            # Sequential so clip resolutions within a channel never overlap
            for post in posts:
                if not is_media_candidate(post, allow_clips):
                    continue
                items.extend(await self.normalizer.normalize(post, allow_clips))

            return ChannelResult(channel, items)

        except (FetchError, UpstreamAuthError) as e:
            logger.warning(
                "channel_fetch_failed",
                channel=channel,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ChannelResult(channel, error=e)

        except Exception as e:
            logger.error(
                "channel_processing_failed",
                channel=channel,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return ChannelResult(channel, error=e)
