"""
Pagination and cache-merge contract for aggregated media lists.

Filtering is always applied to the full list before slicing; slicing
first would under-fill pages.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence, Union

from mediafeed.models.media import CanonicalMediaItem, MediaKind
from mediafeed.models.responses import MediaPage

CACHE_TTL = timedelta(hours=24)

# Overfetch multipliers applied before filtering
WARM_OVERFETCH = 2
COLD_OVERFETCH = 3

TypeFilter = Union[MediaKind, str, None]


def coerce_type_filter(type_filter: TypeFilter) -> Optional[MediaKind]:
    """
    Normalize a filter value; ``None`` and ``"all"`` disable filtering.

    Raises:
        ValueError: For unknown kinds
    """
    if type_filter is None or type_filter == "all":
        return None
    return MediaKind(type_filter)


def filter_items(
    items: Iterable[CanonicalMediaItem], type_filter: TypeFilter = None
) -> List[CanonicalMediaItem]:
    kind = coerce_type_filter(type_filter)
    if kind is None:
        return list(items)
    return [item for item in items if item.kind == kind]


def page(
    items: Sequence[CanonicalMediaItem],
    offset: int,
    limit: int,
    type_filter: TypeFilter = None,
) -> MediaPage:
    """
    Slice an aggregated list by offset/limit.

    Args:
        items: Full aggregated list, newest first
        offset: Index of the first item (negative values clamp to 0)
        limit: Maximum items in the page
        type_filter: Optional kind to keep, applied before slicing

    Returns:
        MediaPage with data, has_more and total_considered

    Example:
        >>> result = page(items, offset=0, limit=24, type_filter="video")
        >>> all(item.kind == MediaKind.VIDEO for item in result.data)
        True
    """
    offset = max(0, offset)
    limit = max(0, limit)
    considered = filter_items(items, type_filter)

    return MediaPage(
        data=considered[offset:offset + limit],
        has_more=offset + limit < len(considered),
        total_considered=len(considered),
    )


def overfetch_limit(limit: int, cold_cache: bool = False) -> int:
    """
    Number of items to request upstream to fill a filtered page.

    Example:
        >>> overfetch_limit(24)
        48
        >>> overfetch_limit(24, cold_cache=True)
        72
    """
    return limit * (COLD_OVERFETCH if cold_cache else WARM_OVERFETCH)


def upstream_may_have_more(
    returned: int, requested: int, reported_total: Optional[int] = None
) -> bool:
    """
    Whether a paginated upstream may still hold items.

    A short page is only proof of exhaustion when the upstream itself
    reported fewer items than were requested; filter attrition alone
    proves nothing, so ``returned`` never ends a search on its own.

    Example:
        >>> upstream_may_have_more(returned=0, requested=48)
        True
        >>> upstream_may_have_more(returned=0, requested=3, reported_total=2)
        False
    """
    if reported_total is None:
        return True
    return reported_total >= requested


def merge_cached_items(
    cached: Sequence[CanonicalMediaItem], fresh: Iterable[CanonicalMediaItem]
) -> List[CanonicalMediaItem]:
    """
    Merge fresh items into a cached list.

    Fresh items whose content_url is already cached are dropped; the
    survivors are prepended so newest content leads.

    Example:
        >>> [i.title for i in merge_cached_items([c, d], [a, b, c])]
        ['a', 'b', 'c', 'd']
    """
    known_urls = {item.content_url for item in cached}
    new_items: List[CanonicalMediaItem] = []

    for item in fresh:
        if item.content_url not in known_urls:
            known_urls.add(item.content_url)
            new_items.append(item)

    return [*new_items, *cached]


def is_stale(
    written_at: datetime,
    now: Optional[datetime] = None,
    ttl: timedelta = CACHE_TTL,
) -> bool:
    """Whether a cache entry written at ``written_at`` must be evicted."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if written_at.tzinfo is None:
        written_at = written_at.replace(tzinfo=timezone.utc)
    return now - written_at > ttl
