"""Category selection, aggregation and pagination for the media feed."""

from mediafeed.feed.aggregator import Aggregator, AggregationRun, sort_newest_first
from mediafeed.feed.categories import (
    META_CATEGORY,
    CategorySpec,
    ChannelPool,
    ChannelWeight,
    category_names,
    load_category_spec,
    parse_category_spec,
    select_channels,
    unique_channels,
)
from mediafeed.feed.pagination import (
    is_stale,
    merge_cached_items,
    overfetch_limit,
    page,
    upstream_may_have_more,
)

__all__ = [
    # Aggregation
    "Aggregator",
    "AggregationRun",
    "sort_newest_first",
    # Categories
    "META_CATEGORY",
    "CategorySpec",
    "ChannelPool",
    "ChannelWeight",
    "category_names",
    "load_category_spec",
    "parse_category_spec",
    "select_channels",
    "unique_channels",
    # Pagination
    "is_stale",
    "merge_cached_items",
    "overfetch_limit",
    "page",
    "upstream_may_have_more",
]
