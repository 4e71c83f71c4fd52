"""
Get Media MCP Tool.

Pages through the aggregated, newest-first media list of a category.
The full unfiltered list is cached per category for 24 hours; a call
only aggregates when the cache is cold or the caller asks to refresh
or reset it.
"""

import time
from typing import Any, Dict, Literal, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from mediafeed.dependencies import get_aggregator, get_cache_manager
from mediafeed.exceptions import CategoryConfigError, UpstreamAuthError
from mediafeed.feed.categories import META_CATEGORY
from mediafeed.feed.pagination import page
from mediafeed.models.responses import ResponseMetadata, ToolResponse
from mediafeed.server import ConfigurationError, UpstreamError, mcp
from mediafeed.utils.logger import log_tool_call

logger = structlog.get_logger(__name__)


class GetMediaInput(BaseModel):
    """
    Input schema for get_media tool.

    Offset and limit address the filtered list, so a video-only page of 24
    holds 24 videos whenever that many exist.
    """

    category: str = Field(
        META_CATEGORY,
        min_length=1,
        max_length=100,
        description='Category name from list_categories ("All" for every category)',
    )

    limit: int = Field(
        24,
        ge=1,
        le=100,
        description="Maximum number of items to return",
    )

    offset: int = Field(
        0,
        ge=0,
        description="Index of the first item to return",
    )

    type_filter: Optional[Literal["image", "video"]] = Field(
        None,
        description="Only return items of this kind",
    )

    refresh: bool = Field(
        False,
        description="Aggregate again and merge new items into the cached list",
    )

    reset: bool = Field(
        False,
        description="Drop the cached list before aggregating",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "category": "nature",
                "limit": 24,
                "offset": 0,
                "type_filter": "video",
            }
        }
    )


@mcp.tool()
async def get_media(params: GetMediaInput) -> Dict[str, Any]:
    """
    Get one page of images and videos for a category.

    Args:
        params: Validated input parameters (GetMediaInput)

    Returns:
        Dictionary containing:
            - data.items: Canonical media items, newest first
            - data.has_more: Whether another page exists
            - data.total_considered: Item count after type filtering
            - metadata: Response metadata (caching, timing)

    Raises:
        UpstreamError: If no channel could obtain an upstream token
        ConfigurationError: If the category configuration cannot be loaded

    Example:
        >>> result = await get_media(GetMediaInput(category="nature", type_filter="image"))
        >>> print(len(result["data"]["items"]), result["data"]["has_more"])

    Cache Strategy:
        - One entry per category holding the unfiltered list
        - Refresh prepends unseen items; entries expire after 24 hours
    """
    started_at = time.perf_counter()

    logger.info(
        "get_media_started",
        category=params.category,
        limit=params.limit,
        offset=params.offset,
        type_filter=params.type_filter,
        refresh=params.refresh,
        reset=params.reset,
    )

    cache_manager = get_cache_manager()

    # 1. Reset drops the cached list entirely
    if params.reset:
        await cache_manager.clear(params.category)

    # 2. Serve from cache unless cold or asked to refresh
    entry = None if params.reset else await cache_manager.load_entry(params.category)
    aggregated = entry is None or params.refresh

    if aggregated:
        try:
            fresh = await get_aggregator().aggregate(params.category)
        except UpstreamAuthError as e:
            log_tool_call(
                "get_media",
                started_at,
                cached=False,
                error=e.message,
                category=params.category,
            )
            raise UpstreamError(e.message, data={"category": params.category}) from e
        except CategoryConfigError as e:
            logger.error("get_media_config_error", error=e.message)
            raise ConfigurationError(e.message) from e

        if fresh:
            items = await cache_manager.merge(params.category, fresh)
        else:
            # Nothing new: never overwrite a cached list with an empty run
            items = entry.items if entry else []
        cache_age_seconds = 0
    else:
        items = entry.items
        cache_age_seconds = entry.age_seconds()

    # 3. Filter, then slice
    result = page(items, params.offset, params.limit, params.type_filter)

    execution_time_ms = log_tool_call(
        "get_media",
        started_at,
        cached=not aggregated,
        category=params.category,
        item_count=len(result.data),
        total_considered=result.total_considered,
    )

    metadata = ResponseMetadata(
        cached=not aggregated,
        cache_age_seconds=cache_age_seconds,
        execution_time_ms=execution_time_ms,
        aggregated=aggregated,
    )

    tool_response = ToolResponse(
        data={
            "category": params.category,
            "items": result.data,
            "has_more": result.has_more,
            "total_considered": result.total_considered,
        },
        metadata=metadata,
    )

    return tool_response.model_dump(mode="json")
