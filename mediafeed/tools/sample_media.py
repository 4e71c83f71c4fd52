"""
Sample Media MCP Tool.

Draws channels at random from a category until enough items are found,
independently of the cached category list.
"""

import time
from typing import Any, Dict, Literal, Optional

import structlog
from pydantic import BaseModel, Field

from mediafeed.dependencies import get_aggregator
from mediafeed.exceptions import CategoryConfigError, UpstreamAuthError
from mediafeed.feed.categories import META_CATEGORY
from mediafeed.models.responses import ResponseMetadata, ToolResponse
from mediafeed.server import ConfigurationError, UpstreamError, mcp
from mediafeed.utils.logger import log_tool_call

logger = structlog.get_logger(__name__)


class SampleMediaInput(BaseModel):
    """Input schema for sample_media tool."""

    category: str = Field(
        META_CATEGORY,
        min_length=1,
        max_length=100,
        description='Category name from list_categories ("All" for every category)',
    )

    count: int = Field(
        10,
        ge=1,
        le=50,
        description="Number of items wanted",
    )

    type_filter: Optional[Literal["image", "video"]] = Field(
        None,
        description="Only return items of this kind",
    )


@mcp.tool()
async def sample_media(params: SampleMediaInput) -> Dict[str, Any]:
    """
    Get a random cross-channel sample of media for a category.

    Fewer than ``count`` items are returned only when every channel of
    the category has been tried.

    Args:
        params: Validated input parameters (SampleMediaInput)

    Returns:
        Dictionary containing:
            - data.items: Sampled items, newest first
            - data.requested / data.returned: Item counts
            - metadata: Response metadata (timing)

    Raises:
        UpstreamError: If no channel could obtain an upstream token
        ConfigurationError: If the category configuration cannot be loaded
    """
    started_at = time.perf_counter()

    try:
        items = await get_aggregator().sample(
            params.category, params.count, type_filter=params.type_filter
        )
    except UpstreamAuthError as e:
        log_tool_call(
            "sample_media",
            started_at,
            cached=False,
            error=e.message,
            category=params.category,
        )
        raise UpstreamError(e.message, data={"category": params.category}) from e
    except CategoryConfigError as e:
        logger.error("sample_media_config_error", error=e.message)
        raise ConfigurationError(e.message) from e

    if not items and not params.type_filter:
        logger.warning("sample_media_empty", category=params.category)

    execution_time_ms = log_tool_call(
        "sample_media",
        started_at,
        cached=False,
        category=params.category,
        requested=params.count,
        item_count=len(items),
    )

    return ToolResponse(
        data={
            "category": params.category,
            "items": items,
            "requested": params.count,
            "returned": len(items),
        },
        metadata=ResponseMetadata(
            cached=False,
            execution_time_ms=execution_time_ms,
            aggregated=True,
        ),
    ).model_dump(mode="json")
