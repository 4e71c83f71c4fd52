"""
List Categories MCP Tool.

Exposes the configured category names, led by the "All" meta-category.
"""

import time
from typing import Any, Dict

import structlog

from mediafeed.dependencies import get_category_spec
from mediafeed.exceptions import CategoryConfigError
from mediafeed.feed.categories import category_names
from mediafeed.models.responses import ResponseMetadata, ToolResponse
from mediafeed.server import mcp
from mediafeed.utils.logger import log_tool_call

logger = structlog.get_logger(__name__)


@mcp.tool()
async def list_categories() -> Dict[str, Any]:
    """
    List the media categories that get_media and sample_media accept.

    Returns:
        Dictionary containing:
            - data.categories: Category names, "All" first
            - metadata: Response metadata (timing)

    An unreadable configuration yields an empty list rather than an error.
    """
    started_at = time.perf_counter()

    try:
        categories = category_names(get_category_spec())
        error = None
    except CategoryConfigError as e:
        logger.error("list_categories_config_error", error=e.message)
        categories = []
        error = e.message

    execution_time_ms = log_tool_call(
        "list_categories",
        started_at,
        cached=False,
        error=error,
        category_count=len(categories),
    )

    return ToolResponse(
        data={"categories": categories},
        metadata=ResponseMetadata(
            cached=False,
            execution_time_ms=execution_time_ms,
        ),
    ).model_dump(mode="json")
