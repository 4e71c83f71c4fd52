"""
FastMCP Server initialization and configuration.

Sets up the MCP server with metadata, the error types raised by tools
and the health check endpoint.
"""
from typing import Any

import structlog
from mcp.server.fastmcp import FastMCP
from mcp.shared.exceptions import McpError
from mcp.types import ErrorData

from mediafeed.exceptions import CategoryConfigError
from mediafeed.models.responses import HealthCheckResponse

logger = structlog.get_logger(__name__)

# Server metadata
SERVER_NAME = "media-feed-mcp"
SERVER_VERSION = "1.0.0"
SERVER_INSTRUCTIONS = (
    "Aggregates images and videos from configured Reddit channels into a "
    "deduplicated, newest-first feed. Use list_categories to discover "
    "categories, get_media to page through a category and sample_media for "
    "a random cross-channel sample."
)


# Custom error classes
class MediaFeedMCPError(McpError):
    """Base error for the media feed server."""

    code = -32603

    def __init__(self, message: str, data: dict[str, Any] | None = None):
        super().__init__(ErrorData(code=self.code, message=message, data=data))


class UpstreamError(MediaFeedMCPError):
    """No upstream token could be obtained for any channel."""

    code = -32001


class ConfigurationError(MediaFeedMCPError):
    """Category configuration is missing or malformed."""

    code = -32002


def create_mcp_server() -> FastMCP:
    """
    Create and configure the FastMCP server instance.

    Returns:
        FastMCP server with the health check registered. The media tools
        register themselves on import of mediafeed.tools.
    """
    mcp = FastMCP(name=SERVER_NAME, instructions=SERVER_INSTRUCTIONS)

    logger.info(
        "mcp_server_initialized",
        name=SERVER_NAME,
        version=SERVER_VERSION,
        capabilities=["tools"],
    )

    register_health_check(mcp)

    return mcp


async def collect_health() -> HealthCheckResponse:
    """Probe Redis, the category configuration and the token gate."""
    from mediafeed import dependencies

    components = {"server": "healthy"}
    details: dict[str, Any] = {}

    redis_cache = dependencies.get_redis_cache()
    if not redis_cache.is_available():
        components["redis"] = "unavailable"
    else:
        components["redis"] = "healthy" if await redis_cache.ping() else "unhealthy"

    try:
        spec = dependencies.get_category_spec()
        components["categories"] = "healthy"
        details["categories"] = len(spec.categories)
    except CategoryConfigError as e:
        components["categories"] = "unhealthy"
        details["categories_error"] = e.message

    details["token_gate"] = dependencies.get_token_gate().get_stats()

    # Redis is optional: its loss degrades the server, never fails it
    if all(status == "healthy" for status in components.values()):
        overall_status = "healthy"
    elif components["categories"] == "unhealthy":
        overall_status = "unhealthy"
    else:
        overall_status = "degraded"

    logger.debug("health_check_performed", status=overall_status)

    return HealthCheckResponse(
        status=overall_status,
        version=SERVER_VERSION,
        components=components,
        details=details,
    )


def register_health_check(mcp: FastMCP) -> None:
    """
    Register health check endpoint for Apify standby mode.

    Args:
        mcp: FastMCP server instance
    """

    @mcp.tool()
    async def health_check() -> dict[str, Any]:
        """
        Health check endpoint for monitoring.

        Returns:
            Dictionary with status, version, and component health
        """
        response = await collect_health()
        return response.model_dump()


# Create global MCP server instance (singleton)
mcp = create_mcp_server()
