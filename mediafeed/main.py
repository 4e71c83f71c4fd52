"""
Media Feed MCP Server - Main Entry Point

Initializes logging, registers the media tools and runs the FastMCP
server inside the Apify Actor context.
"""
import asyncio
import os

import structlog
from apify import Actor

from mediafeed.dependencies import close_resources
from mediafeed.server import SERVER_NAME, SERVER_VERSION, mcp
from mediafeed.utils.logger import setup_logging

# Import tools to register them with the MCP server
import mediafeed.tools  # noqa: F401

logger = structlog.get_logger(__name__)


async def main() -> None:
    """
    Main entry point for Apify Actor.

    Runs in Apify Actor context for standby mode support. The transport is
    chosen by MCP_TRANSPORT: "stdio" (default) or "http".
    """
    log_level = os.getenv("LOG_LEVEL", "INFO")
    setup_logging(log_level)

    logger.info(
        "server_starting",
        version=SERVER_VERSION,
        environment=os.getenv("ENVIRONMENT", "production"),
        log_level=log_level,
    )

    async with Actor:
        logger.info("mcp_server_ready", name=SERVER_NAME, version=SERVER_VERSION)

        transport = os.getenv("MCP_TRANSPORT", "stdio")

        logger.info(
            "starting_mcp_server",
            transport=transport,
            standby_mode=os.getenv("APIFY_IS_AT_HOME", "false") == "true",
        )

        try:
            if transport == "http":
                mcp.settings.host = "0.0.0.0"
                mcp.settings.port = int(os.getenv("ACTOR_STANDBY_PORT", "8000"))
                await mcp.run_streamable_http_async()
            else:
                await mcp.run_stdio_async()
        except Exception as e:
            logger.error(
                "server_error",
                error=str(e),
                exc_info=True,
            )
            raise
        finally:
            await close_resources()
            logger.info("server_shutdown_complete")


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
