"""structlog setup for the media feed server and the per-tool call log."""
import logging
import os
import sys
import time
from typing import Any, Optional

import structlog

# Client libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "prawcore")


def setup_logging(level: Optional[str] = None) -> None:
    """
    Route all logs to stderr as JSON, or colored lines when
    ENVIRONMENT=development.

    Args:
        level: Log level name; defaults to LOG_LEVEL, then INFO
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level, logging.INFO)

    # stdout carries the MCP stdio transport
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    if os.getenv("ENVIRONMENT", "production") == "development":
        renderer: Any = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def log_tool_call(
    tool_name: str,
    started_at: float,
    cached: bool,
    error: Optional[str] = None,
    **extra: Any,
) -> float:
    """
    Log one MCP tool call and return its duration in milliseconds.

    Example:
        >>> started_at = time.perf_counter()
        >>> elapsed_ms = log_tool_call("get_media", started_at, cached=True, item_count=24)
    """
    elapsed_ms = round((time.perf_counter() - started_at) * 1000, 2)
    logger = structlog.get_logger("mediafeed.tools")

    if error:
        logger.error("tool_call_failed", tool=tool_name, duration_ms=elapsed_ms, error=error, **extra)
    else:
        logger.info("tool_call_completed", tool=tool_name, duration_ms=elapsed_ms, cached=cached, **extra)

    return elapsed_ms
