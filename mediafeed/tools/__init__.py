"""MCP tool implementations for media feed access."""

from mediafeed.tools.get_media import GetMediaInput, get_media
from mediafeed.tools.list_categories import list_categories
from mediafeed.tools.sample_media import SampleMediaInput, sample_media

__all__ = [
    # Category listing tool
    "list_categories",
    # Paged media tool
    "get_media",
    "GetMediaInput",
    # Random sample tool
    "sample_media",
    "SampleMediaInput",
]
