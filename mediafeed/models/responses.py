"""
Pydantic response models for MCP tools.

Defines standardized response structures for all tools including
metadata, paginated media pages and the health check.
"""
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from mediafeed.models.media import CanonicalMediaItem


class ResponseMetadata(BaseModel):
    """
    Metadata included in all tool responses.

    Provides information about cache usage and execution time.
    """

    cached: bool = Field(
        ...,
        description="Whether items were served from the category cache",
    )
    cache_age_seconds: int = Field(
        0,
        ge=0,
        description="Age of cached data in seconds (0 if freshly aggregated)",
    )
    execution_time_ms: float = Field(
        ...,
        ge=0,
        description="Tool execution time in milliseconds",
    )
    aggregated: bool = Field(
        False,
        description="Whether an aggregation run was performed for this call",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "cached": True,
                "cache_age_seconds": 120,
                "execution_time_ms": 45.2,
                "aggregated": False,
            }
        }
    )


# Generic type for tool result data
T = TypeVar("T")


class ToolResponse(BaseModel, Generic[T]):
    """
    Generic response wrapper for all MCP tools.

    Wraps tool-specific data with standard metadata.

    Type Parameters:
        T: Type of the data field (tool-specific)
    """

    data: T = Field(
        ...,
        description="Tool-specific result data",
    )
    metadata: ResponseMetadata = Field(
        ...,
        description="Response metadata (caching, timing)",
    )


class MediaPage(BaseModel):
    """
    One offset/limit slice of an aggregated media list.

    Attributes:
        data: Items in the requested window
        has_more: Whether items exist past offset + limit
        total_considered: Item count after type filtering
    """

    data: list[CanonicalMediaItem] = Field(
        default_factory=list,
        description="Items in the requested window",
    )
    has_more: bool = Field(
        False,
        description="True when offset + limit is below total_considered",
    )
    total_considered: int = Field(
        0,
        ge=0,
        description="Number of items after filtering, before slicing",
    )


class HealthCheckResponse(BaseModel):
    """
    Health check response for Apify standby mode.

    Used to verify server is running and components are healthy.
    """

    status: str = Field(
        ...,
        description="Overall health status (healthy, degraded, unhealthy)",
    )
    version: str = Field(
        ...,
        description="Server version",
    )
    components: dict[str, str] = Field(
        ...,
        description="Health status of individual components",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra component statistics",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "version": "1.0.0",
                "components": {
                    "server": "healthy",
                    "redis": "healthy",
                    "categories": "healthy",
                },
            }
        }
    )
