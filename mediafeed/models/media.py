"""
Canonical media record shared by every source.

A CanonicalMediaItem is created once per normalization call and never
mutated afterwards; sequences of items are only filtered, sliced or
merged.
"""
import hashlib
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MediaKind(str, Enum):
    """Kind of media an item resolves to."""

    IMAGE = "image"
    VIDEO = "video"


def media_id(url: str, index: Optional[int] = None) -> str:
    """
    Build a deterministic item id from a content URL.

    Single items are keyed by URL alone so the same content always
    produces the same id regardless of which channel surfaced it.
    Gallery expansions append their 1-based position.

    Example:
        >>> media_id("https://i.redd.it/abc.jpg") == media_id("https://i.redd.it/abc.jpg")
        True
        >>> media_id("https://i.redd.it/abc.jpg", 2).endswith("-2")
        True
    """
    url_hash = hashlib.md5(url.encode()).hexdigest()[:12]

    if index is None:
        return f"media-{url_hash}"
    return f"media-{url_hash}-{index}"


class CanonicalMediaItem(BaseModel):
    """
    Normalized image or video record.

    Invariant: content_url is never empty and id is a pure function of
    content_url (plus the gallery index, when expanded from a gallery).
    """

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    id: str = Field(
        ...,
        min_length=1,
        description="Deterministic id derived from content_url",
    )
    kind: MediaKind = Field(
        ...,
        description="image or video",
    )
    title: str = Field(
        "",
        description="Title of the source post",
    )
    description: Optional[str] = Field(
        None,
        description="Body text of the source post",
    )
    content_url: str = Field(
        ...,
        min_length=1,
        description="Directly fetchable media URL",
    )
    thumbnail_url: Optional[str] = Field(
        None,
        description="Best available preview image",
    )
    duration_seconds: Optional[float] = Field(
        None,
        ge=0,
        description="Clip length, videos only",
    )
    source_timestamp: Optional[float] = Field(
        None,
        description="Upstream creation time in epoch seconds",
    )

    @classmethod
    def build(
        cls,
        kind: MediaKind,
        content_url: str,
        title: str = "",
        index: Optional[int] = None,
        **fields,
    ) -> "CanonicalMediaItem":
        """Create an item, deriving its id from content_url and index."""
        if kind is not MediaKind.VIDEO:
            fields.pop("duration_seconds", None)

        return cls(
            id=media_id(content_url, index),
            kind=kind,
            title=title,
            content_url=content_url,
            **fields,
        )

    def to_dict(self) -> dict:
        """JSON-ready representation used by the tools and the cache."""
        return self.model_dump(mode="json")
