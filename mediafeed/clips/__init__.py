"""Clip-hosting API integration (short-form video resolution)."""

from mediafeed.clips.client import (
    ClipClient,
    ClipRecord,
    extract_clip_id,
    is_clip_url,
    select_thumbnail_url,
    select_video_url,
)

__all__ = [
    "ClipClient",
    "ClipRecord",
    "extract_clip_id",
    "is_clip_url",
    "select_thumbnail_url",
    "select_video_url",
]
