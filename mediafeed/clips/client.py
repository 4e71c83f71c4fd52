"""
Clip-hosting API client (RedGIFs).

Resolves a clip id taken from a watch-page URL into a directly playable
video URL and a preview image, using a temporary token issued through
the shared TokenGate.
"""

import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
import structlog

from mediafeed.exceptions import FetchError, UpstreamAuthError
from mediafeed.token_gate import TokenGate

logger = structlog.get_logger(__name__)

DEFAULT_API_URL = "https://api.redgifs.com"

VIDEO_EXTENSIONS = ("mp4", "mkv", "avi", "mov", "wmv", "flv", "webm")
IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "bmp", "tiff", "svg")

WATCH_URL_RE = re.compile(r"^https://(?:www\.)?redgifs\.com/watch/([^?#/]+)")


def extract_clip_id(url: str) -> Optional[str]:
    """
    Extract the clip id from a watch-page URL.

    Query strings and fragments are stripped.

    Example:
        >>> extract_clip_id("https://www.redgifs.com/watch/calmgreenfrog?ref=x")
        'calmgreenfrog'
        >>> extract_clip_id("https://i.redd.it/abc.jpg") is None
        True
    """
    if not url:
        return None

    match = WATCH_URL_RE.match(url)
    return match.group(1) if match else None


def is_clip_url(url: str) -> bool:
    """Whether the URL points at a clip-hosting watch page."""
    return extract_clip_id(url) is not None


def _find_by_extension(urls: Dict[str, Any], extensions: tuple) -> Optional[str]:
    for value in urls.values():
        if isinstance(value, str) and value.lower().endswith(
            tuple(f".{ext}" for ext in extensions)
        ):
            return value
    return None


def select_video_url(urls: Dict[str, Any]) -> Optional[str]:
    """
    Pick the playable URL from a clip's URL set.

    Standard definition is preferred over HD to save bandwidth.
    """
    return (
        urls.get("sd")
        or urls.get("vthumbnail")
        or urls.get("hd")
        or _find_by_extension(urls, VIDEO_EXTENSIONS)
    )


def select_thumbnail_url(urls: Dict[str, Any]) -> Optional[str]:
    """Pick the preview image from a clip's URL set."""
    return (
        urls.get("thumbnail")
        or urls.get("poster")
        or _find_by_extension(urls, IMAGE_EXTENSIONS)
    )


@dataclass(frozen=True)
class ClipRecord:
    """Resolved clip ready for normalization."""

    clip_id: str
    video_url: str
    thumbnail_url: Optional[str] = None
    duration_seconds: Optional[float] = None


class ClipClient:
    """
    Client for the clip-hosting API.

    Each resolution acquires its own temporary token, independent of the
    Reddit authorization.

    Example:
        >>> async with httpx.AsyncClient(timeout=10) as http:
        ...     clips = ClipClient(TokenGate(), http)
        ...     record = await clips.resolve_clip("calmgreenfrog")
    """

    def __init__(
        self,
        gate: TokenGate,
        http: httpx.AsyncClient,
        api_url: Optional[str] = None,
    ) -> None:
        self.gate = gate
        self.http = http
        self.api_url = (api_url or os.getenv("REDGIFS_API_URL", DEFAULT_API_URL)).rstrip("/")

    async def issue_token(self) -> str:
        """
        Request a temporary bearer token. Only called through the TokenGate.

        Raises:
            UpstreamAuthError: If the token endpoint fails
        """
        try:
            response = await self.http.get(f"{self.api_url}/v2/auth/temporary")
            response.raise_for_status()
            token = response.json().get("token")
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamAuthError(f"Clip API token request failed: {e}") from e

        if not token:
            raise UpstreamAuthError("Clip API returned no token")

        return token

    async def resolve_clip(self, clip_id: str) -> ClipRecord:
        """
        Resolve a clip id into playable URLs.

        Args:
            clip_id: Id extracted from a watch-page URL

        Returns:
            ClipRecord with the selected video and thumbnail URLs

        Raises:
            FetchError: On HTTP failure, unknown clip or no playable URL
            UpstreamAuthError: If no token could be issued
        """
        token = await self.gate.acquire_token(self.issue_token)

        try:
            response = await self.http.get(
                f"{self.api_url}/v2/gifs",
                params={"ids": clip_id},
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            raise FetchError(clip_id, cause=e) from e

        if not response.is_success:
            raise FetchError(
                clip_id,
                cause=f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            gifs = response.json().get("gifs") or []
        except ValueError as e:
            raise FetchError(clip_id, cause=e) from e

        if not gifs:
            raise FetchError(clip_id, cause="clip not found", status_code=404)

        clip = gifs[0]
        urls = clip.get("urls") or {}
        video_url = select_video_url(urls)

        if not video_url:
            raise FetchError(clip_id, cause="no playable URL")

        thumbnail_url = select_thumbnail_url(urls)

        logger.debug("clip_resolved", clip_id=clip_id, has_thumbnail=bool(thumbnail_url))

        return ClipRecord(
            clip_id=clip_id,
            video_url=video_url,
            thumbnail_url=thumbnail_url,
            duration_seconds=clip.get("duration"),
        )
