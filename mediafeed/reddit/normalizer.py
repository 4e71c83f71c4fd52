"""
Post normalization for raw Reddit listing records.

Converts one raw post into zero, one or many CanonicalMediaItem records.
The decision order is fixed, first match wins:

1. Gallery post -> one image per usable gallery entry
2. Clip-hosted post -> one video resolved through the clip API
3. Native video (is_video, v.redd.it, .gifv) -> one video
4. Animated image (.gif) -> one image
5. Image hosted on Reddit's own media domain -> one image
"""

import html
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit, urlunsplit

import structlog

from mediafeed.clips.client import ClipClient, extract_clip_id
from mediafeed.exceptions import FetchError, NormalizationSkip, UpstreamAuthError
from mediafeed.models.media import CanonicalMediaItem, MediaKind

logger = structlog.get_logger(__name__)

NATIVE_VIDEO_DOMAIN = "v.redd.it"

# Listing thumbnail values that are not real images
PLACEHOLDER_THUMBNAILS = frozenset({"", "self", "default", "nsfw", "spoiler", "image"})


def clean_url(url: Optional[str]) -> Optional[str]:
    """Undo Reddit's HTML entity escaping (``&amp;``) in media URLs."""
    if not url:
        return None
    return html.unescape(url)


def _url_path(url: str) -> str:
    return urlsplit(url).path.lower()


def rewrite_gifv(url: str) -> str:
    """
    Rewrite a ``.gifv`` URL to its direct ``.mp4`` equivalent.

    Example:
        >>> rewrite_gifv("https://i.imgur.com/abc.gifv")
        'https://i.imgur.com/abc.mp4'
    """
    parts = urlsplit(url)
    if not parts.path.lower().endswith(".gifv"):
        return url
    return urlunsplit(parts._replace(path=parts.path[:-5] + ".mp4"))


def is_gallery_post(post: Dict[str, Any]) -> bool:
    """Post carries ordered media references plus a metadata map."""
    items = (post.get("gallery_data") or {}).get("items")
    return bool(items) and isinstance(post.get("media_metadata"), dict)


def is_native_video(post: Dict[str, Any]) -> bool:
    """Explicit video flag, native video domain or a .gifv suffix."""
    url = post.get("url") or ""
    return (
        bool(post.get("is_video"))
        or post.get("domain") == NATIVE_VIDEO_DOMAIN
        or NATIVE_VIDEO_DOMAIN in url
        or _url_path(url).endswith(".gifv")
    )


def is_animated_image(post: Dict[str, Any]) -> bool:
    return _url_path(post.get("url") or "").endswith(".gif")


def is_media_candidate(post: Dict[str, Any], allow_clips: bool) -> bool:
    """
    Cheap pre-filter applied by the aggregator before normalization.

    Keeps gallery posts, and posts that have a URL, are not a disallowed
    clip, and are video-like (native video, clip, animated image) or
    hosted on Reddit's media domain.
    """
    if is_gallery_post(post):
        return True

    url = post.get("url")
    if not url:
        return False

    is_clip = extract_clip_id(url) is not None
    if is_clip and not allow_clips:
        return False

    is_video_like = is_clip or is_native_video(post) or is_animated_image(post)
    return is_video_like or bool(post.get("is_reddit_media_domain"))


def _largest_variant(variants: Any) -> Optional[str]:
    """URL of the highest-resolution entry in a list of {x, y, u} variants."""
    if not isinstance(variants, list):
        return None

    sized = [v for v in variants if isinstance(v, dict) and (v.get("u") or v.get("gif"))]
    if not sized:
        return None

    best = max(sized, key=lambda v: (v.get("x") or 0) * (v.get("y") or 0))
    return clean_url(best.get("u") or best.get("gif"))


def _preview_image(post: Dict[str, Any]) -> Optional[str]:
    images = (post.get("preview") or {}).get("images") or []
    if not images:
        return None
    return clean_url((images[0].get("source") or {}).get("url"))


def _generic_thumbnail(post: Dict[str, Any]) -> Optional[str]:
    thumbnail = post.get("thumbnail") or ""
    if thumbnail in PLACEHOLDER_THUMBNAILS:
        return None
    return clean_url(thumbnail)


def _reddit_video(post: Dict[str, Any]) -> Dict[str, Any]:
    for key in ("media", "secure_media"):
        video = (post.get(key) or {}).get("reddit_video")
        if video:
            return video
    return {}


class PostNormalizer:
    """
    Normalizer for raw Reddit posts.

    Holds the clip client used to resolve clip-hosted posts; every other
    step is a pure function of the raw post.

    Example:
        >>> normalizer = PostNormalizer(clip_client)
        >>> items = await normalizer.normalize(raw_post, allow_clips=True)
    """

    def __init__(self, clip_client: Optional[ClipClient] = None) -> None:
        self.clip_client = clip_client

    async def normalize(
        self, post: Dict[str, Any], allow_clips: bool
    ) -> List[CanonicalMediaItem]:
        """
        Convert a raw post into canonical media items.

        Args:
            post: Raw post dictionary from a listing
            allow_clips: Whether clip-hosted posts may be resolved

        Returns:
            List of items, possibly empty
        """
        try:
            return await self._normalize(post, allow_clips)
        except NormalizationSkip as skip:
            logger.debug("post_skipped", post_id=post.get("id"), reason=skip.reason)
            return []

    async def _normalize(
        self, post: Dict[str, Any], allow_clips: bool
    ) -> List[CanonicalMediaItem]:
        if is_gallery_post(post):
            items = self.expand_gallery(post)
            if items:
                return items

        url = post.get("url")
        if not url:
            raise NormalizationSkip("post has no url")

        clip_id = extract_clip_id(url)
        if clip_id is not None:
            return [await self.resolve_clip_post(post, clip_id, allow_clips)]

        if is_native_video(post):
            return [self.native_video(post)]

        if is_animated_image(post):
            return [self.image(post, thumbnail_url=_preview_image(post))]

        if not post.get("is_reddit_media_domain"):
            raise NormalizationSkip("image not hosted on native media domain")

        return [self.image(post, thumbnail_url=_preview_image(post) or clean_url(url))]

    @staticmethod
    def _common_fields(post: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "description": post.get("selftext") or None,
            "source_timestamp": post.get("created_utc"),
        }

    def expand_gallery(self, post: Dict[str, Any]) -> List[CanonicalMediaItem]:
        """
        Expand a gallery post into one image per usable entry.

        Entries missing from media_metadata, not in ``valid`` status or
        without any URL are dropped. Titles are suffixed ``(i/N)`` where N
        is the number of usable entries.
        """
        metadata = post.get("media_metadata") or {}
        title = post.get("title") or ""
        usable = []

        for ref in (post.get("gallery_data") or {}).get("items") or []:
            meta = metadata.get(ref.get("media_id"))
            if not meta or meta.get("status", "valid") != "valid":
                continue

            source = meta.get("s") or {}
            content_url = _largest_variant(meta.get("o")) or clean_url(
                source.get("u") or source.get("gif")
            )
            if not content_url:
                continue

            usable.append((content_url, _largest_variant(meta.get("p")), ref.get("caption")))

        total = len(usable)
        common = self._common_fields(post)

        return [
            CanonicalMediaItem.build(
                MediaKind.IMAGE,
                content_url,
                title=f"{title} ({position}/{total})",
                index=position,
                thumbnail_url=thumbnail_url,
                description=caption or common["description"],
                source_timestamp=common["source_timestamp"],
            )
            for position, (content_url, thumbnail_url, caption) in enumerate(usable, start=1)
        ]

    async def resolve_clip_post(
        self, post: Dict[str, Any], clip_id: str, allow_clips: bool
    ) -> CanonicalMediaItem:
        """Resolve a clip-hosted post into a video item."""
        if not allow_clips:
            raise NormalizationSkip("clips not allowed for category")

        if self.clip_client is None:
            raise NormalizationSkip("no clip client configured")

        try:
            record = await self.clip_client.resolve_clip(clip_id)
        except (FetchError, UpstreamAuthError) as e:
            logger.warning("clip_resolution_failed", clip_id=clip_id, error=str(e))
            raise NormalizationSkip(f"clip resolution failed: {e}") from e

        return CanonicalMediaItem.build(
            MediaKind.VIDEO,
            record.video_url,
            title=post.get("title") or "",
            thumbnail_url=record.thumbnail_url,
            duration_seconds=record.duration_seconds,
            **self._common_fields(post),
        )

    def native_video(self, post: Dict[str, Any]) -> CanonicalMediaItem:
        """Video hosted natively or linked as .gifv."""
        reddit_video = _reddit_video(post)
        content_url = clean_url(reddit_video.get("fallback_url")) or rewrite_gifv(
            clean_url(post["url"])
        )
        thumbnail_url = clean_url(reddit_video.get("thumbnail")) or _generic_thumbnail(post)

        return CanonicalMediaItem.build(
            MediaKind.VIDEO,
            content_url,
            title=post.get("title") or "",
            thumbnail_url=thumbnail_url,
            duration_seconds=reddit_video.get("duration"),
            **self._common_fields(post),
        )

    def image(
        self, post: Dict[str, Any], thumbnail_url: Optional[str] = None
    ) -> CanonicalMediaItem:
        return CanonicalMediaItem.build(
            MediaKind.IMAGE,
            clean_url(post["url"]),
            title=post.get("title") or "",
            thumbnail_url=thumbnail_url,
            **self._common_fields(post),
        )
