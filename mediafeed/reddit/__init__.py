"""
Reddit API integration layer using prawcore.

This module provides the Reddit side of the media pipeline:
- RedditPostClient: paged post listings with per-call authorization
- TokenGate: paced, serialized token issuance shared by all clients
- PostNormalizer: raw post -> canonical media items

Example:
    >>> from mediafeed.reddit import RedditPostClient, TokenGate
    >>> client = RedditPostClient(TokenGate())
    >>> posts = await client.list_posts("EarthPorn")
"""

from mediafeed.reddit.client import RedditPostClient, listing_path
from mediafeed.reddit.normalizer import (
    PostNormalizer,
    is_gallery_post,
    is_media_candidate,
    is_native_video,
)
from mediafeed.token_gate import TokenGate

__all__ = [
    # Client
    "RedditPostClient",
    "listing_path",
    # Normalization
    "PostNormalizer",
    "is_gallery_post",
    "is_media_candidate",
    "is_native_video",
    # Token pacing
    "TokenGate",
]
