"""
Unit tests for the clip API client.

HTTP calls are served by httpx.MockTransport.
"""

import httpx
import pytest

from mediafeed.clips.client import (
    ClipClient,
    ClipRecord,
    extract_clip_id,
    is_clip_url,
    select_thumbnail_url,
    select_video_url,
)
from mediafeed.exceptions import FetchError, UpstreamAuthError
from mediafeed.token_gate import TokenGate

API_URL = "https://clips.test"


def make_client(handler) -> ClipClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ClipClient(TokenGate(min_interval_seconds=0), http, api_url=API_URL)


def clip_api(gifs=None, token="temp-token", gif_status=200, token_status=200, seen=None):
    """Build a handler emulating the token and clip lookup endpoints."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if request.url.path == "/v2/auth/temporary":
            return httpx.Response(token_status, json={"token": token})
        if request.url.path == "/v2/gifs":
            return httpx.Response(gif_status, json={"gifs": gifs or []})
        return httpx.Response(404)

    return handler


class TestExtractClipId:
    """Test watch-page URL parsing."""

    def test_plain_watch_url(self):
        assert extract_clip_id("https://redgifs.com/watch/calmgreenfrog") == "calmgreenfrog"

    def test_www_watch_url(self):
        assert extract_clip_id("https://www.redgifs.com/watch/calmgreenfrog") == "calmgreenfrog"

    def test_query_and_fragment_are_stripped(self):
        assert extract_clip_id("https://www.redgifs.com/watch/calmgreenfrog?ref=abc") == "calmgreenfrog"
        assert extract_clip_id("https://www.redgifs.com/watch/calmgreenfrog#top") == "calmgreenfrog"

    def test_non_clip_urls(self):
        assert extract_clip_id("https://i.redd.it/abc.jpg") is None
        assert extract_clip_id("https://www.redgifs.com/users/someone") is None
        assert extract_clip_id("") is None
        assert not is_clip_url("https://v.redd.it/xyz")


class TestUrlSelection:
    """Test playable and preview URL preferences."""

    def test_sd_preferred_over_hd(self):
        urls = {"hd": "https://m.test/a-hd.mp4", "sd": "https://m.test/a-sd.mp4"}
        assert select_video_url(urls) == "https://m.test/a-sd.mp4"

    def test_vthumbnail_before_hd(self):
        urls = {"hd": "https://m.test/a-hd.mp4", "vthumbnail": "https://m.test/a-v.mp4"}
        assert select_video_url(urls) == "https://m.test/a-v.mp4"

    def test_video_extension_fallback(self):
        urls = {"poster": "https://m.test/a.jpg", "other": "https://m.test/a.webm"}
        assert select_video_url(urls) == "https://m.test/a.webm"

    def test_no_video_url(self):
        assert select_video_url({"poster": "https://m.test/a.jpg"}) is None

    def test_thumbnail_preference(self):
        urls = {"poster": "https://m.test/p.jpg", "thumbnail": "https://m.test/t.jpg"}
        assert select_thumbnail_url(urls) == "https://m.test/t.jpg"
        assert select_thumbnail_url({"poster": "https://m.test/p.jpg"}) == "https://m.test/p.jpg"
        assert select_thumbnail_url({"x": "https://m.test/x.png"}) == "https://m.test/x.png"


class TestClipClient:
    """Test token issuance and clip resolution."""

    @pytest.mark.asyncio
    async def test_resolve_clip(self):
        seen = []
        gifs = [{
            "id": "calmgreenfrog",
            "duration": 12.5,
            "urls": {
                "sd": "https://media.test/calmgreenfrog-mobile.mp4",
                "hd": "https://media.test/calmgreenfrog.mp4",
                "thumbnail": "https://media.test/calmgreenfrog-poster.jpg",
            },
        }]
        client = make_client(clip_api(gifs=gifs, seen=seen))

        record = await client.resolve_clip("calmgreenfrog")

        assert record == ClipRecord(
            clip_id="calmgreenfrog",
            video_url="https://media.test/calmgreenfrog-mobile.mp4",
            thumbnail_url="https://media.test/calmgreenfrog-poster.jpg",
            duration_seconds=12.5,
        )
        lookup = seen[-1]
        assert lookup.url.params["ids"] == "calmgreenfrog"
        assert lookup.headers["Authorization"] == "Bearer temp-token"

    @pytest.mark.asyncio
    async def test_fresh_token_per_resolution(self):
        """Test every resolution requests its own temporary token."""
        seen = []
        gifs = [{"urls": {"sd": "https://media.test/a.mp4"}}]
        client = make_client(clip_api(gifs=gifs, seen=seen))

        await client.resolve_clip("a")
        await client.resolve_clip("a")

        token_calls = [r for r in seen if r.url.path == "/v2/auth/temporary"]
        assert len(token_calls) == 2
        assert client.gate.issued_count == 2

    @pytest.mark.asyncio
    async def test_token_failure(self):
        client = make_client(clip_api(token_status=503))

        with pytest.raises(UpstreamAuthError):
            await client.resolve_clip("a")

    @pytest.mark.asyncio
    async def test_missing_token(self):
        client = make_client(clip_api(token=None))

        with pytest.raises(UpstreamAuthError, match="no token"):
            await client.resolve_clip("a")

    @pytest.mark.asyncio
    async def test_non_success_status(self):
        client = make_client(clip_api(gif_status=429))

        with pytest.raises(FetchError) as exc_info:
            await client.resolve_clip("a")

        assert exc_info.value.source == "a"
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_unknown_clip(self):
        client = make_client(clip_api(gifs=[]))

        with pytest.raises(FetchError) as exc_info:
            await client.resolve_clip("gone")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_no_playable_url(self):
        gifs = [{"urls": {"poster": "https://media.test/a.jpg"}}]
        client = make_client(clip_api(gifs=gifs))

        with pytest.raises(FetchError, match="no playable URL"):
            await client.resolve_clip("a")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            if request.url.path == "/v2/auth/temporary":
                return httpx.Response(200, json={"token": "t"})
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(FetchError):
            await client.resolve_clip("a")

    def test_api_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("REDGIFS_API_URL", "https://env.clips.test/")

        client = ClipClient(TokenGate(), httpx.AsyncClient())

        assert client.api_url == "https://env.clips.test"
