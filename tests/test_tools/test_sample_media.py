"""Tests for sample_media tool."""

from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError

from mediafeed.exceptions import UpstreamAuthError
from mediafeed.models.media import CanonicalMediaItem, MediaKind
from mediafeed.server import UpstreamError
from mediafeed.tools.sample_media import SampleMediaInput, sample_media


@pytest.fixture
def aggregator():
    agg = AsyncMock()
    agg.sample = AsyncMock(return_value=[
        CanonicalMediaItem.build(MediaKind.VIDEO, "https://v.redd.it/a/DASH_720.mp4", title="a"),
    ])
    with patch("mediafeed.tools.sample_media.get_aggregator", return_value=agg):
        yield agg


class TestSampleMediaInput:
    """Test suite for SampleMediaInput validation."""

    def test_defaults(self):
        params = SampleMediaInput()

        assert params.category == "All"
        assert params.count == 10

    @pytest.mark.parametrize("count", [0, 51])
    def test_count_bounds(self, count):
        with pytest.raises(ValidationError):
            SampleMediaInput(count=count)


class TestSampleMedia:
    """Test suite for sample_media tool."""

    @pytest.mark.asyncio
    async def test_returns_sample(self, aggregator):
        result = await sample_media(SampleMediaInput(category="nature", count=3, type_filter="video"))

        aggregator.sample.assert_awaited_once_with("nature", 3, type_filter="video")
        assert result["data"]["returned"] == 1
        assert result["data"]["requested"] == 3
        assert result["data"]["items"][0]["kind"] == "video"
        assert result["metadata"]["cached"] is False

    @pytest.mark.asyncio
    async def test_upstream_auth_failure(self, aggregator):
        aggregator.sample.side_effect = UpstreamAuthError("token refused")

        with pytest.raises(UpstreamError):
            await sample_media(SampleMediaInput(category="nature"))
