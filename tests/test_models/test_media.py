"""Unit tests for the canonical media model."""

import pytest
from pydantic import ValidationError

from mediafeed.models.media import CanonicalMediaItem, MediaKind, media_id


class TestMediaId:
    """Test deterministic id derivation."""

    def test_same_url_same_id(self):
        assert media_id("https://i.redd.it/a.jpg") == media_id("https://i.redd.it/a.jpg")

    def test_different_urls_differ(self):
        assert media_id("https://i.redd.it/a.jpg") != media_id("https://i.redd.it/b.jpg")

    def test_gallery_index_suffix(self):
        base = media_id("https://i.redd.it/a.jpg")

        assert media_id("https://i.redd.it/a.jpg", 3) == f"{base}-3"
        assert base.startswith("media-")


class TestCanonicalMediaItem:
    """Test item construction and invariants."""

    def test_build_derives_id(self):
        item = CanonicalMediaItem.build(MediaKind.IMAGE, "https://i.redd.it/a.jpg", title="A")

        assert item.id == media_id("https://i.redd.it/a.jpg")
        assert item.title == "A"

    def test_duration_only_for_videos(self):
        image = CanonicalMediaItem.build(MediaKind.IMAGE, "https://i.redd.it/a.jpg", duration_seconds=4)
        video = CanonicalMediaItem.build(MediaKind.VIDEO, "https://v.redd.it/a.mp4", duration_seconds=4)

        assert image.duration_seconds is None
        assert video.duration_seconds == 4

    def test_empty_content_url_rejected(self):
        with pytest.raises(ValidationError):
            CanonicalMediaItem.build(MediaKind.IMAGE, "")

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError):
            CanonicalMediaItem.build(MediaKind.VIDEO, "https://v.redd.it/a.mp4", duration_seconds=-1)

    def test_items_are_immutable(self):
        item = CanonicalMediaItem.build(MediaKind.IMAGE, "https://i.redd.it/a.jpg")

        with pytest.raises(ValidationError):
            item.title = "changed"

    def test_to_dict(self):
        item = CanonicalMediaItem.build(
            MediaKind.VIDEO,
            "https://v.redd.it/a.mp4",
            title="A",
            source_timestamp=1700000000.0,
        )

        data = item.to_dict()

        assert data["kind"] == "video"
        assert data["content_url"] == "https://v.redd.it/a.mp4"
        assert CanonicalMediaItem.model_validate(data) == item
