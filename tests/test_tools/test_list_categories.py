"""Tests for list_categories tool."""

from unittest.mock import patch

import pytest

from mediafeed.exceptions import CategoryConfigError
from mediafeed.feed.categories import parse_category_spec
from mediafeed.tools.list_categories import list_categories


class TestListCategories:
    """Test suite for list_categories tool."""

    @pytest.mark.asyncio
    async def test_lists_meta_first(self):
        spec = parse_category_spec({
            "_AllCategories": ["nature"],
            "_NoClips": ["nature"],
            "nature": ["forest"],
            "space": ["nebula"],
        })

        with patch("mediafeed.tools.list_categories.get_category_spec", return_value=spec):
            result = await list_categories()

        assert result["data"]["categories"] == ["All", "nature", "space"]
        assert "execution_time_ms" in result["metadata"]

    @pytest.mark.asyncio
    async def test_config_failure_yields_empty_list(self):
        with patch(
            "mediafeed.tools.list_categories.get_category_spec",
            side_effect=CategoryConfigError("unreadable"),
        ):
            result = await list_categories()

        assert result["data"]["categories"] == []
