"""Unit tests for RESTPageFetcher."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from pagewise.core import RetrievalStatus, ValidationError
from pagewise.models import RetrievalRequest
from pagewise.rest import RESTPageFetcher, ResponseLayout, encode_query
from pagewise.runtime import PageFetcher, RetrievalEngine


def make_client(*bodies) -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock(side_effect=list(bodies))
    return client


class TestEncodeQuery:
    """Test query flattening."""

    def test_encode(self):
        pairs = encode_query(
            {"region": "eu", "active": True, "archived": False, "skip": None, "tag": ["a", "b"]}
        )
        assert pairs == [
            ("region", "eu"),
            ("active", "true"),
            ("archived", "false"),
            ("tag", "a"),
            ("tag", "b"),
        ]


class TestRESTPageFetcher:
    """Test request building and response parsing."""

    def test_implements_contract(self):
        fetcher = RESTPageFetcher("offers", make_client(), "/offers")
        assert isinstance(fetcher, PageFetcher)

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            RESTPageFetcher("", make_client(), "/offers")

    @pytest.mark.asyncio
    async def test_fetch_builds_query(self):
        """Test page/limit params are added to caller and fixed params."""
        client = make_client({"items": [1, 2], "pagination": {"total": 4, "pages": 2}})
        fetcher = RESTPageFetcher(
            "offers",
            client,
            "/offers",
            page_param="p",
            limit_param="size",
            extra_query={"format": "json"},
        )

        page = await fetcher.fetch(RetrievalRequest(page=2, limit=2, params={"region": "eu"}))

        client.get.assert_awaited_once_with(
            "/offers",
            params=[("format", "json"), ("region", "eu"), ("p", "2"), ("size", "2")],
        )
        assert page.items == [1, 2]
        assert page.total == 4
        assert page.total_pages == 2

    def test_parse_custom_layout(self):
        """Test dotted layout paths."""
        layout = ResponseLayout(
            items="data.offers",
            total="meta.page_info.total_count",
            total_pages=None,
            has_next="meta.page_info.more",
        )
        fetcher = RESTPageFetcher("offers", make_client(), "/offers", layout=layout)
        page = fetcher.parse(
            {
                "data": {"offers": [{"id": 1}]},
                "meta": {"page_info": {"total_count": 30, "more": True}},
            }
        )
        assert page.items == [{"id": 1}]
        assert page.total == 30
        assert page.total_pages is None
        assert page.has_next is True

    def test_parse_missing_metadata(self):
        """Test absent metadata paths become None."""
        page = RESTPageFetcher("offers", make_client(), "/offers").parse({"items": [1]})
        assert page.items == [1]
        assert not page.has_totals

    def test_parse_missing_items(self):
        fetcher = RESTPageFetcher("offers", make_client(), "/offers")
        with pytest.raises(ValidationError, match="no item list"):
            fetcher.parse({"results": []})

    @pytest.mark.asyncio
    async def test_engine_pages_through_endpoint(self):
        """Test the engine drives a REST fetcher end to end."""
        bodies = [
            {"items": list(range(0, 100)), "pagination": {"total": 250, "pages": 3}},
            {"items": list(range(100, 200)), "pagination": {"total": 250, "pages": 3}},
            {"items": list(range(200, 250)), "pagination": {"total": 250, "pages": 3}},
        ]
        client = make_client(*bodies)
        fetcher = RESTPageFetcher("offers", client, "/offers")
        engine = RetrievalEngine(request_delay=0.0, retry_base_delay=0.0)

        result = await engine.retrieve(fetcher, intended_use="export")

        assert result.status is RetrievalStatus.COMPLETE
        assert result.items == list(range(250))
        assert client.get.await_count == 3
