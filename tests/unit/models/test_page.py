"""Unit tests for RetrievalRequest and RetrievalPage."""

from __future__ import annotations

import pydantic
import pytest

from pagewise.core import ValidationError
from pagewise.models import RetrievalPage, RetrievalRequest


class TestRetrievalRequest:
    """Test RetrievalRequest model."""

    def test_valid_request(self):
        """Test creating a request with caller params."""
        request = RetrievalRequest(page=2, limit=50, params={"region": "eu"})
        assert request.page == 2
        assert request.limit == 50
        assert request.params == {"region": "eu"}

    def test_page_must_be_positive(self):
        """Test page numbers are one-based."""
        with pytest.raises(pydantic.ValidationError):
            RetrievalRequest(page=0, limit=10)

    def test_frozen(self):
        """Test requests are immutable."""
        request = RetrievalRequest(page=1, limit=10)
        with pytest.raises(pydantic.ValidationError):
            request.page = 2  # type: ignore[misc]


class TestRetrievalPageFromResponse:
    """Test coercion of fetcher return values."""

    def test_passthrough(self):
        """Test a RetrievalPage is returned unchanged."""
        page = RetrievalPage(items=[1, 2], total=2)
        assert RetrievalPage.from_response(page) is page

    def test_bare_list(self):
        """Test a bare list becomes a page without metadata."""
        page = RetrievalPage.from_response([{"id": 1}, {"id": 2}])
        assert page.items == [{"id": 1}, {"id": 2}]
        assert page.total is None
        assert not page.has_totals

    def test_top_level_metadata(self):
        """Test top-level total and page count keys."""
        page = RetrievalPage.from_response({"items": [1], "total": 40, "totalPages": 4})
        assert page.total == 40
        assert page.total_pages == 4

    def test_nested_pagination(self):
        """Test metadata nested under a pagination object."""
        page = RetrievalPage.from_response(
            {"data": [1, 2], "pagination": {"total": 10, "pages": 5, "hasNext": True}}
        )
        assert page.items == [1, 2]
        assert page.total == 10
        assert page.total_pages == 5
        assert page.has_next is True

    def test_missing_items_is_empty_page(self):
        """Test a mapping without items yields an empty page."""
        page = RetrievalPage.from_response({"total": 0})
        assert page.items == []
        assert page.total == 0

    def test_items_must_be_list(self):
        """Test non-list items are rejected."""
        with pytest.raises(ValidationError, match="must be a list"):
            RetrievalPage.from_response({"items": "abc"})

    def test_unsupported_type(self):
        """Test unsupported return types are rejected."""
        with pytest.raises(ValidationError, match="expected a page mapping"):
            RetrievalPage.from_response(42)

    def test_negative_total_rejected(self):
        """Test invalid metadata surfaces as the library's ValidationError."""
        with pytest.raises(ValidationError, match="Invalid pagination metadata"):
            RetrievalPage.from_response({"items": [], "total": -1})


class TestRetrievalPageCount:
    """Test page_count derivation."""

    def test_reported_pages_win(self):
        """Test a reported page count is used as-is."""
        assert RetrievalPage(items=[1], total=100, total_pages=7).page_count(10) == 7

    def test_derived_from_total(self):
        """Test page count rounds the total up."""
        assert RetrievalPage(items=[1], total=101).page_count(10) == 11

    def test_derived_from_items(self):
        """Test page count falls back to the page's own items."""
        assert RetrievalPage(items=[1, 2, 3]).page_count(10) == 1

    def test_empty(self):
        """Test an empty dataset has no pages."""
        assert RetrievalPage(items=[], total=0).page_count(10) == 0
