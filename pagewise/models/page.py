"""Page request and page response models."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import ValidationError

_ITEM_KEYS = ("items", "data")
_TOTAL_PAGES_KEYS = ("total_pages", "totalPages", "pages")
_HAS_NEXT_KEYS = ("has_next", "hasNext")


class RetrievalRequest(BaseModel):
    """A single page request handed to a fetcher.

    ``params`` is the caller's parameter bag and is passed through unmodified.
    """

    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    params: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class RetrievalPage(BaseModel):
    """One page of items plus the pagination metadata the remote reported."""

    items: list[Any] = Field(default_factory=list)
    total: int | None = Field(default=None, ge=0)
    total_pages: int | None = Field(default=None, ge=0)
    has_next: bool | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def has_totals(self) -> bool:
        """Whether the remote reported any dataset-size metadata."""
        return self.total is not None or self.total_pages is not None

    def page_count(self, page_size: int) -> int:
        """Total number of pages at ``page_size``.

        The reported page count wins when present; otherwise it is derived
        from the reported total, falling back to this page's own length.
        """
        if self.total_pages is not None:
            return self.total_pages
        total = self.total if self.total is not None else len(self.items)
        return -(-total // page_size) if total else 0

    @classmethod
    def from_response(cls, response: Any) -> RetrievalPage:
        """Coerce a fetcher's return value into a RetrievalPage.

        Accepts a RetrievalPage, a bare list of items, or a mapping with an
        ``items``/``data`` list and optional ``total``, ``total_pages``/``pages``
        and ``has_next`` keys, either top-level or nested under ``pagination``.

        Raises:
            ValidationError: If the response does not look like a page
        """
        if isinstance(response, cls):
            return response
        if isinstance(response, (list, tuple)):
            return cls(items=list(response))
        if not isinstance(response, Mapping):
            raise ValidationError(
                f"Fetcher returned {type(response).__name__}, expected a page mapping or list"
            )

        items = _first_present(response, _ITEM_KEYS)
        if items is None:
            items = []
        if not isinstance(items, (list, tuple)):
            raise ValidationError(f"Page items must be a list, got {type(items).__name__}")

        meta: Mapping[str, Any] = response
        pagination = response.get("pagination")
        if isinstance(pagination, Mapping):
            meta = {**response, **pagination}

        try:
            return cls(
                items=list(items),
                total=meta.get("total"),
                total_pages=_first_present(meta, _TOTAL_PAGES_KEYS),
                has_next=_first_present(meta, _HAS_NEXT_KEYS),
            )
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid pagination metadata: {e}") from e


def _first_present(mapping: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if mapping.get(key) is not None:
            return mapping[key]
    return None
