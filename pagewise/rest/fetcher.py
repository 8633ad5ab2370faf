"""Fetcher contract implementation for paginated JSON endpoints.

Endpoint-specific query encoding stays with the caller: the fetcher sends
the caller's parameters as they are, adds the page and limit parameters,
and reads items and pagination metadata from configurable response paths.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..core.exceptions import ValidationError
from ..models.page import RetrievalPage, RetrievalRequest
from .http_client import HTTPClient

_MISSING = object()


@dataclass(frozen=True)
class ResponseLayout:
    """Where items and pagination metadata live in a response body.

    Paths are dot-separated keys into the decoded JSON, e.g.
    ``"data.offers"`` or ``"metadata.page_info.total_count"``. A path of
    None means the remote does not report that field.

    Attributes:
        items: Path to the list of items
        total: Path to the total item count
        total_pages: Path to the total page count
        has_next: Path to the has-next flag
    """

    items: str = "items"
    total: str | None = "pagination.total"
    total_pages: str | None = "pagination.pages"
    has_next: str | None = "pagination.has_next"


class RESTPageFetcher:
    """Pages through a JSON endpoint with page/limit query parameters."""

    def __init__(
        self,
        name: str,
        client: HTTPClient,
        path: str,
        *,
        layout: ResponseLayout | None = None,
        page_param: str = "page",
        limit_param: str = "limit",
        extra_query: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            name: Stable fetcher name stored in continuation tokens
            client: HTTP client (owns the session and base URL)
            path: Endpoint path, relative to the client's base URL
            layout: Response layout (defaults to ResponseLayout())
            page_param: Query parameter carrying the page number
            limit_param: Query parameter carrying the page size
            extra_query: Query parameters sent with every request
        """
        if not name:
            raise ValueError("Fetcher name cannot be empty")
        self.name = name
        self._client = client
        self._path = path
        self._layout = layout or ResponseLayout()
        self._page_param = page_param
        self._limit_param = limit_param
        self._extra_query = dict(extra_query or {})

    async def fetch(self, request: RetrievalRequest) -> RetrievalPage:
        query = {
            **self._extra_query,
            **request.params,
            self._page_param: request.page,
            self._limit_param: request.limit,
        }
        body = await self._client.get(self._path, params=encode_query(query))
        return self.parse(body)

    def parse(self, body: Any) -> RetrievalPage:
        """Map a decoded response body onto a RetrievalPage.

        Raises:
            ValidationError: If the items path is missing or not a list
        """
        items = _lookup(body, self._layout.items)
        if items is _MISSING or not isinstance(items, list):
            raise ValidationError(
                f"Response from '{self.name}' has no item list at '{self._layout.items}'"
            )
        return RetrievalPage.from_response(
            {
                "items": items,
                "total": self._optional(body, self._layout.total),
                "total_pages": self._optional(body, self._layout.total_pages),
                "has_next": self._optional(body, self._layout.has_next),
            }
        )

    @staticmethod
    def _optional(body: Any, path: str | None) -> Any:
        if path is None:
            return None
        value = _lookup(body, path)
        return None if value is _MISSING else value

    def __repr__(self) -> str:
        return f"RESTPageFetcher(name={self.name!r}, path={self._path!r})"


def encode_query(params: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Flatten parameters into query pairs.

    None values are dropped, booleans become ``"true"``/``"false"`` and
    list/tuple values repeat the key once per element.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            if item is None:
                continue
            if isinstance(item, bool):
                pairs.append((key, "true" if item else "false"))
            else:
                pairs.append((key, str(item)))
    return pairs


def _lookup(body: Any, path: str) -> Any:
    current = body
    for key in path.split("."):
        if not isinstance(current, Mapping) or key not in current:
            return _MISSING
        current = current[key]
    return current
