"""Fetcher contract and the registry used to resume continuation tokens.

Architecture:
    The engine knows nothing about the items it retrieves. A fetcher is any
    object with a stable ``name`` and an async ``fetch(request)`` method
    returning one page. Protocol-based so plain classes, REST-backed
    fetchers and test doubles all work without a shared base class.

Design Decisions:
    - Stable names: continuation tokens store the fetcher name, never code
    - Explicit registry: resume looks fetchers up in a caller-supplied
      FetcherRegistry (or mapping) instead of importing anything dynamically
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping
from typing import Any, Protocol, runtime_checkable

from ..core.exceptions import FetcherRegistrationError, UnknownFetcherError
from ..models.page import RetrievalPage, RetrievalRequest

PageResponse = RetrievalPage | Mapping[str, Any] | list[Any]
FetchFunction = Callable[[int, int, dict[str, Any]], Awaitable[PageResponse]]


@runtime_checkable
class PageFetcher(Protocol):
    """Protocol for anything the engine can page through."""

    name: str

    async def fetch(self, request: RetrievalRequest) -> PageResponse:
        """Fetch one page.

        Args:
            request: Page number, page size and the caller's parameters

        Returns:
            A RetrievalPage, a mapping with ``items`` and optional pagination
            metadata, or a bare list of items

        Raises:
            FetchError: On transport or remote failure
        """
        ...


class CallableFetcher:
    """Adapts an ``async fn(page, limit, params)`` function to PageFetcher."""

    def __init__(self, name: str, fn: FetchFunction) -> None:
        if not name:
            raise ValueError("Fetcher name cannot be empty")
        if not callable(fn):
            raise TypeError(f"Fetch function for '{name}' is not callable")
        self.name = name
        self._fn = fn

    async def fetch(self, request: RetrievalRequest) -> PageResponse:
        return await self._fn(request.page, request.limit, dict(request.params))

    def __repr__(self) -> str:
        return f"CallableFetcher(name={self.name!r})"


def fetcher(name: str) -> Callable[[FetchFunction], CallableFetcher]:
    """Decorator turning an async page function into a named fetcher.

    Example:
        @fetcher("offers")
        async def fetch_offers(page, limit, params):
            ...
    """

    def decorator(fn: FetchFunction) -> CallableFetcher:
        return CallableFetcher(name, fn)

    return decorator


class FetcherRegistry:
    """Maps stable fetcher names to fetcher instances."""

    def __init__(self, fetchers: Iterable[PageFetcher] | None = None) -> None:
        self._fetchers: dict[str, PageFetcher] = {}
        for item in fetchers or ():
            self.register(item)

    def register(self, item: PageFetcher, *, replace: bool = False) -> None:
        """Register a fetcher under its own name.

        Args:
            item: Fetcher to register
            replace: Overwrite an existing registration with the same name

        Raises:
            FetcherRegistrationError: If the name is taken and replace is False,
                or the object does not implement the fetcher contract
        """
        if not isinstance(item, PageFetcher):
            raise FetcherRegistrationError(
                f"{type(item).__name__} does not implement the fetcher contract"
            )
        if item.name in self._fetchers and not replace:
            raise FetcherRegistrationError(f"Fetcher '{item.name}' is already registered")
        self._fetchers[item.name] = item

    def unregister(self, name: str) -> None:
        """Remove a registration.

        Raises:
            UnknownFetcherError: If nothing is registered under name
        """
        if name not in self._fetchers:
            raise UnknownFetcherError(name)
        del self._fetchers[name]

    def get(self, name: str) -> PageFetcher:
        """Look up a fetcher.

        Raises:
            UnknownFetcherError: If nothing is registered under name
        """
        try:
            return self._fetchers[name]
        except KeyError:
            raise UnknownFetcherError(name) from None

    def names(self) -> list[str]:
        return sorted(self._fetchers)

    def __contains__(self, name: object) -> bool:
        return name in self._fetchers

    def __iter__(self) -> Iterator[PageFetcher]:
        return iter(self._fetchers.values())

    def __len__(self) -> int:
        return len(self._fetchers)

    @classmethod
    def coerce(
        cls, fetchers: FetcherRegistry | Mapping[str, PageFetcher] | Iterable[PageFetcher]
    ) -> FetcherRegistry:
        """Build a registry from a registry, a name mapping or an iterable."""
        if isinstance(fetchers, cls):
            return fetchers
        registry = cls()
        if isinstance(fetchers, Mapping):
            for name, item in fetchers.items():
                if getattr(item, "name", None) != name:
                    raise FetcherRegistrationError(
                        f"Fetcher registered as '{name}' reports name "
                        f"'{getattr(item, 'name', None)}'"
                    )
                registry.register(item)
            return registry
        for item in fetchers:
            registry.register(item)
        return registry
