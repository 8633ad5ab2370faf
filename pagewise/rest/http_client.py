"""Async HTTP client used by REST-backed fetchers."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import aiohttp

from ..core.exceptions import AuthenticationError, ProviderError, RateLimitError

logger = logging.getLogger(__name__)

ResponseHook = Callable[[aiohttp.ClientResponse], float | None | Awaitable[float | None]]

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "pagewise/0.1",
}


class HTTPClient:
    """Async HTTP client wrapper.

    Maps error statuses onto the library's exception hierarchy so the
    retry layer can tell transient failures (429, 5xx) from structural
    ones (401/403, other 4xx). A 429 also sets a throttle window from the
    ``Retry-After`` header that the next request waits out.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}
        self._session: aiohttp.ClientSession | None = None
        self._response_hooks: list[ResponseHook] = []
        self._throttle_until: float | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout, headers=self.headers)
        return self._session

    def add_response_hook(self, hook: ResponseHook) -> None:
        """Register a hook called with every response.

        A hook may return a number of seconds to throttle subsequent requests.
        """
        self._response_hooks.append(hook)

    def set_throttle(self, seconds: float) -> None:
        """Delay subsequent requests by at least ``seconds``."""
        if seconds <= 0:
            return
        until = time.time() + seconds
        if self._throttle_until is None or until > self._throttle_until:
            self._throttle_until = until

    async def get(
        self,
        url: str,
        params: Mapping[str, Any] | list[tuple[str, str]] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """GET request returning decoded JSON."""
        return await self._request("GET", url, params=params, headers=headers)

    async def post(
        self,
        url: str,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """POST request returning decoded JSON."""
        return await self._request("POST", url, json=json, headers=headers)

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        await self._wait_for_throttle()
        # If base_url is set and url is relative, combine them
        if self.base_url and not url.startswith("http"):
            url = f"{self.base_url}/{url.lstrip('/')}"

        request = self.session.get if method == "GET" else self.session.post
        async with request(url, **kwargs) as response:
            await self._run_hooks(response)
            self._raise_for_status(response)
            return await response.json()

    async def _wait_for_throttle(self) -> None:
        if self._throttle_until is None:
            return
        delay = self._throttle_until - time.time()
        self._throttle_until = None
        if delay > 0:
            await asyncio.sleep(delay)

    async def _run_hooks(self, response: aiohttp.ClientResponse) -> None:
        for hook in self._response_hooks:
            try:
                delay = hook(response)
                if inspect.isawaitable(delay):
                    delay = await delay
            except Exception:
                logger.warning("Response hook %r failed", hook, exc_info=True)
                continue
            if delay:
                self.set_throttle(float(delay))

    def _raise_for_status(self, response: aiohttp.ClientResponse) -> None:
        status = response.status
        if status < 400:
            return
        reason = getattr(response, "reason", None) or "request failed"
        if status == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            if retry_after:
                self.set_throttle(retry_after)
            raise RateLimitError(f"Rate limited by remote API ({reason})", retry_after=retry_after)
        if status in (401, 403):
            raise AuthenticationError(f"Remote API rejected credentials ({status} {reason})", status)
        raise ProviderError(f"Remote API returned {status} {reason}", status_code=status)

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        await self.close()


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None
