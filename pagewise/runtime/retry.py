"""Per-request timeout, retry and linear backoff."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from time import perf_counter
from typing import TypeVar

import aiohttp

from ..core.exceptions import (
    AuthenticationError,
    PagewiseError,
    ProviderError,
    RateLimitError,
    RequestTimeoutError,
)
from .metrics import MetricsAccumulator
from .telemetry import log_retry_scheduled

T = TypeVar("T")

# 4xx statuses that are worth retrying
_RETRYABLE_CLIENT_STATUSES = frozenset({408, 425, 429})


def is_retryable(error: BaseException) -> bool:
    """Whether a failed attempt may succeed if repeated.

    Timeouts, rate limiting, 5xx responses and connection errors are
    transient. Authentication failures, other 4xx responses and malformed
    pages are structural and retrying them only wastes requests. Exceptions
    raised by caller code that the library does not know are treated as
    transient.
    """
    if isinstance(error, (RequestTimeoutError, RateLimitError, asyncio.TimeoutError)):
        return True
    if isinstance(error, AuthenticationError):
        return False
    if isinstance(error, ProviderError):
        status = error.status_code
        if status is None or status >= 500:
            return True
        return status in _RETRYABLE_CLIENT_STATUSES
    if isinstance(error, aiohttp.ClientResponseError):
        return error.status >= 500 or error.status in _RETRYABLE_CLIENT_STATUSES
    if isinstance(error, aiohttp.ClientError):
        return True
    if isinstance(error, PagewiseError):
        return False
    return True


def backoff_delay(attempt: int, base_delay: float, error: BaseException | None = None) -> float:
    """Delay before the attempt following ``attempt`` (1-based).

    Linear: ``base_delay * attempt``. A rate-limit error carrying a larger
    ``retry_after`` wins.
    """
    delay = base_delay * attempt
    if isinstance(error, RateLimitError) and error.retry_after:
        delay = max(delay, float(error.retry_after))
    return delay


async def fetch_with_retry(
    call: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
    timeout: float,
    base_delay: float,
    metrics: Iterable[MetricsAccumulator] = (),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``call`` with a per-attempt timeout, retrying transient failures.

    Args:
        call: Zero-argument coroutine factory, invoked once per attempt
        max_attempts: Attempts including the first one
        timeout: Seconds each attempt may take
        base_delay: Linear backoff unit
        metrics: Accumulators updated after every attempt
        sleep: Sleep function, injectable for tests

    Returns:
        The value returned by the first successful attempt

    Raises:
        RequestTimeoutError: If the last attempt timed out
        Exception: The last error observed, or the first non-retryable one
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    sinks = tuple(metrics)

    for attempt in range(1, max_attempts + 1):
        started = perf_counter()
        try:
            try:
                result = await asyncio.wait_for(call(), timeout=timeout)
            except asyncio.TimeoutError:
                raise RequestTimeoutError(
                    f"Request timed out after {timeout:g}s", timeout=timeout
                ) from None
        except Exception as e:
            for sink in sinks:
                sink.record_failure()
            if attempt >= max_attempts or not is_retryable(e):
                raise
            delay = backoff_delay(attempt, base_delay, e)
            log_retry_scheduled(
                attempt=attempt,
                max_attempts=max_attempts,
                delay=delay,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            if delay > 0:
                await sleep(delay)
            continue

        elapsed = perf_counter() - started
        for sink in sinks:
            sink.record_success(elapsed)
        return result

    # Unreachable: the loop either returns or raises
    raise RuntimeError("fetch_with_retry exhausted without a result")
