"""Unit tests for fetch_with_retry and retry classification."""

from __future__ import annotations

import asyncio

import aiohttp
import pytest

from pagewise.core import (
    AuthenticationError,
    ProviderError,
    RateLimitError,
    RequestTimeoutError,
    ValidationError,
)
from pagewise.runtime.metrics import MetricsAccumulator
from pagewise.runtime.retry import backoff_delay, fetch_with_retry, is_retryable


class FlakyCall:
    """Fails a fixed number of times, then returns a value."""

    def __init__(self, failures: int, error: Exception | None = None) -> None:
        self.failures = failures
        self.error = error or ProviderError("boom", status_code=503)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class TestIsRetryable:
    """Test transient vs structural classification."""

    @pytest.mark.parametrize(
        "error",
        [
            RequestTimeoutError("slow"),
            RateLimitError("slow down"),
            ProviderError("bad gateway", status_code=502),
            ProviderError("unknown"),
            aiohttp.ClientConnectionError("reset"),
            RuntimeError("caller bug"),
        ],
    )
    def test_transient(self, error):
        assert is_retryable(error)

    @pytest.mark.parametrize(
        "error",
        [
            AuthenticationError("denied", 401),
            ProviderError("not found", status_code=404),
            ValidationError("bad page"),
        ],
    )
    def test_structural(self, error):
        assert not is_retryable(error)


class TestBackoffDelay:
    """Test linear backoff."""

    def test_linear(self):
        assert [backoff_delay(n, 0.5) for n in (1, 2, 3)] == [0.5, 1.0, 1.5]

    def test_retry_after_wins_when_larger(self):
        assert backoff_delay(1, 1.0, RateLimitError("429", retry_after=5.0)) == 5.0
        assert backoff_delay(3, 1.0, RateLimitError("429", retry_after=1.0)) == 3.0


class TestFetchWithRetry:
    """Test the retry loop."""

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self):
        """Test backoff grows linearly between attempts."""
        call, sleep = FlakyCall(failures=2), SleepRecorder()
        result = await fetch_with_retry(
            call, max_attempts=3, timeout=1.0, base_delay=1.0, sleep=sleep
        )
        assert result == "ok"
        assert call.calls == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted_raises_last_error(self):
        """Test the final error propagates after max_attempts."""
        call = FlakyCall(failures=5)
        with pytest.raises(ProviderError, match="boom"):
            await fetch_with_retry(
                call, max_attempts=3, timeout=1.0, base_delay=0.0, sleep=SleepRecorder()
            )
        assert call.calls == 3

    @pytest.mark.asyncio
    async def test_structural_error_not_retried(self):
        """Test authentication failures fail on the first attempt."""
        call = FlakyCall(failures=5, error=AuthenticationError("denied", 403))
        with pytest.raises(AuthenticationError):
            await fetch_with_retry(
                call, max_attempts=3, timeout=1.0, base_delay=1.0, sleep=SleepRecorder()
            )
        assert call.calls == 1

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test a slow attempt becomes RequestTimeoutError."""

        async def slow() -> None:
            await asyncio.sleep(1.0)

        with pytest.raises(RequestTimeoutError) as exc_info:
            await fetch_with_retry(slow, max_attempts=1, timeout=0.01, base_delay=0.0)
        assert exc_info.value.timeout == 0.01

    @pytest.mark.asyncio
    async def test_metrics_record_every_attempt(self):
        """Test each attempt is counted in every accumulator."""
        engine_metrics, call_metrics = MetricsAccumulator(), MetricsAccumulator()
        await fetch_with_retry(
            FlakyCall(failures=1),
            max_attempts=2,
            timeout=1.0,
            base_delay=0.0,
            metrics=(engine_metrics, call_metrics),
            sleep=SleepRecorder(),
        )
        for metrics in (engine_metrics, call_metrics):
            assert metrics.total_requests == 2
            assert metrics.errors == 1

    @pytest.mark.asyncio
    async def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            await fetch_with_retry(FlakyCall(0), max_attempts=0, timeout=1.0, base_delay=0.0)
