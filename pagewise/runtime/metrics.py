"""Request metrics and time/memory estimation.

The engine owns one MetricsAccumulator for its lifetime and creates a fresh
one per retrieve/resume call, so each result reports only its own requests.
"""

from __future__ import annotations

import json
import math
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any

from pydantic_core import PydanticSerializationError, to_jsonable_python


@dataclass
class RequestMetrics:
    """Snapshot of request accounting.

    Attributes:
        total_requests: Attempts made, successful or not
        total_time: Cumulative seconds spent in successful attempts
        average_time: total_time / successful attempts
        errors: Failed attempts
    """

    total_requests: int = 0
    total_time: float = 0.0
    average_time: float = 0.0
    errors: int = 0

    @property
    def successes(self) -> int:
        return self.total_requests - self.errors


class MetricsAccumulator:
    """Tracks request count, successful latency and error count."""

    def __init__(self) -> None:
        self._metrics = RequestMetrics()

    def record_success(self, duration: float) -> None:
        """Record a successful attempt that took ``duration`` seconds."""
        m = self._metrics
        m.total_requests += 1
        m.total_time += max(duration, 0.0)
        m.average_time = m.total_time / m.successes

    def record_failure(self) -> None:
        """Record a failed attempt. Failures never affect average latency."""
        self._metrics.total_requests += 1
        self._metrics.errors += 1

    def snapshot(self) -> RequestMetrics:
        """Return a copy that later updates will not touch."""
        return replace(self._metrics)

    def reset(self) -> None:
        self._metrics = RequestMetrics()

    @property
    def total_requests(self) -> int:
        return self._metrics.total_requests

    @property
    def average_time(self) -> float:
        return self._metrics.average_time

    @property
    def errors(self) -> int:
        return self._metrics.errors


def estimate_fetch_time(
    total_items: int, page_size: int, average_latency: float, request_delay: float
) -> float:
    """Seconds needed to page through ``total_items`` at the observed pace."""
    if total_items <= 0 or page_size <= 0:
        return 0.0
    return math.ceil(total_items / page_size) * (average_latency + request_delay)


def format_duration(seconds: float) -> str:
    """Render an estimate as ``"42s"`` below one minute, ``"7m"`` otherwise."""
    if seconds < 60:
        return f"{round(seconds)}s"
    return f"{round(seconds / 60)}m"


def estimate_memory_mb(items: Sequence[Any]) -> float:
    """Rough in-memory size of ``items`` in megabytes.

    Extrapolates from the JSON size of the first item; items that cannot be
    encoded fall back to their ``repr``.
    """
    if not items:
        return 0.0
    first = items[0]
    try:
        encoded = json.dumps(to_jsonable_python(first))
    except (PydanticSerializationError, TypeError, ValueError):
        encoded = repr(first)
    return len(items) * len(encoded) / (1024 * 1024)
