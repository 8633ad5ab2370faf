"""Unit tests for request metrics and estimates."""

from __future__ import annotations

import pytest

from pagewise.runtime.metrics import (
    MetricsAccumulator,
    estimate_fetch_time,
    estimate_memory_mb,
    format_duration,
)


class TestMetricsAccumulator:
    """Test request accounting."""

    def test_successes_and_failures(self):
        """Test N successes and M failures."""
        metrics = MetricsAccumulator()
        for duration in (0.1, 0.2, 0.3):
            metrics.record_success(duration)
        metrics.record_failure()
        metrics.record_failure()

        snapshot = metrics.snapshot()
        assert snapshot.total_requests == 5
        assert snapshot.errors == 2
        assert snapshot.successes == 3
        assert snapshot.total_time == pytest.approx(0.6)
        assert snapshot.average_time == pytest.approx(0.2)

    def test_failures_do_not_move_average(self):
        """Test failed attempts never change average latency."""
        metrics = MetricsAccumulator()
        metrics.record_success(1.0)
        metrics.record_failure()
        assert metrics.average_time == pytest.approx(1.0)

    def test_snapshot_is_a_copy(self):
        """Test snapshots are detached from later updates."""
        metrics = MetricsAccumulator()
        snapshot = metrics.snapshot()
        metrics.record_success(0.5)
        assert snapshot.total_requests == 0

    def test_reset(self):
        """Test reset clears counts and latency."""
        metrics = MetricsAccumulator()
        metrics.record_success(1.0)
        metrics.record_failure()

        metrics.reset()
        assert metrics.total_requests == 0
        assert metrics.errors == 0
        assert metrics.average_time == 0.0


class TestEstimates:
    """Test time and memory estimates."""

    def test_estimate_fetch_time(self):
        assert estimate_fetch_time(1000, 250, 0.5, 0.1) == pytest.approx(2.4)
        assert estimate_fetch_time(1001, 250, 1.0, 0.0) == pytest.approx(5.0)
        assert estimate_fetch_time(0, 250, 1.0, 0.0) == 0.0

    def test_format_duration(self):
        assert format_duration(12.4) == "12s"
        assert format_duration(59) == "59s"
        assert format_duration(600) == "10m"

    def test_estimate_memory_mb(self):
        items = [{"id": i, "name": "x" * 100} for i in range(1000)]
        estimate = estimate_memory_mb(items)
        assert 0.1 < estimate < 0.2
        assert estimate_memory_mb([]) == 0.0

    def test_estimate_memory_mb_unserializable(self):
        """Test items without a JSON form fall back to repr."""
        assert estimate_memory_mb([object()]) > 0
