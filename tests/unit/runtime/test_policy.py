"""Unit tests for the size-based decision policy."""

from __future__ import annotations

import pytest

from pagewise.core import IntendedUse, RetrievalConfig
from pagewise.runtime import policy


@pytest.fixture
def config() -> RetrievalConfig:
    return RetrievalConfig()


class TestNeedsConfirmation:
    """Test the confirmation gate."""

    def test_large_dataset_always_gated(self, config):
        """Test every intent is gated above the large threshold."""
        for use in IntendedUse:
            assert policy.needs_confirmation(config, 1001, use)

    def test_explore_gated_above_max_sample(self, config):
        """Test exploring stops once the dataset outgrows max_sample_size."""
        assert not policy.needs_confirmation(config, 500, "explore")
        assert policy.needs_confirmation(config, 501, "explore")
        assert not policy.needs_confirmation(config, 501, "analyze")

    def test_disabled(self):
        """Test require_confirmation=False disables the gate."""
        config = RetrievalConfig(require_confirmation=False)
        assert not policy.needs_confirmation(config, 1_000_000, IntendedUse.EXPORT)

    @pytest.mark.parametrize("use", list(IntendedUse))
    def test_monotonic_in_dataset_size(self, config, use):
        """Test growing a dataset never lifts the gate."""
        sizes = [0, 10, 100, 499, 500, 501, 999, 1000, 1001, 5000, 10000, 10001, 10**6]
        gated = [policy.needs_confirmation(config, n, use) for n in sizes]
        first = gated.index(True) if True in gated else len(gated)
        assert all(gated[first:])


class TestSampleIsSufficient:
    """Test sample sufficiency per intent."""

    def test_explore(self):
        assert policy.sample_is_sufficient("explore", 50)
        assert not policy.sample_is_sufficient("explore", 49)

    def test_monitor(self):
        assert policy.sample_is_sufficient(IntendedUse.MONITOR, 20)
        assert not policy.sample_is_sufficient(IntendedUse.MONITOR, 19)

    def test_complete_intents_never_sufficient(self):
        """Test analyze and export always need the whole dataset."""
        assert not policy.sample_is_sufficient("analyze", 10**6)
        assert not policy.sample_is_sufficient("export", 10**6)


class TestOptimalPageSize:
    """Test page size tiers."""

    def test_tiers(self, config):
        assert policy.optimal_page_size(config, 999) == 100
        assert policy.optimal_page_size(config, 1000) == 250
        assert policy.optimal_page_size(config, 9999) == 250
        assert policy.optimal_page_size(config, 10000) == 500

    def test_capped_by_max_page_size(self):
        """Test the configured maximum caps every tier."""
        config = RetrievalConfig(initial_sample_size=50, max_page_size=50)
        assert policy.optimal_page_size(config, 10) == 50
        assert policy.optimal_page_size(config, 50000) == 50


class TestRecommendations:
    """Test advice lists."""

    def test_dataset_size_label(self, config):
        assert policy.dataset_size_label(config, 500) == "moderate"
        assert policy.dataset_size_label(config, 5000) == "large"
        assert policy.dataset_size_label(config, 50000) == "huge"

    def test_confirmation_recommendations_huge(self, config):
        recommendations = policy.confirmation_recommendations(config, 50000, "explore", 100)
        assert "Sample may be sufficient for exploration" in recommendations
        assert "Consider adding filters to reduce dataset size" in recommendations
        assert "Large dataset - expect slower response times" in recommendations

    def test_post_fetch_recommendations(self):
        assert policy.post_fetch_recommendations(10, 1.0, 0) == []
        recommendations = policy.post_fetch_recommendations(20000, 45.0, 2, aborted=True)
        assert len(recommendations) == 4
