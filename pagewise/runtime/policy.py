"""Size-based decision policy.

Every function here is pure: the outcome depends only on the configuration
and the numbers passed in, which keeps the confirmation gate easy to test
and monotonic in the dataset size.
"""

from __future__ import annotations

from ..core.config import RetrievalConfig
from ..core.enums import IntendedUse

# Sampled items needed before a sample can stand in for the dataset
EXPLORE_SUFFICIENT_ITEMS = 50
MONITOR_SUFFICIENT_ITEMS = 20

SMALL_DATASET_ITEMS = 1000
MEDIUM_DATASET_ITEMS = 10000
SMALL_DATASET_PAGE_SIZE = 100
MEDIUM_DATASET_PAGE_SIZE = 250

# Post-fetch advice thresholds
SLOW_FETCH_SECONDS = 30.0
CACHE_WORTHY_ITEMS = 10000
SLOW_RESPONSE_ITEMS = 5000


def needs_confirmation(
    config: RetrievalConfig, total_items: int, intended_use: IntendedUse | str
) -> bool:
    """Whether fetching ``total_items`` needs the caller's explicit consent.

    Large datasets always do. Exploring callers are also stopped once the
    dataset outgrows ``max_sample_size``, exporting callers only once it is
    huge.
    """
    if not config.require_confirmation:
        return False
    use = IntendedUse.from_str(intended_use)
    if total_items > config.large_dataset_threshold:
        return True
    if use is IntendedUse.EXPLORE and total_items > config.max_sample_size:
        return True
    if use is IntendedUse.EXPORT and total_items > config.huge_dataset_threshold:
        return True
    return False


def sample_is_sufficient(intended_use: IntendedUse | str, sample_item_count: int) -> bool:
    """Whether the sample alone satisfies the caller's intent."""
    use = IntendedUse.from_str(intended_use)
    if use.requires_completeness:
        return False
    if use is IntendedUse.EXPLORE:
        return sample_item_count >= EXPLORE_SUFFICIENT_ITEMS
    if use is IntendedUse.MONITOR:
        return sample_item_count >= MONITOR_SUFFICIENT_ITEMS
    return False


def optimal_page_size(config: RetrievalConfig, total_items: int) -> int:
    """Page size for the complete retrieval loop, tiered by dataset size."""
    if total_items < SMALL_DATASET_ITEMS:
        return min(SMALL_DATASET_PAGE_SIZE, config.max_page_size)
    if total_items < MEDIUM_DATASET_ITEMS:
        return min(MEDIUM_DATASET_PAGE_SIZE, config.max_page_size)
    return config.max_page_size


def dataset_size_label(config: RetrievalConfig, total_items: int) -> str:
    if total_items > config.huge_dataset_threshold:
        return "huge"
    if total_items > config.large_dataset_threshold:
        return "large"
    return "moderate"


def confirmation_recommendations(
    config: RetrievalConfig,
    total_items: int,
    intended_use: IntendedUse | str,
    sample_item_count: int,
) -> list[str]:
    """Advice shown alongside a ``confirmation_required`` result."""
    use = IntendedUse.from_str(intended_use)
    recommendations: list[str] = []
    if use is IntendedUse.EXPLORE and sample_item_count > EXPLORE_SUFFICIENT_ITEMS:
        recommendations.append("Sample may be sufficient for exploration")
    if total_items > config.huge_dataset_threshold:
        recommendations.append("Consider adding filters to reduce dataset size")
        recommendations.append("Fetch in smaller batches to limit memory usage")
    if total_items > SLOW_RESPONSE_ITEMS:
        recommendations.append("Large dataset - expect slower response times")
    recommendations.append("Resume with the continuation token to fetch the rest")
    recommendations.append("You can stop here and work with the sample data")
    return recommendations


def sample_recommendations() -> list[str]:
    """Advice shown alongside a ``sample`` result."""
    return [
        "Sample data is sufficient for exploration",
        "Resume with the continuation token if you need the complete dataset",
    ]


def post_fetch_recommendations(
    item_count: int, execution_time: float, failed_pages: int, aborted: bool = False
) -> list[str]:
    """Advice shown after complete retrieval."""
    recommendations: list[str] = []
    if execution_time > SLOW_FETCH_SECONDS:
        recommendations.append("Consider using filters to reduce fetch time")
    if failed_pages:
        recommendations.append("Some requests failed - check data completeness")
    if aborted:
        recommendations.append("Retry later; most page requests were failing")
    if item_count > CACHE_WORTHY_ITEMS:
        recommendations.append("Large dataset retrieved - consider caching results")
    return recommendations


def sample_failure_recommendations() -> list[str]:
    return [
        "Check API connectivity",
        "Verify parameters",
        "Try with a simpler query",
    ]
