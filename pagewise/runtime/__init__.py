"""Retrieval runtime: engine, policy, planning, retry, metrics and tokens."""

from .continuation import TOKEN_VERSION, ContinuationState, decode_token, encode_token
from .engine import RetrievalEngine
from .fetchers import CallableFetcher, FetcherRegistry, PageFetcher, fetcher
from .metrics import (
    MetricsAccumulator,
    RequestMetrics,
    estimate_fetch_time,
    estimate_memory_mb,
    format_duration,
)
from .planner import PagePlan, PagePlanner
from .policy import needs_confirmation, optimal_page_size, sample_is_sufficient
from .retry import backoff_delay, fetch_with_retry, is_retryable

__all__ = [
    "RetrievalEngine",
    "PageFetcher",
    "CallableFetcher",
    "FetcherRegistry",
    "fetcher",
    "MetricsAccumulator",
    "RequestMetrics",
    "estimate_fetch_time",
    "estimate_memory_mb",
    "format_duration",
    "PagePlan",
    "PagePlanner",
    "needs_confirmation",
    "sample_is_sufficient",
    "optimal_page_size",
    "fetch_with_retry",
    "is_retryable",
    "backoff_delay",
    "ContinuationState",
    "encode_token",
    "decode_token",
    "TOKEN_VERSION",
]
