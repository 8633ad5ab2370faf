"""Retrieval configuration and dataset presets.

RetrievalConfig is an immutable policy object handed to the engine at
construction, in the same way chunk and weight policies describe an
endpoint's limits. All durations are in seconds.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

from .exceptions import ConfigError


@dataclass(frozen=True)
class RetrievalConfig:
    """Immutable configuration for a RetrievalEngine.

    Attributes:
        initial_sample_size: Items requested for the first (sample) page
        max_sample_size: Largest dataset an exploring caller receives without confirmation
        large_dataset_threshold: Totals above this always require confirmation
        huge_dataset_threshold: Totals above this trigger memory warnings and export confirmation
        max_page_size: Largest page size ever requested
        request_delay: Pause between successful page requests
        request_timeout: Timeout for a single fetch attempt
        max_retries: Attempts per page, including the first one
        retry_base_delay: Linear backoff unit (attempt N waits N * retry_base_delay)
        require_confirmation: Whether large datasets are gated behind confirmation
        max_concurrent_requests: Page requests allowed in flight at once (1 = sequential)
    """

    initial_sample_size: int = 100
    max_sample_size: int = 500
    large_dataset_threshold: int = 1000
    huge_dataset_threshold: int = 10000
    max_page_size: int = 500
    request_delay: float = 0.1
    request_timeout: float = 30.0
    max_retries: int = 3
    retry_base_delay: float = 1.0
    require_confirmation: bool = True
    max_concurrent_requests: int = 1

    def __post_init__(self) -> None:
        """Validate configuration invariants."""
        for name in (
            "initial_sample_size",
            "max_sample_size",
            "large_dataset_threshold",
            "huge_dataset_threshold",
            "max_page_size",
            "max_retries",
            "max_concurrent_requests",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")

        for name in ("request_delay", "retry_base_delay"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} cannot be negative")
        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be greater than zero")

        if self.initial_sample_size > self.max_page_size:
            raise ConfigError(
                f"initial_sample_size ({self.initial_sample_size}) cannot exceed "
                f"max_page_size ({self.max_page_size})"
            )
        if self.large_dataset_threshold >= self.huge_dataset_threshold:
            raise ConfigError(
                f"large_dataset_threshold ({self.large_dataset_threshold}) must be lower than "
                f"huge_dataset_threshold ({self.huge_dataset_threshold})"
            )

    @property
    def sample_size(self) -> int:
        """Page size used for the sample request."""
        return min(self.initial_sample_size, self.max_page_size)

    def merged(self, **overrides: Any) -> RetrievalConfig:
        """Return a validated copy with the given fields replaced.

        Raises:
            ConfigError: If an override names an unknown field or breaks an invariant
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration field(s): {', '.join(unknown)}")
        return replace(self, **overrides)


DEFAULT_CONFIG = RetrievalConfig()

# Offer catalogues are small and browsed interactively
OFFERS_CONFIG = RetrievalConfig(initial_sample_size=50, large_dataset_threshold=500)

# Statistics rows are analysed in bulk
STATS_CONFIG = RetrievalConfig(initial_sample_size=100, large_dataset_threshold=1000)
