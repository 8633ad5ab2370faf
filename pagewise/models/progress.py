"""Progress events emitted during complete retrieval."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ProgressUpdate:
    """Progress snapshot passed to the caller's progress callback.

    Attributes:
        page: Page number that just completed
        total_pages: Total pages planned for the dataset
        items_retrieved: Items accumulated so far, sample included
        estimated_time_remaining: Seconds left at the latest observed pace
    """

    page: int
    total_pages: int
    items_retrieved: int
    estimated_time_remaining: float

    @property
    def fraction_complete(self) -> float:
        """Share of pages done, between 0.0 and 1.0."""
        if self.total_pages <= 0:
            return 1.0
        return min(1.0, self.page / self.total_pages)
