"""Page planning for the complete retrieval loop.

The sample is fetched with ``sample_limit`` items per page, while the rest
of the dataset is fetched with a page size tuned to the dataset. Page
numbers only line up when both sizes match, so the planner re-aligns the
plan: the first planned page is the one that contains the first item not
already held, and ``skip`` says how many of its leading items are already
held. With equal sizes this reduces to pages ``2..N`` with nothing skipped.
"""

from __future__ import annotations

from dataclasses import dataclass

from .telemetry import log_page_plan


@dataclass(frozen=True)
class PagePlan:
    """Plan for a single page request.

    Attributes:
        page: One-based page number sent to the fetcher
        limit: Page size sent to the fetcher
        skip: Leading items of this page that are already held
    """

    page: int
    limit: int
    skip: int = 0


class PagePlanner:
    """Plans the pages left to fetch after the sample."""

    def __init__(self, *, page_size: int, sample_limit: int) -> None:
        if page_size < 1 or sample_limit < 1:
            raise ValueError("page_size and sample_limit must be positive")
        self._page_size = page_size
        self._sample_limit = sample_limit

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def aligned(self) -> bool:
        """Whether loop pages share numbering with the sample page."""
        return self._page_size == self._sample_limit

    def total_pages(self, total_items: int, reported_pages: int | None = None) -> int:
        """Pages in the dataset at this planner's page size.

        A page count reported by the remote is authoritative, but it was
        computed for the sample's page size so it only applies when aligned.
        """
        if self.aligned and reported_pages is not None:
            return reported_pages
        if total_items <= 0:
            return 0
        return -(-total_items // self._page_size)

    def plan(
        self,
        *,
        held_items: int,
        total_items: int,
        reported_pages: int | None = None,
    ) -> list[PagePlan]:
        """Plan every page still needed after ``held_items`` items.

        Args:
            held_items: Items already retrieved (the sample)
            total_items: Dataset size reported by the remote
            reported_pages: Page count reported by the remote, if any

        Returns:
            Page plans in ascending page order (possibly empty)
        """
        total_pages = self.total_pages(total_items, reported_pages)
        if self.aligned:
            first_page, skip = 2, 0
        else:
            first_page = held_items // self._page_size + 1
            skip = held_items - (first_page - 1) * self._page_size

        plans = [
            PagePlan(page=page, limit=self._page_size, skip=skip if page == first_page else 0)
            for page in range(first_page, total_pages + 1)
        ]
        log_page_plan(
            total_pages=total_pages,
            planned_pages=len(plans),
            page_size=self._page_size,
            first_page=plans[0].page if plans else None,
            skip=skip,
        )
        return plans

    def extend(self, *, after_page: int, total_pages: int) -> list[PagePlan]:
        """Plans for pages after ``after_page`` up to a revised page count."""
        return [
            PagePlan(page=page, limit=self._page_size)
            for page in range(after_page + 1, total_pages + 1)
        ]
