"""Retrieval result model returned at every decision point."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..core.enums import ErrorKind, RetrievalStatus


class RetrievalResult(BaseModel):
    """Outcome of a retrieve or resume call.

    A fresh result is built at each decision point (sample acquired,
    confirmation required, complete, failed) and never mutated afterwards.
    Timings are in seconds.
    """

    status: RetrievalStatus
    message: str = ""

    # Data
    items: list[Any] = Field(default_factory=list)
    sample_items: list[Any] = Field(default_factory=list)

    # Pagination
    total_items: int = Field(default=0, ge=0)
    total_pages: int = Field(default=0, ge=0)
    items_retrieved: int = Field(default=0, ge=0)
    pages_processed: int = Field(default=0, ge=0)

    # Performance
    execution_time: float = Field(default=0.0, ge=0)
    request_count: int = Field(default=0, ge=0)
    average_request_time: float = Field(default=0.0, ge=0)

    # Decision support
    estimated_full_time: float | None = None
    estimated_memory_mb: float | None = None
    recommendations: list[str] = Field(default_factory=list)

    # Continuation
    can_continue: bool = False
    continuation_token: str | None = None

    # Errors
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    error_kind: ErrorKind | None = None
    failed_pages: list[int] = Field(default_factory=list)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(frozen=True)

    @property
    def is_partial(self) -> bool:
        """True when some pages could not be retrieved."""
        return bool(self.failed_pages)

    @property
    def has_more(self) -> bool:
        """True when the dataset holds more items than were retrieved."""
        return self.total_items > self.items_retrieved

    @classmethod
    def failure(
        cls,
        message: str,
        *,
        errors: list[str],
        error_kind: ErrorKind,
        recommendations: list[str] | None = None,
        execution_time: float = 0.0,
        request_count: int = 0,
        average_request_time: float = 0.0,
    ) -> RetrievalResult:
        """Build an ``error`` result that carries no data."""
        return cls(
            status=RetrievalStatus.ERROR,
            message=message,
            execution_time=execution_time,
            request_count=request_count,
            average_request_time=average_request_time,
            recommendations=recommendations or [],
            errors=errors,
            error_kind=error_kind,
        )
