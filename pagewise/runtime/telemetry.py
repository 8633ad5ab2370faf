"""Structured logging for retrieval operations.

This module provides telemetry hooks for the retrieval engine, emitting
structured log records (event name as the message, fields in ``extra``)
so callers can route them to any log pipeline.
"""

from __future__ import annotations

import logging
from typing import Any

from ..models.result import RetrievalResult

logger = logging.getLogger(__name__)


def log_sample_acquired(
    *,
    fetcher: str,
    items: int,
    total_items: int,
    total_pages: int,
    latency_ms: float | None = None,
) -> None:
    """Log a successful sample request.

    Args:
        fetcher: Fetcher name
        items: Items in the sample
        total_items: Dataset size derived from the sample
        total_pages: Page count derived from the sample
        latency_ms: Sample latency in milliseconds (optional)
    """
    logger.info(
        "sample_acquired",
        extra={
            "fetcher": fetcher,
            "items": items,
            "total_items": total_items,
            "total_pages": total_pages,
            "latency_ms": latency_ms,
        },
    )


def log_decision(
    *,
    fetcher: str,
    decision: str,
    total_items: int,
    intended_use: str,
    force_complete: bool,
) -> None:
    """Log the engine's decision after the sample.

    Args:
        fetcher: Fetcher name
        decision: "complete", "confirmation_required", "sample" or "fetch_remaining"
        total_items: Dataset size derived from the sample
        intended_use: Caller intent
        force_complete: Whether the caller bypassed the confirmation gate
    """
    logger.info(
        "retrieval_decision",
        extra={
            "fetcher": fetcher,
            "decision": decision,
            "total_items": total_items,
            "intended_use": intended_use,
            "force_complete": force_complete,
        },
    )


def log_page_plan(
    *,
    total_pages: int,
    planned_pages: int,
    page_size: int,
    first_page: int | None,
    skip: int,
) -> None:
    logger.debug(
        "page_plan_created",
        extra={
            "total_pages": total_pages,
            "planned_pages": planned_pages,
            "page_size": page_size,
            "first_page": first_page,
            "skip": skip,
        },
    )


def log_page_completed(
    *,
    fetcher: str,
    page: int,
    items: int,
    latency_ms: float | None = None,
) -> None:
    """Log completion of a single page.

    Args:
        fetcher: Fetcher name
        page: Page number
        items: Items kept from this page
        latency_ms: Time spent on the page in milliseconds, retries included
    """
    logger.info(
        "page_completed",
        extra={
            "fetcher": fetcher,
            "page": page,
            "items": items,
            "latency_ms": latency_ms,
        },
    )


def log_page_failed(
    *,
    fetcher: str,
    page: int,
    error_type: str,
    error_message: str,
) -> None:
    """Log a page that failed after all retries.

    Args:
        fetcher: Fetcher name
        page: Page number (1 for the sample)
        error_type: Exception class name
        error_message: Exception message
    """
    logger.error(
        "page_failed",
        extra={
            "fetcher": fetcher,
            "page": page,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_retry_scheduled(
    *,
    attempt: int,
    max_attempts: int,
    delay: float,
    error_type: str,
    error_message: str,
) -> None:
    logger.warning(
        "retry_scheduled",
        extra={
            "attempt": attempt,
            "max_attempts": max_attempts,
            "delay": delay,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_retrieval_aborted(*, fetcher: str, failed_pages: int, attempted_pages: int) -> None:
    logger.warning(
        "retrieval_aborted",
        extra={
            "fetcher": fetcher,
            "failed_pages": failed_pages,
            "attempted_pages": attempted_pages,
        },
    )


def log_token_rejected(*, reason: str) -> None:
    logger.warning("continuation_token_rejected", extra={"reason": reason})


def log_retrieval_complete(
    *,
    fetcher: str,
    result: RetrievalResult,
    extra_fields: dict[str, Any] | None = None,
) -> None:
    """Log the final result of a retrieve or resume call.

    Args:
        fetcher: Fetcher name
        result: Result handed back to the caller
        extra_fields: Additional fields to attach (optional)
    """
    logger.info(
        "retrieval_complete",
        extra={
            "fetcher": fetcher,
            "status": result.status.value,
            "items_retrieved": result.items_retrieved,
            "total_items": result.total_items,
            "pages_processed": result.pages_processed,
            "failed_pages": len(result.failed_pages),
            "request_count": result.request_count,
            "execution_time": result.execution_time,
            **(extra_fields or {}),
        },
    )
