"""Progressive dataset retrieval engine.

The RetrievalEngine pages through a remote dataset on behalf of a caller
that does not know how big the dataset is.

Architecture:
    retrieve() is a small state machine:
    1. Sample: fetch page 1 once (no retry) to learn the dataset size
    2. Decide: return the sample as-is, stop at the confirmation gate, or
       go on to fetch everything (see policy.py)
    3. Fetch remaining: page through the rest with per-page timeout, retry
       and linear backoff, spacing requests, skipping failed pages and
       aborting when more than half of the attempted pages failed
    Whenever the engine stops before the end it hands back a continuation
    token; resume() decodes it and re-enters step 3.

Design Decisions:
    - Results, not exceptions: every fetch or token failure is reported in
      the returned RetrievalResult (status, errors, error_kind)
    - Metrics are owned by the engine instance; each call also keeps its
      own accumulator so results report only their own requests
    - Sequential by default; max_concurrent_requests > 1 keeps a bounded
      number of page requests in flight and checks the abort ratio against
      completed pages
    - Fail-soft drift handling: when a later page reports a different total
      the plan is revised and a warning is attached

See Also:
    - policy.py: Confirmation gate and page size heuristics
    - planner.py: Page re-alignment after the sample
    - retry.py: Timeout/retry wrapper used for every request
    - continuation.py: Token codec
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any

from ..core.config import RetrievalConfig
from ..core.enums import ErrorKind, IntendedUse, RetrievalStatus
from ..core.exceptions import (
    FetcherRegistrationError,
    InvalidTokenError,
    TokenEncodingError,
    UnknownFetcherError,
)
from ..models.page import RetrievalPage, RetrievalRequest
from ..models.progress import ProgressUpdate
from ..models.result import RetrievalResult
from . import policy
from .continuation import ContinuationState, decode_token, encode_token
from .fetchers import FetcherRegistry, PageFetcher
from .metrics import (
    MetricsAccumulator,
    RequestMetrics,
    estimate_fetch_time,
    estimate_memory_mb,
    format_duration,
)
from .planner import PagePlan, PagePlanner
from .retry import fetch_with_retry
from .telemetry import (
    log_decision,
    log_page_completed,
    log_page_failed,
    log_retrieval_aborted,
    log_retrieval_complete,
    log_sample_acquired,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressUpdate], Awaitable[None] | None]

ABORT_FAILURE_RATIO = 0.5
ERROR_FAILURE_RATIO = 0.1

_PendingPages = dict[asyncio.Task[tuple[RetrievalPage, float]], PagePlan]


@dataclass
class _SampleState:
    """What the remaining-pages loop needs to know about the sample."""

    fetcher: PageFetcher
    params: dict[str, Any]
    sample_limit: int
    items: list[Any]
    total_items: int
    total_pages: int
    request_count: int = 0
    warnings: list[str] = field(default_factory=list)


class RetrievalEngine:
    """Samples, gates and retrieves paginated datasets.

    One engine may serve many calls. Calls on the same engine should not
    run concurrently unless the caller accepts interleaved metrics.
    """

    def __init__(self, config: RetrievalConfig | None = None, **overrides: Any) -> None:
        """Initialize the engine.

        Args:
            config: Base configuration (defaults to RetrievalConfig())
            **overrides: Individual fields to replace on the base configuration

        Raises:
            ConfigError: If the resulting configuration is invalid
        """
        base = config or RetrievalConfig()
        self._config = base.merged(**overrides) if overrides else base
        self._metrics = MetricsAccumulator()

    @property
    def config(self) -> RetrievalConfig:
        return self._config

    def update_config(self, **overrides: Any) -> RetrievalConfig:
        """Replace configuration fields; calls already running keep the old values."""
        self._config = self._config.merged(**overrides)
        return self._config

    def get_metrics(self) -> RequestMetrics:
        """Engine-wide request metrics since construction or the last reset."""
        return self._metrics.snapshot()

    def reset_metrics(self) -> None:
        self._metrics.reset()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def retrieve(
        self,
        fetcher: PageFetcher,
        params: Mapping[str, Any] | None = None,
        *,
        intended_use: IntendedUse | str = IntendedUse.EXPLORE,
        force_complete: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> RetrievalResult:
        """Sample the dataset, decide, and fetch the rest if warranted.

        Args:
            fetcher: Fetcher for the dataset
            params: Caller parameters passed unmodified to every fetch
            intended_use: explore, analyze, export or monitor
            force_complete: Skip the confirmation gate and the sample shortcut
            on_progress: Called (or awaited) after every retrieved page

        Returns:
            A ``sample``, ``confirmation_required``, ``complete`` or ``error`` result

        Raises:
            TypeError: If fetcher does not implement the fetcher contract
            ValueError: If intended_use is not a known intent
        """
        if not isinstance(fetcher, PageFetcher):
            raise TypeError(f"{type(fetcher).__name__} does not implement the fetcher contract")
        use = IntendedUse.from_str(intended_use)
        call_params = dict(params or {})
        config = self._config
        started = perf_counter()
        call_metrics = MetricsAccumulator()

        request = RetrievalRequest(page=1, limit=config.sample_size, params=call_params)
        sample_started = perf_counter()
        try:
            page = await fetch_with_retry(
                lambda: _fetch_page(fetcher, request),
                max_attempts=1,
                timeout=config.request_timeout,
                base_delay=0.0,
                metrics=(self._metrics, call_metrics),
            )
        except Exception as e:
            log_page_failed(
                fetcher=fetcher.name, page=1, error_type=type(e).__name__, error_message=str(e)
            )
            result = RetrievalResult.failure(
                f"Failed to get sample: {_describe(e)}",
                errors=[_describe(e)],
                error_kind=ErrorKind.SAMPLE_FETCH_FAILURE,
                recommendations=policy.sample_failure_recommendations(),
                execution_time=perf_counter() - started,
                request_count=call_metrics.total_requests,
                average_request_time=call_metrics.average_time,
            )
            log_retrieval_complete(fetcher=fetcher.name, result=result)
            return result

        sample = _sample_state(fetcher, call_params, config.sample_size, page)
        sample.request_count = call_metrics.total_requests
        log_sample_acquired(
            fetcher=fetcher.name,
            items=len(sample.items),
            total_items=sample.total_items,
            total_pages=sample.total_pages,
            latency_ms=(perf_counter() - sample_started) * 1000.0,
        )

        try:
            result = await self._decide(
                sample,
                config=config,
                use=use,
                force_complete=force_complete,
                on_progress=on_progress,
                started=started,
                call_metrics=call_metrics,
            )
        except Exception as e:
            logger.exception("Unexpected failure after sample from '%s'", fetcher.name)
            result = RetrievalResult.failure(
                f"Retrieval failed: {_describe(e)}",
                errors=[_describe(e)],
                error_kind=ErrorKind.PAGE_FETCH_FAILURE,
                execution_time=perf_counter() - started,
                request_count=call_metrics.total_requests,
                average_request_time=call_metrics.average_time,
            )
        log_retrieval_complete(fetcher=fetcher.name, result=result)
        return result

    async def resume(
        self,
        token: str,
        fetchers: FetcherRegistry | Mapping[str, PageFetcher] | Iterable[PageFetcher] | PageFetcher,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> RetrievalResult:
        """Fetch the rest of a dataset from a continuation token.

        Args:
            token: Token from a ``sample`` or ``confirmation_required`` result
            fetchers: Registry (or mapping/iterable) holding the fetcher the token names
            on_progress: Called (or awaited) after every retrieved page

        Returns:
            A ``complete`` or ``error`` result. Malformed tokens yield
            ``error_kind=invalid_continuation_token``. Unknown fetcher names and
            fetcher collections that do not form a registry (duplicate names,
            mapping keys that differ from fetcher names) yield
            ``error_kind=unknown_fetcher``.
        """
        started = perf_counter()
        try:
            state = decode_token(token)
        except InvalidTokenError as e:
            return RetrievalResult.failure(
                f"Failed to continue from token: {e}",
                errors=[str(e)],
                error_kind=ErrorKind.INVALID_CONTINUATION_TOKEN,
                recommendations=[
                    "The token may be truncated or from another library version",
                    "Start a new retrieval to get a fresh token",
                ],
                execution_time=perf_counter() - started,
            )

        if isinstance(fetchers, PageFetcher):
            fetchers = [fetchers]
        try:
            fetcher = FetcherRegistry.coerce(fetchers).get(state.fetcher_name)
        except (FetcherRegistrationError, UnknownFetcherError) as e:
            return RetrievalResult.failure(
                f"Failed to continue from token: {e}",
                errors=[str(e)],
                error_kind=ErrorKind.UNKNOWN_FETCHER,
                recommendations=[f"Register a fetcher named '{state.fetcher_name}' and retry"],
                execution_time=perf_counter() - started,
            )

        sample = _SampleState(
            fetcher=fetcher,
            params=dict(state.params),
            sample_limit=state.sample_limit,
            items=list(state.sample.items),
            total_items=state.sample.total_items,
            total_pages=state.sample.total_pages,
            request_count=state.sample.request_count,
            warnings=list(state.sample.warnings),
        )
        call_metrics = MetricsAccumulator()
        try:
            result = await self._fetch_remaining(
                sample,
                config=self._config,
                on_progress=on_progress,
                started=started,
                call_metrics=call_metrics,
            )
        except Exception as e:
            logger.exception("Unexpected failure resuming '%s'", fetcher.name)
            result = RetrievalResult.failure(
                f"Retrieval failed: {_describe(e)}",
                errors=[_describe(e)],
                error_kind=ErrorKind.PAGE_FETCH_FAILURE,
                execution_time=perf_counter() - started,
                request_count=sample.request_count + call_metrics.total_requests,
                average_request_time=call_metrics.average_time,
            )
        log_retrieval_complete(fetcher=fetcher.name, result=result, extra_fields={"resumed": True})
        return result

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    async def _decide(
        self,
        sample: _SampleState,
        *,
        config: RetrievalConfig,
        use: IntendedUse,
        force_complete: bool,
        on_progress: ProgressCallback | None,
        started: float,
        call_metrics: MetricsAccumulator,
    ) -> RetrievalResult:
        fetcher_name = sample.fetcher.name
        total = sample.total_items
        sampled = len(sample.items)
        base = _sample_fields(sample, call_metrics, started)

        if sample.total_pages <= 1:
            log_decision(
                fetcher=fetcher_name,
                decision="complete",
                total_items=total,
                intended_use=use.value,
                force_complete=force_complete,
            )
            return RetrievalResult(
                **base,
                status=RetrievalStatus.COMPLETE,
                message=f"Retrieved complete dataset of {sampled} items in a single request",
                estimated_memory_mb=estimate_memory_mb(sample.items),
                recommendations=policy.post_fetch_recommendations(
                    sampled, base["execution_time"], failed_pages=0
                ),
            )

        if not force_complete and policy.needs_confirmation(config, total, use):
            log_decision(
                fetcher=fetcher_name,
                decision="confirmation_required",
                total_items=total,
                intended_use=use.value,
                force_complete=force_complete,
            )
            estimate = estimate_fetch_time(
                total,
                policy.optimal_page_size(config, total),
                self._metrics.average_time,
                config.request_delay,
            )
            token, warnings = self._continuation(sample, base)
            label = policy.dataset_size_label(config, total)
            return RetrievalResult(
                **{**base, "warnings": base["warnings"] + warnings},
                status=RetrievalStatus.CONFIRMATION_REQUIRED,
                message=(
                    f"Found {total} items ({label} dataset). "
                    f"Estimated time: {format_duration(estimate)}. "
                    "Continue with full fetch?"
                ),
                estimated_full_time=estimate,
                recommendations=policy.confirmation_recommendations(config, total, use, sampled),
                can_continue=token is not None,
                continuation_token=token,
            )

        if not force_complete and policy.sample_is_sufficient(use, sampled):
            log_decision(
                fetcher=fetcher_name,
                decision="sample",
                total_items=total,
                intended_use=use.value,
                force_complete=force_complete,
            )
            token, warnings = self._continuation(sample, base)
            return RetrievalResult(
                **{**base, "warnings": base["warnings"] + warnings},
                status=RetrievalStatus.SAMPLE,
                message=f"Retrieved sample of {sampled} items ({total} total available)",
                recommendations=policy.sample_recommendations(),
                can_continue=token is not None,
                continuation_token=token,
            )

        log_decision(
            fetcher=fetcher_name,
            decision="fetch_remaining",
            total_items=total,
            intended_use=use.value,
            force_complete=force_complete,
        )
        return await self._fetch_remaining(
            sample,
            config=config,
            on_progress=on_progress,
            started=started,
            call_metrics=call_metrics,
            count_sample_requests=False,
        )

    def _continuation(
        self, sample: _SampleState, base: dict[str, Any]
    ) -> tuple[str | None, list[str]]:
        """Encode a token for the sample, degrading to no token on failure."""
        state = ContinuationState(
            fetcher_name=sample.fetcher.name,
            params=sample.params,
            sample_limit=sample.sample_limit,
            sample=RetrievalResult(**base, status=RetrievalStatus.SAMPLE),
        )
        try:
            return encode_token(state), []
        except TokenEncodingError as e:
            logger.warning("Could not create continuation token for '%s': %s", sample.fetcher.name, e)
            return None, [f"Continuation unavailable: {e}"]

    # ------------------------------------------------------------------
    # Complete retrieval
    # ------------------------------------------------------------------

    async def _fetch_remaining(
        self,
        sample: _SampleState,
        *,
        config: RetrievalConfig,
        on_progress: ProgressCallback | None,
        started: float,
        call_metrics: MetricsAccumulator,
        count_sample_requests: bool = True,
    ) -> RetrievalResult:
        """Fetch every page after the sample and build the final result.

        Args:
            count_sample_requests: Add the sample's request count to the
                result (resume) rather than relying on call_metrics having
                seen the sample request (retrieve)
        """
        fetcher = sample.fetcher
        total_items = sample.total_items
        page_size = policy.optimal_page_size(config, total_items)
        planner = PagePlanner(page_size=page_size, sample_limit=sample.sample_limit)
        plans = deque(
            planner.plan(
                held_items=len(sample.items),
                total_items=total_items,
                reported_pages=sample.total_pages,
            )
        )
        total_pages = planner.total_pages(total_items, sample.total_pages)
        concurrency = config.max_concurrent_requests

        pages: dict[int, list[Any]] = {}
        failures: dict[int, str] = {}
        warnings: list[str] = list(sample.warnings)
        retrieved = len(sample.items)
        attempted = 1  # the sample page
        launched = 0
        aborted = False
        memory_warned = False
        drift_warned = False
        last_ok = False
        stop_after: int | None = None
        pending: _PendingPages = {}

        def can_launch() -> bool:
            return (
                bool(plans)
                and not aborted
                and len(pending) < concurrency
                and (stop_after is None or plans[0].page <= stop_after)
            )

        try:
            while True:
                while can_launch():
                    plan = plans.popleft()
                    if launched and config.request_delay > 0 and (concurrency > 1 or last_ok):
                        await asyncio.sleep(config.request_delay)
                    task = asyncio.create_task(
                        self._request_page(fetcher, sample.params, plan, config, call_metrics)
                    )
                    pending[task] = plan
                    launched += 1

                if not pending:
                    break

                done, _ = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in sorted(done, key=lambda t: pending[t].page):
                    plan = pending.pop(task)
                    if stop_after is not None and plan.page > stop_after:
                        # Launched before the end of the dataset was known
                        continue
                    attempted += 1
                    try:
                        page, latency = task.result()
                    except Exception as e:
                        last_ok = False
                        failures[plan.page] = f"Error on page {plan.page}: {_describe(e)}"
                        log_page_failed(
                            fetcher=fetcher.name,
                            page=plan.page,
                            error_type=type(e).__name__,
                            error_message=str(e),
                        )
                        if len(failures) > attempted * ABORT_FAILURE_RATIO:
                            aborted = True
                        continue

                    last_ok = True
                    kept = page.items[plan.skip :]
                    pages[plan.page] = kept
                    retrieved += len(kept)
                    log_page_completed(
                        fetcher=fetcher.name,
                        page=plan.page,
                        items=len(kept),
                        latency_ms=latency * 1000.0,
                    )

                    if page.has_next is False:
                        stop_after = plan.page
                        beyond = [p for p in (*pages, *failures) if p > stop_after]
                        for page_number in beyond:
                            retrieved -= len(pages.pop(page_number, ()))
                            failures.pop(page_number, None)
                        attempted -= len(beyond)

                    if page.total is not None and page.total != total_items:
                        if not drift_warned:
                            warnings.append(
                                f"Dataset size changed during retrieval "
                                f"({total_items} -> {page.total} items); plan revised"
                            )
                            drift_warned = True
                        total_items = page.total
                        revised = planner.total_pages(total_items, page.total_pages)
                        if revised > total_pages:
                            plans.extend(planner.extend(after_page=total_pages, total_pages=revised))
                        else:
                            plans = deque(p for p in plans if p.page <= revised)
                        total_pages = revised

                    if retrieved > config.huge_dataset_threshold and not memory_warned:
                        warnings.append(
                            f"Large dataset ({retrieved} items) - consider applying "
                            "filters or working from a sample"
                        )
                        memory_warned = True

                    if on_progress is not None:
                        remaining = len(plans) + len(pending)
                        await _emit_progress(
                            on_progress,
                            ProgressUpdate(
                                page=plan.page,
                                total_pages=total_pages,
                                items_retrieved=retrieved,
                                estimated_time_remaining=remaining
                                * (call_metrics.average_time + config.request_delay),
                            ),
                        )

                if aborted:
                    log_retrieval_aborted(
                        fetcher=fetcher.name, failed_pages=len(failures), attempted_pages=attempted
                    )
                    warnings.append(
                        "Stopped fetching due to multiple errors; retrieval is incomplete"
                    )
                    break
        finally:
            await _cancel_all(pending)

        items = list(sample.items)
        for page_number in sorted(pages):
            items.extend(pages[page_number])
        failed = sorted(failures)
        errors = [failures[page_number] for page_number in failed]

        execution_time = perf_counter() - started
        if len(failed) > attempted * ERROR_FAILURE_RATIO:
            status = RetrievalStatus.ERROR
        else:
            status = RetrievalStatus.COMPLETE
        if aborted:
            error_kind: ErrorKind | None = ErrorKind.ABORT_ERROR_RATE_EXCEEDED
        elif failed:
            error_kind = ErrorKind.PAGE_FETCH_FAILURE
        else:
            error_kind = None

        message = f"Retrieved {len(items)} items from {attempted} pages"
        if failed:
            message += f" with {len(failed)} failed page(s)"

        request_count = call_metrics.total_requests
        if count_sample_requests:
            request_count += sample.request_count

        return RetrievalResult(
            status=status,
            message=message,
            items=items,
            sample_items=list(sample.items),
            total_items=max(total_items, len(items)),
            total_pages=total_pages,
            items_retrieved=len(items),
            pages_processed=attempted,
            execution_time=execution_time,
            request_count=request_count,
            average_request_time=call_metrics.average_time,
            estimated_full_time=execution_time,
            estimated_memory_mb=estimate_memory_mb(items),
            recommendations=policy.post_fetch_recommendations(
                len(items), execution_time, len(failed), aborted=aborted
            ),
            can_continue=False,
            errors=errors,
            warnings=warnings,
            error_kind=error_kind,
            failed_pages=failed,
        )

    async def _request_page(
        self,
        fetcher: PageFetcher,
        params: dict[str, Any],
        plan: PagePlan,
        config: RetrievalConfig,
        call_metrics: MetricsAccumulator,
    ) -> tuple[RetrievalPage, float]:
        """Fetch one planned page; returns the page and seconds spent, retries included."""
        request = RetrievalRequest(page=plan.page, limit=plan.limit, params=params)
        started = perf_counter()
        page = await fetch_with_retry(
            lambda: _fetch_page(fetcher, request),
            max_attempts=config.max_retries,
            timeout=config.request_timeout,
            base_delay=config.retry_base_delay,
            metrics=(self._metrics, call_metrics),
        )
        return page, perf_counter() - started


async def _fetch_page(fetcher: PageFetcher, request: RetrievalRequest) -> RetrievalPage:
    return RetrievalPage.from_response(await fetcher.fetch(request))


def _sample_state(
    fetcher: PageFetcher, params: dict[str, Any], sample_limit: int, page: RetrievalPage
) -> _SampleState:
    """Derive dataset size from the sample page.

    Without any reported totals the sample is taken to be the whole dataset.
    """
    items = list(page.items)
    warnings: list[str] = []
    if page.total is not None:
        total_items = max(page.total, len(items))
    elif page.total_pages is not None and page.total_pages > 1:
        # Upper bound: every page full
        total_items = page.total_pages * sample_limit
    else:
        total_items = len(items)
        if page.has_next and not page.has_totals:
            warnings.append(
                "Remote reported more pages but no totals; only the first page was retrieved"
            )

    total_pages = page.page_count(sample_limit) if page.has_totals else (1 if items else 0)
    return _SampleState(
        fetcher=fetcher,
        params=params,
        sample_limit=sample_limit,
        items=items,
        total_items=total_items,
        total_pages=total_pages,
        warnings=warnings,
    )


def _sample_fields(
    sample: _SampleState, call_metrics: MetricsAccumulator, started: float
) -> dict[str, Any]:
    return {
        "items": list(sample.items),
        "sample_items": list(sample.items),
        "total_items": sample.total_items,
        "total_pages": sample.total_pages,
        "items_retrieved": len(sample.items),
        "pages_processed": 1,
        "execution_time": perf_counter() - started,
        "request_count": sample.request_count,
        "average_request_time": call_metrics.average_time,
        "warnings": list(sample.warnings),
    }


async def _emit_progress(callback: ProgressCallback, update: ProgressUpdate) -> None:
    try:
        outcome = callback(update)
        if inspect.isawaitable(outcome):
            await outcome
    except Exception:
        logger.warning("Progress callback failed for page %d", update.page, exc_info=True)


async def _cancel_all(pending: _PendingPages) -> None:
    if not pending:
        return
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)
    pending.clear()


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__
