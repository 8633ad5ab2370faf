#!/usr/bin/env python3
"""Walk through sample, confirmation and resume against an in-memory dataset."""

from __future__ import annotations

import argparse
import asyncio
import logging
import random

from pagewise import RetrievalEngine, RetrievalStatus, fetcher

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Progressive retrieval of a synthetic dataset")
    p.add_argument("size", nargs="?", type=int, default=2500, help="Items in the dataset")
    p.add_argument(
        "intent",
        nargs="?",
        default="explore",
        choices=["explore", "analyze", "export", "monitor"],
    )
    p.add_argument("--failure-rate", type=float, default=0.0, help="Chance a request fails")
    p.add_argument("--concurrency", type=int, default=1)
    p.add_argument("--yes", action="store_true", help="Confirm large fetches automatically")
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    rows = [{"id": i, "price": round(random.uniform(5, 500), 2)} for i in range(args.size)]

    @fetcher("synthetic_offers")
    async def fetch_offers(page, limit, params):
        await asyncio.sleep(0.01)
        if random.random() < args.failure_rate:
            raise ConnectionError("simulated outage")
        start = (page - 1) * limit
        return {"items": rows[start : start + limit], "total": len(rows)}

    def on_progress(update):
        print(
            f"page {update.page}/{update.total_pages} | {update.items_retrieved} items | "
            f"~{update.estimated_time_remaining:.1f}s left"
        )

    engine = RetrievalEngine(request_delay=0.0, max_concurrent_requests=args.concurrency)
    result = await engine.retrieve(fetch_offers, intended_use=args.intent, on_progress=on_progress)
    print(f"{result.status}: {result.message}")

    if result.status is RetrievalStatus.CONFIRMATION_REQUIRED and result.continuation_token:
        for recommendation in result.recommendations:
            print(f"  - {recommendation}")
        if args.yes or input("Fetch everything? [y/N] ").strip().lower() == "y":
            result = await engine.resume(
                result.continuation_token, fetch_offers, on_progress=on_progress
            )
            print(f"{result.status}: {result.message}")

    for error in result.errors:
        logger.warning(error)
    metrics = engine.get_metrics()
    print(
        f"{result.items_retrieved}/{result.total_items} items | "
        f"{metrics.total_requests} requests ({metrics.errors} failed) | "
        f"avg {metrics.average_time * 1000:.1f}ms"
    )


if __name__ == "__main__":
    asyncio.run(main())
