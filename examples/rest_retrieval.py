#!/usr/bin/env python3
"""Retrieve a paginated JSON endpoint with RESTPageFetcher."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

from pagewise import HTTPClient, RESTPageFetcher, ResponseLayout, RetrievalEngine

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Page through a JSON endpoint")
    p.add_argument("base_url")
    p.add_argument("path")
    p.add_argument("--intent", default="explore")
    p.add_argument("--items-path", default="items")
    p.add_argument("--total-path", default="pagination.total")
    p.add_argument("--pages-path", default="pagination.pages")
    p.add_argument("--page-param", default="page")
    p.add_argument("--limit-param", default="limit")
    p.add_argument("--param", action="append", default=[], help="key=value query parameter")
    p.add_argument("--force", action="store_true", help="Skip the confirmation gate")
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    params = dict(item.split("=", 1) for item in args.param)
    layout = ResponseLayout(
        items=args.items_path,
        total=args.total_path or None,
        total_pages=args.pages_path or None,
    )

    async with HTTPClient(base_url=args.base_url) as client:
        endpoint = RESTPageFetcher(
            args.path.strip("/") or "root",
            client,
            args.path,
            layout=layout,
            page_param=args.page_param,
            limit_param=args.limit_param,
        )
        engine = RetrievalEngine()
        result = await engine.retrieve(
            endpoint, params, intended_use=args.intent, force_complete=args.force
        )

    print(json.dumps(result.model_dump(mode="json", exclude={"items", "sample_items"}), indent=2))
    print(f"First items: {result.items[:3]}")


if __name__ == "__main__":
    asyncio.run(main())
