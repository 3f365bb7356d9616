"""CLI script to ingest news feeds into Qdrant.

Usage:
    cd backend
    uv run python ../scripts/ingest_news.py
    uv run python ../scripts/ingest_news.py --feed https://feeds.bbci.co.uk/news/rss.xml
    uv run python ../scripts/ingest_news.py --stable-ids
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Add backend/src to path so imports work when run from backend/
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from src.config import settings
from src.dependencies import ServiceContainer
from src.logging_config import configure_logging
from src.models.news import IngestionReport
from src.services.vector_store import StoreWriteError


def print_report(report: IngestionReport) -> None:
    print(f"\nFeeds:    {report.feeds_total - report.feeds_failed}/{report.feeds_total} ok")
    for r in report.feed_results:
        status = f"{r.count} articles" if r.ok else f"FAILED ({r.error})"
        print(f"  {r.key}: {status}")
    print(
        f"Articles: {report.articles_fetched} fetched, "
        f"{report.articles_unique} unique, "
        f"{report.articles_indexed} indexed, "
        f"{report.articles_failed} failed"
    )
    print(f"Chunks:   {report.chunks_created}")
    print(
        f"Batches:  {report.batches_total - report.batches_failed}/"
        f"{report.batches_total} stored, {report.points_upserted} points"
    )
    print(f"\nDone! {report.succeeded} units succeeded, {report.failed} failed.")


async def run(feed_urls: list[str] | None, stable_ids: bool) -> IngestionReport:
    overrides = {}
    if feed_urls:
        overrides["feed_urls"] = feed_urls
    if stable_ids:
        overrides["stable_point_ids"] = True
    run_settings = settings.model_copy(update=overrides)

    services = ServiceContainer.from_settings(run_settings)
    pipeline = services.ingestion_pipeline()
    try:
        return await pipeline.run()
    finally:
        await pipeline.fetcher.aclose()
        await services.aclose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Ingest news feeds into Qdrant")
    parser.add_argument(
        "--feed",
        action="append",
        dest="feeds",
        help="Feed URL to ingest (repeatable; defaults to the configured feeds)",
    )
    parser.add_argument(
        "--stable-ids",
        action="store_true",
        help="Derive point ids from article guid so re-runs overwrite instead of duplicating",
    )
    args = parser.parse_args()

    configure_logging(settings.debug)
    try:
        report = asyncio.run(run(args.feeds, args.stable_ids))
    except StoreWriteError as e:
        print(f"Error: {e.message}")
        sys.exit(1)
    print_report(report)


if __name__ == "__main__":
    main()
