"""
Run orchestrator: crawl -> dedupe -> enrich -> upsert -> notify.
"""

import logging
from datetime import datetime, timezone
from itertools import chain
from typing import List, Optional
from zoneinfo import ZoneInfo

from .crawler import CategoryCrawler
from .dedup import deduplicate
from .enricher import AttributeEnricher
from .gate import ConcurrencyGate
from .interfaces import CategorySource, Notifier, UpsertSink
from .models import CanonicalProduct, CategoryCrawlResult, PipelineRunResult

logger = logging.getLogger(__name__)

REPORT_SUBJECT = "Daily catalog sync report"


def format_run_summary(
    result: PipelineRunResult,
    total: int,
    timestamp: Optional[datetime] = None,
    tz: str = "Europe/Istanbul",
) -> str:
    """Plain-text run summary for the notification channel."""
    when = (timestamp or datetime.now(timezone.utc)).astimezone(ZoneInfo(tz))
    lines = [
        f"Catalog sync report - {when:%Y-%m-%d %H:%M:%S}",
        "",
        f"Inserted: {result.inserted_count}",
        f"Updated:  {result.updated_count}",
        f"Total:    {total}",
    ]
    if result.skipped_ids:
        lines.append(f"Skipped:  {len(result.skipped_ids)}")
    if result.failed_categories:
        lines.append(f"Failed categories: {len(result.failed_categories)}")
    return "\n".join(lines)


class RunOrchestrator:
    """Sequences one sync run over injected collaborators."""

    def __init__(
        self,
        categories: CategorySource,
        crawler: CategoryCrawler,
        enricher: AttributeEnricher,
        sink: UpsertSink,
        notifier: Notifier,
        *,
        category_gate: ConcurrencyGate,
        report_timezone: str = "Europe/Istanbul",
    ):
        self.categories = categories
        self.crawler = crawler
        self.enricher = enricher
        self.sink = sink
        self.notifier = notifier
        self.category_gate = category_gate
        self.report_timezone = report_timezone

    async def _crawl_all(self, result: PipelineRunResult) -> List[CanonicalProduct]:
        cats = await self.categories.load()
        logger.info(f"{len(cats)} categories loaded")

        outcomes = await self.category_gate.run(
            [lambda c=cat: self.crawler.crawl(c) for cat in cats]
        )

        batches: List[List[CanonicalProduct]] = []
        for cat, outcome in zip(cats, outcomes):
            if not outcome.ok:
                logger.error(f"Crawl of '{cat.category}' crashed: {outcome.error}")
                result.failed_categories.append(cat.category)
                continue
            crawl: CategoryCrawlResult = outcome.value
            if not crawl.completed:
                logger.error(
                    f"Crawl of '{cat.category}' stopped early, keeping "
                    f"{len(crawl.products)} products: {crawl.error}"
                )
                result.failed_categories.append(cat.category)
            batches.append(crawl.products)

        return list(chain.from_iterable(batches))

    async def sync_products(self) -> Optional[PipelineRunResult]:
        """Run the pipeline once. Returns None when nothing was crawled."""
        logger.info("Sync started")
        result = PipelineRunResult()

        all_products = await self._crawl_all(result)
        logger.info(f"Raw products: {len(all_products)}")
        if not all_products:
            logger.warning("No products found, nothing to store")
            return None

        unique = deduplicate(all_products)
        logger.info(f"Unique products: {len(unique)}")

        logger.info("Fetching detail attributes...")
        enriched = await self.enricher.enrich(unique)
        logger.info(f"Detail attributes done: {enriched}/{len(unique)} products enriched")

        logger.info("Upserting products...")
        async with self.sink:
            written = await self.sink.write(unique)
            result.inserted_count = written.inserted_count
            result.updated_count = written.updated_count
            result.skipped_ids = written.skipped_ids
            total = await self.sink.count()

        await self._notify(result, total)
        return result

    async def _notify(self, result: PipelineRunResult, total: int) -> None:
        text = format_run_summary(result, total, tz=self.report_timezone)
        try:
            await self.notifier.send(text, subject=REPORT_SUBJECT)
        except Exception as e:
            logger.error(f"Notification via {self.notifier.name} failed: {e}")

    async def run(self) -> bool:
        """Entry point for the scheduler: True on success, False on failure."""
        try:
            await self.sync_products()
        except Exception as e:
            logger.error(f"Sync failed: {e}", exc_info=True)
            return False
        logger.info("Sync finished")
        return True
