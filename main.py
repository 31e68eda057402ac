"""
Main entry point for the catalog sync platform with scheduling support.
"""

import asyncio
import logging
import os
import signal
import sys

from dotenv import load_dotenv

from core.config import Settings, load_settings
from core.crawler import CategoryCrawler
from core.enricher import AttributeEnricher
from core.gate import ConcurrencyGate
from core.infra.http import HttpClient
from core.infra.scheduler import Scheduler
from core.pipeline_orchestrator import RunOrchestrator
from plugins.trendyol import (
    CsvCategorySource,
    TrendyolDetailFetcher,
    TrendyolPageFetcher,
    normalize_product,
)
from sinks.database_sink import ProductUpsertSink, SqliteProductStore
from sinks.log_sink import LogNotifier
from sinks.telegram_sink import TelegramNotifier


def build_orchestrator(settings: Settings, http: HttpClient) -> RunOrchestrator:
    """Wire the pipeline from settings."""
    crawler = CategoryCrawler(
        TrendyolPageFetcher(http),
        normalize_product,
        max_page=settings.crawl.max_page,
        page_delay=settings.crawl.page_delay_seconds,
    )
    enricher = AttributeEnricher(
        TrendyolDetailFetcher(http),
        ConcurrencyGate(settings.enrich.detail_concurrency, name="details"),
    )

    if settings.telegram.bot_token and settings.telegram.chat_id:
        notifier = TelegramNotifier(settings.telegram.bot_token, settings.telegram.chat_id)
    else:
        notifier = LogNotifier()

    return RunOrchestrator(
        CsvCategorySource(settings.categories_csv),
        crawler,
        enricher,
        ProductUpsertSink(SqliteProductStore(settings.db_path)),
        notifier,
        category_gate=ConcurrencyGate(settings.crawl.category_concurrency, name="categories"),
        report_timezone=settings.schedule.timezone,
    )


def _http_client(settings: Settings) -> HttpClient:
    return HttpClient(
        timeout=settings.http.timeout_seconds,
        max_retries=settings.http.max_retries,
        default_headers={"User-Agent": settings.http.user_agent},
    )


async def run_once(settings: Settings) -> bool:
    """Run one sync and return whether it succeeded."""
    async with _http_client(settings) as http:
        return await build_orchestrator(settings, http).run()


async def main() -> int:
    """Main entry point with scheduler support."""
    # Load .env file
    load_dotenv()

    # Setup logging
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s"
    )
    logger = logging.getLogger(__name__)

    settings = load_settings(os.getenv("SYNC_CONFIG", "config.yml"))
    logger.info(
        f"Categories: {settings.categories_csv}, database: {settings.db_path}, "
        f"schedule: {settings.schedule.cron} ({settings.schedule.timezone})"
    )

    if os.getenv("SCHEDULER_MODE", "enabled") == "disabled":
        logger.info("Starting catalog sync (one-time run)...")
        ok = await run_once(settings)
        return 0 if ok else 1

    logger.info("Starting catalog sync with scheduler...")
    scheduler = Scheduler(timezone=settings.schedule.timezone)

    # Setup graceful shutdown
    stop_event = asyncio.Event()

    def signal_handler():
        logger.info("Received shutdown signal")
        stop_event.set()

    # Register signal handlers
    for sig in (signal.SIGTERM, signal.SIGINT):
        asyncio.get_running_loop().add_signal_handler(sig, signal_handler)

    async with _http_client(settings) as http:
        orchestrator = build_orchestrator(settings, http)
        try:
            await scheduler.start()
            # Fires once right away, then on every cron tick
            scheduler.add_cron_job(
                orchestrator.run,
                cron_expression=settings.schedule.cron,
                job_id="catalog_sync",
                run_now=True,
            )
            await stop_event.wait()
        finally:
            logger.info("Shutting down...")
            await scheduler.stop()
            logger.info("Shutdown complete")
    return 0


def run_sync_system():
    """Entry point that can be called from other scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run_sync_system()
