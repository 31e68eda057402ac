"""
Sequential page walker for a single category.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .errors import CategoryFetchFailure
from .interfaces import PageFetcher
from .models import (
    CanonicalProduct,
    CategoryCrawlResult,
    CategoryDefinition,
    Fatal,
    HasMore,
    RawProductPayload,
    Terminal,
)

logger = logging.getLogger(__name__)

Normalizer = Callable[[RawProductPayload, CategoryDefinition], CanonicalProduct]


class CategoryCrawler:
    """
    Drives a :class:`PageFetcher` from page 1 until a terminal page, a fatal
    error or *max_page*.

    Pages are strictly sequential. After every page that yields items the
    crawler sleeps *page_delay* seconds before asking for the next one.
    A failed page is never retried; whatever was collected before it is
    returned together with the error. A single payload that cannot be
    normalized is skipped without failing the page.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        normalizer: Normalizer,
        *,
        max_page: int = 50,
        page_delay: float = 0.5,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        if max_page < 1:
            raise ValueError("max_page must be >= 1")
        self.fetcher = fetcher
        self.normalizer = normalizer
        self.max_page = max_page
        self.page_delay = page_delay
        self._sleep = sleep or asyncio.sleep

    async def crawl(self, category: CategoryDefinition) -> CategoryCrawlResult:
        result = CategoryCrawlResult(category=category)
        page = 1

        while page <= self.max_page:
            logger.info(f"Fetching category '{category.category}' page {page}")
            outcome = await self.fetcher.fetch_page(category, page)
            result.pages_fetched += 1

            if isinstance(outcome, Terminal):
                logger.info(
                    f"Category '{category.category}' page {page}: {outcome.reason}, stopping"
                )
                break

            if isinstance(outcome, Fatal):
                logger.error(f"Category '{category.category}' page {page} failed: {outcome.error}")
                result.error = outcome.error
                break

            if not isinstance(outcome, HasMore):
                result.error = CategoryFetchFailure(
                    category.category, page, TypeError(f"unexpected page result {outcome!r}")
                )
                break

            normalized = self._normalize_page(outcome.items, category, page)
            result.products.extend(normalized)
            logger.info(
                f"Category '{category.category}' page {page}: {len(normalized)} of "
                f"{len(outcome.items)} items"
            )

            page += 1
            if page <= self.max_page:
                await self._sleep(self.page_delay)
        else:
            logger.warning(
                f"Category '{category.category}' hit the page limit ({self.max_page})"
            )

        logger.info(
            f"Category '{category.category}' finished: {len(result.products)} products "
            f"in {result.pages_fetched} page(s)"
            + ("" if result.completed else " (with error)")
        )
        return result

    def _normalize_page(self, items, category: CategoryDefinition, page: int):
        """Normalize each payload on its own; a payload that cannot be mapped is skipped."""
        normalized = []
        for index, item in enumerate(items):
            try:
                normalized.append(self.normalizer(item, category))
            except Exception as e:
                item_id = item.get("id") if isinstance(item, dict) else None
                logger.warning(
                    f"Category '{category.category}' page {page}: skipping payload "
                    f"#{index} (id={item_id}): {e}"
                )
        return normalized
