"""
Best-effort attribute enrichment for unique products.
"""

from __future__ import annotations

import logging
from typing import List

from .gate import ConcurrencyGate
from .interfaces import DetailFetcher
from .models import CanonicalProduct

logger = logging.getLogger(__name__)


class AttributeEnricher:
    """Fills ``attributes`` on each product via one detail request per id.

    Any failure leaves the product with an empty list; enrichment never
    fails the run.
    """

    def __init__(self, fetcher: DetailFetcher, gate: ConcurrencyGate):
        self.fetcher = fetcher
        self.gate = gate

    async def _enrich_one(self, product: CanonicalProduct) -> bool:
        try:
            product.attributes = await self.fetcher.fetch_attributes(product.id)
        except Exception as e:
            logger.debug(f"Attributes unavailable for product {product.id}: {e}")
            product.attributes = []
        return bool(product.attributes)

    async def enrich(self, products: List[CanonicalProduct]) -> int:
        """Enrich *products* in place. Returns how many got at least one attribute."""
        outcomes = await self.gate.run(
            [lambda p=product: self._enrich_one(p) for product in products]
        )
        enriched = 0
        for product, outcome in zip(products, outcomes):
            if outcome.ok and outcome.value:
                enriched += 1
            elif not outcome.ok:
                # _enrich_one swallows ordinary errors; this covers cancellation-like ones
                logger.debug(f"Enrichment task for product {product.id} did not settle cleanly: {outcome.error}")
                product.attributes = []
        return enriched
