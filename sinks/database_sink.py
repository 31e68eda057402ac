"""
Database sink for persisting canonical products to SQLite.
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, Iterable

from core.errors import PersistenceFailure, RecordRejected
from core.infra.db import Database
from core.interfaces import ProductStore, UpsertSink
from core.models import CanonicalProduct, PipelineRunResult, UpsertOutcome


logger = logging.getLogger(__name__)


PRODUCTS_DDL = """
    CREATE TABLE IF NOT EXISTS products (
        id INTEGER PRIMARY KEY,
        primary_category TEXT NOT NULL,
        sub_category TEXT NOT NULL,
        category TEXT NOT NULL,
        name TEXT,
        slug TEXT UNIQUE,
        brand TEXT,
        category_name TEXT,
        url TEXT,
        images TEXT,
        original_price REAL DEFAULT 0,
        discounted_price REAL DEFAULT 0,
        discount_ratio REAL DEFAULT 0,
        favorite_count INTEGER DEFAULT 0,
        basket_count INTEGER DEFAULT 0,
        average_rating REAL DEFAULT 0,
        rating_count INTEGER DEFAULT 0,
        lowest_price_duration INTEGER,
        variant_information TEXT,
        shipping_information TEXT,
        promotion_badge TEXT,
        attributes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""

_JSON_COLUMNS = ("images", "variant_information", "shipping_information", "attributes")

# Same layout SQLite uses for CURRENT_TIMESTAMP (UTC)
SQLITE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def product_to_row(product: CanonicalProduct) -> Dict[str, Any]:
    """Flatten a product into column values; nested fields become JSON text."""
    row = product.model_dump()
    for col in _JSON_COLUMNS:
        if row[col] is not None:
            row[col] = json.dumps(row[col], ensure_ascii=False)
    row["updated_at"] = datetime.now(timezone.utc).strftime(SQLITE_TIMESTAMP_FORMAT)
    return row


class SqliteProductStore(ProductStore):
    """ProductStore backed by the ``products`` table."""

    table = "products"

    def __init__(self, db_path: str = "catalog.db"):
        self.db_path = db_path
        self.db = Database(db_path)

    async def __aenter__(self) -> "SqliteProductStore":
        """Connect and create the products table."""
        try:
            await self.db.connect()
            await self.db.execute(PRODUCTS_DDL)
            await self.db.execute("CREATE INDEX IF NOT EXISTS idx_products_category ON products (category)")
        except (sqlite3.Error, OSError) as e:
            await self.db.close()
            raise PersistenceFailure(f"Cannot open product store {self.db_path}: {e}") from e
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.db.close()

    async def upsert(self, product: CanonicalProduct) -> UpsertOutcome:
        try:
            inserted = await self.db.upsert(self.table, product_to_row(product), ["id"])
        except sqlite3.IntegrityError as e:
            raise RecordRejected(product.id, e) from e
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Upsert failed at product {product.id}: {e}") from e
        return UpsertOutcome.INSERTED if inserted else UpsertOutcome.UPDATED

    async def count(self) -> int:
        return await self.db.count(self.table)


class ProductUpsertSink(UpsertSink):
    """Idempotent insert-or-update of a product batch.

    Records the store rejects are skipped and reported; any other store
    error aborts the batch.
    """

    name = "ProductUpsertSink"

    def __init__(self, store: ProductStore):
        self.store = store

    async def __aenter__(self) -> "ProductUpsertSink":
        await self.store.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.store.__aexit__(exc_type, exc, tb)

    async def count(self) -> int:
        return await self.store.count()

    async def write(self, products: Iterable[CanonicalProduct]) -> PipelineRunResult:
        result = PipelineRunResult()

        for product in products:
            try:
                outcome = await self.store.upsert(product)
            except RecordRejected as e:
                logger.warning(f"Skipping product {product.id}: {e.cause}")
                result.skipped_ids.append(product.id)
                continue

            if outcome is UpsertOutcome.INSERTED:
                result.inserted_count += 1
            else:
                result.updated_count += 1

        logger.info(
            f"Upsert complete: {result.inserted_count} new, {result.updated_count} updated"
            + (f", {len(result.skipped_ids)} skipped" if result.skipped_ids else "")
        )
        return result
