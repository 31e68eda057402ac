"""
Exception hierarchy for the sync pipeline.

Only :class:`RunFailure` (and anything not listed here) escapes a run;
the others are contained where they happen.
"""

from __future__ import annotations

from typing import Optional


class CatalogSyncError(Exception):
    """Base class for all pipeline errors."""


class CategoryFetchFailure(CatalogSyncError):
    """A page request failed for a reason other than a terminal page."""

    def __init__(self, category: str, page: int, cause: Optional[BaseException] = None):
        self.category = category
        self.page = page
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"category '{category}' failed on page {page}{detail}")


class DetailFetchFailure(CatalogSyncError):
    """The detail request for a product failed or returned garbage."""

    def __init__(self, product_id: int, cause: Optional[BaseException] = None):
        self.product_id = product_id
        self.cause = cause
        super().__init__(f"detail fetch failed for product {product_id}: {cause}")


class PersistenceFailure(CatalogSyncError):
    """The store could not be reached or refused a whole batch."""


class RunFailure(CatalogSyncError):
    """A run could not complete, e.g. the category source is unreadable."""


class RecordRejected(PersistenceFailure):
    """The store refused one record (constraint violation); the batch goes on."""

    def __init__(self, product_id: int, cause: Optional[BaseException] = None):
        self.product_id = product_id
        self.cause = cause
        super().__init__(f"product {product_id} rejected by store: {cause}")
