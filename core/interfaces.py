"""
Core interfaces for the catalog sync platform.

Every collaborator of the pipeline is injected through one of these, so a
run can be driven entirely by in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Union

from .models import (
    CanonicalProduct,
    CategoryDefinition,
    Fatal,
    HasMore,
    PipelineRunResult,
    ProductAttribute,
    Terminal,
    UpsertOutcome,
)

PageResult = Union[HasMore, Terminal, Fatal]


class PageFetcher(ABC):
    """Fetches one page of a category listing and classifies the outcome."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this fetcher."""
        pass

    @abstractmethod
    async def fetch_page(self, category: CategoryDefinition, page: int) -> PageResult:
        """Return HasMore, Terminal or Fatal. Must not raise."""
        pass


class DetailFetcher(ABC):
    """Fetches the secondary attribute list for a single product."""

    @abstractmethod
    async def fetch_attributes(self, product_id: int) -> List[ProductAttribute]:
        """Return flattened attributes; raise on any failure."""
        pass


class CategorySource(ABC):
    """Ordered list of categories to crawl, re-read on every run."""

    @abstractmethod
    async def load(self) -> List[CategoryDefinition]:
        pass


class ProductStore(ABC):
    """Durable insert-or-update store keyed by product id."""

    async def __aenter__(self) -> "ProductStore":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        pass

    @abstractmethod
    async def upsert(self, product: CanonicalProduct) -> UpsertOutcome:
        """Insert or overwrite one product."""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Total number of stored products."""
        pass


class UpsertSink(ABC):
    """Writes a product batch idempotently and reports the counts."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    async def __aenter__(self) -> "UpsertSink":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        pass

    @abstractmethod
    async def write(self, products: Iterable[CanonicalProduct]) -> PipelineRunResult:
        """Upsert every product; skip and report records the store rejects."""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Total number of persisted products after the write."""
        pass


class Notifier(ABC):
    """Outbound channel for the run summary."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def send(self, text: str, subject: Optional[str] = None) -> None:
        pass
