"""Shared fakes and fixtures for the sync pipeline tests."""

import asyncio
from typing import Dict, List, Optional

import pytest

from core.errors import RecordRejected
from core.interfaces import CategorySource, DetailFetcher, Notifier, PageFetcher, ProductStore
from core.models import (
    CanonicalProduct,
    CategoryDefinition,
    HasMore,
    ProductAttribute,
    Terminal,
    UpsertOutcome,
)


def make_category(path: str = "/a", label: Optional[str] = None, primary: str = "KADIN") -> CategoryDefinition:
    return CategoryDefinition(
        primary_category=primary,
        sub_category="Giyim",
        category=label or path.strip("/"),
        path=path,
    )


def make_payload(product_id: int, name: str = "Product", **extra) -> Dict:
    payload = {
        "id": product_id,
        "name": name,
        "url": f"/brand/{name.lower()}-p-{product_id}",
        "brand": {"name": "Brand"},
        "price": {"sellingPrice": 80, "originalPrice": 100},
        "images": [f"/ty{product_id}/1.jpg"],
    }
    payload.update(extra)
    return payload


class FakePageFetcher(PageFetcher):
    """Serves scripted page results per category path; unknown pages are empty."""

    def __init__(self, pages: Dict[str, List], delay: float = 0):
        self.pages = pages
        self.delay = delay
        self.calls: List = []
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def name(self) -> str:
        return "FakePageFetcher"

    async def fetch_page(self, category, page):
        self.calls.append((category.path, page))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            script = self.pages.get(category.path, [])
            if page > len(script):
                return Terminal("empty")
            outcome = script[page - 1]
            if isinstance(outcome, list):
                return HasMore(outcome) if outcome else Terminal("empty")
            return outcome
        finally:
            self.in_flight -= 1


class FakeDetailFetcher(DetailFetcher):
    def __init__(self, attributes: Optional[Dict[int, List[ProductAttribute]]] = None,
                 failures: Optional[Dict[int, BaseException]] = None):
        self.attributes = attributes or {}
        self.failures = failures or {}
        self.calls: List[int] = []

    async def fetch_attributes(self, product_id):
        self.calls.append(product_id)
        await asyncio.sleep(0)
        if product_id in self.failures:
            raise self.failures[product_id]
        return list(self.attributes.get(product_id, []))


class FakeCategorySource(CategorySource):
    def __init__(self, categories: List[CategoryDefinition]):
        self.categories = categories
        self.loads = 0

    async def load(self):
        self.loads += 1
        return list(self.categories)


class InMemoryStore(ProductStore):
    def __init__(self, reject_ids=()):
        self.rows: Dict[int, CanonicalProduct] = {}
        self.reject_ids = set(reject_ids)
        self.opened = 0
        self.closed = 0

    async def __aenter__(self):
        self.opened += 1
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed += 1

    async def upsert(self, product):
        if product.id in self.reject_ids:
            raise RecordRejected(product.id, ValueError("constraint"))
        existed = product.id in self.rows
        self.rows[product.id] = product.model_copy(deep=True)
        return UpsertOutcome.UPDATED if existed else UpsertOutcome.INSERTED

    async def count(self):
        return len(self.rows)


class RecordingNotifier(Notifier):
    name = "RecordingNotifier"

    def __init__(self, fail: bool = False):
        self.messages: List = []
        self.fail = fail

    async def send(self, text, subject=None):
        if self.fail:
            raise RuntimeError("channel down")
        self.messages.append((subject, text))


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def category():
    return make_category("/a")


@pytest.fixture
def detail_fetcher():
    return FakeDetailFetcher()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "catalog.db")
