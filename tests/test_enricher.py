"""Tests for best-effort attribute enrichment."""

import asyncio

import pytest

from core.enricher import AttributeEnricher
from core.errors import DetailFetchFailure
from core.gate import ConcurrencyGate
from core.models import ProductAttribute
from plugins.trendyol.parsers import normalize_product

from conftest import FakeDetailFetcher, make_category, make_payload


def _products(*ids):
    cat = make_category()
    return [normalize_product(make_payload(i), cat) for i in ids]


@pytest.mark.asyncio
async def test_timeout_on_one_product_leaves_others_enriched():
    material = ProductAttribute(category="Genel", name="Materyal", value="Pamuk")
    fetcher = FakeDetailFetcher(
        attributes={41: [material], 43: [material]},
        failures={42: DetailFetchFailure(42, asyncio.TimeoutError())},
    )
    products = _products(41, 42, 43)

    enriched = await AttributeEnricher(fetcher, ConcurrencyGate(2)).enrich(products)

    assert enriched == 2
    by_id = {p.id: p for p in products}
    assert by_id[42].attributes == []
    assert by_id[41].attributes == [material]
    assert by_id[43].attributes == [material]
    assert sorted(fetcher.calls) == [41, 42, 43]


@pytest.mark.asyncio
async def test_unexpected_error_degrades_to_empty():
    fetcher = FakeDetailFetcher(failures={1: KeyError("result")})
    products = _products(1)
    products[0].attributes = [ProductAttribute(name="stale")]

    await AttributeEnricher(fetcher, ConcurrencyGate(1)).enrich(products)

    assert products[0].attributes == []


@pytest.mark.asyncio
async def test_one_request_per_product():
    fetcher = FakeDetailFetcher()
    products = _products(*range(1, 21))

    enriched = await AttributeEnricher(fetcher, ConcurrencyGate(5)).enrich(products)

    assert enriched == 0
    assert sorted(fetcher.calls) == list(range(1, 21))
