"""Tests for the per-category pagination loop."""

import pytest

from core.crawler import CategoryCrawler
from core.errors import CategoryFetchFailure
from core.models import Fatal, Terminal
from plugins.trendyol.parsers import normalize_product

from conftest import FakePageFetcher, make_category, make_payload


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def _crawler(fetcher, max_page=50, sleep=None):
    return CategoryCrawler(
        fetcher, normalize_product, max_page=max_page, page_delay=0.5, sleep=sleep or RecordingSleep()
    )


@pytest.mark.asyncio
async def test_three_items_then_empty_page_stops_at_page_two():
    fetcher = FakePageFetcher({"/a": [[make_payload(1), make_payload(2), make_payload(3)], []]})
    sleep = RecordingSleep()

    result = await _crawler(fetcher, sleep=sleep).crawl(make_category("/a"))

    assert [p.id for p in result.products] == [1, 2, 3]
    assert result.completed
    assert result.pages_fetched == 2
    assert fetcher.calls == [("/a", 1), ("/a", 2)]
    # one pacing delay between page 1 and page 2, none after the terminal page
    assert sleep.calls == [0.5]


@pytest.mark.asyncio
async def test_not_found_on_first_page_is_clean_end():
    fetcher = FakePageFetcher({"/b": [Terminal("not_found")]})
    sleep = RecordingSleep()

    result = await _crawler(fetcher, sleep=sleep).crawl(make_category("/b"))

    assert result.products == []
    assert result.error is None
    assert result.completed
    assert fetcher.calls == [("/b", 1)]
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_fatal_page_keeps_partial_results():
    boom = CategoryFetchFailure("c", 3, RuntimeError("503"))
    fetcher = FakePageFetcher({"/c": [[make_payload(1)], [make_payload(2)], Fatal(boom), [make_payload(4)]]})

    result = await _crawler(fetcher).crawl(make_category("/c"))

    assert [p.id for p in result.products] == [1, 2]
    assert result.error is boom
    assert not result.completed
    assert fetcher.calls[-1] == ("/c", 3)


@pytest.mark.asyncio
async def test_page_bound_stops_endless_pagination():
    endless = [[make_payload(i)] for i in range(1, 100)]
    fetcher = FakePageFetcher({"/d": endless})
    sleep = RecordingSleep()

    result = await _crawler(fetcher, max_page=4, sleep=sleep).crawl(make_category("/d"))

    assert [p.id for p in result.products] == [1, 2, 3, 4]
    assert result.pages_fetched == 4
    assert result.completed
    assert len(sleep.calls) == 3


@pytest.mark.asyncio
async def test_page_order_preserved():
    fetcher = FakePageFetcher({"/e": [[make_payload(5), make_payload(3)], [make_payload(9)]]})

    result = await _crawler(fetcher).crawl(make_category("/e"))

    assert [p.id for p in result.products] == [5, 3, 9]


@pytest.mark.asyncio
async def test_unmappable_payload_is_skipped_and_crawl_continues():
    fetcher = FakePageFetcher({"/f": [
        [make_payload(1), {"name": "missing id"}, make_payload(2)],
        [make_payload(3)],
        [],
    ]})

    result = await _crawler(fetcher).crawl(make_category("/f"))

    assert [p.id for p in result.products] == [1, 2, 3]
    assert result.completed
    assert result.pages_fetched == 3


@pytest.mark.asyncio
async def test_odd_field_types_do_not_lose_the_page():
    fetcher = FakePageFetcher({"/f": [
        [make_payload(1), make_payload(2, rushDeliveryDuration=1.5), make_payload(3)],
        [make_payload(4)],
        [],
    ]})

    result = await _crawler(fetcher).crawl(make_category("/f"))

    assert [p.id for p in result.products] == [1, 2, 3, 4]
    assert result.completed
    assert result.products[1].shipping_information.rush_delivery_duration == 1


@pytest.mark.asyncio
async def test_products_carry_category_labels():
    fetcher = FakePageFetcher({"/g": [[make_payload(1)]]})
    cat = make_category("/g", label="Sneaker", primary="ERKEK")

    result = await _crawler(fetcher).crawl(cat)

    product = result.products[0]
    assert (product.primary_category, product.sub_category, product.category) == ("ERKEK", "Giyim", "Sneaker")


def test_max_page_must_be_positive():
    with pytest.raises(ValueError):
        CategoryCrawler(FakePageFetcher({}), normalize_product, max_page=0)
