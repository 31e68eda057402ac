"""
Fetchers for the Trendyol plugin.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

import aiohttp

from core.errors import CategoryFetchFailure, DetailFetchFailure
from core.infra.http import HttpClient
from core.interfaces import DetailFetcher, PageFetcher, PageResult
from core.models import CategoryDefinition, Fatal, HasMore, ProductAttribute, Terminal

from .parsers import flatten_attributes

logger = logging.getLogger(__name__)

SEARCH_URL = "https://apigw.trendyol.com/discovery-web-searchgw-service/v2/api/infinite-scroll"
DETAIL_URL = "https://apigw.trendyol.com/discovery-web-product-detail-service/v2/api/productDetail"

# User-Agent comes from the client defaults (http.user_agent)
DEFAULT_HEADERS = {
    "Accept": "application/json",
}

MALE_GENDER_ID = 2
FEMALE_GENDER_ID = 1


def gender_partition(primary_category: str) -> int:
    """Upstream gender id for a primary-category label."""
    return MALE_GENDER_ID if "ERKEK" in primary_category.upper() else FEMALE_GENDER_ID


class TrendyolPageFetcher(PageFetcher):
    """Fetches one infinite-scroll page of a category."""

    def __init__(self, http: HttpClient, culture: str = "tr-TR"):
        self.http = http
        self.culture = culture

    @property
    def name(self) -> str:
        return "TrendyolPageFetcher"

    def build_url(self, category: CategoryDefinition, page: int) -> str:
        gender = gender_partition(category.primary_category)
        return (
            f"{SEARCH_URL}{category.path}"
            f"?pi={page}&culture={self.culture}&userGenderId={gender}"
        )

    async def fetch_page(self, category: CategoryDefinition, page: int) -> PageResult:
        url = self.build_url(category, page)
        try:
            data = await self.http.get_json(url, headers=DEFAULT_HEADERS)
        except aiohttp.ClientResponseError as e:
            if e.status == 404:
                return Terminal("not_found")
            return Fatal(CategoryFetchFailure(category.category, page, e))
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            return Fatal(CategoryFetchFailure(category.category, page, e))

        products = self._extract_products(data)
        if products is None:
            return Fatal(CategoryFetchFailure(
                category.category, page, ValueError("unexpected response shape")
            ))
        if not products:
            return Terminal("empty")
        return HasMore(products)

    @staticmethod
    def _extract_products(data: Any) -> List[Dict[str, Any]] | None:
        if not isinstance(data, dict):
            return None
        result = data.get("result") or {}
        if not isinstance(result, dict):
            return None
        products = result.get("products") or []
        return products if isinstance(products, list) else None


class TrendyolDetailFetcher(DetailFetcher):
    """Fetches the attribute categories of a single product."""

    def __init__(self, http: HttpClient, culture: str = "tr-TR"):
        self.http = http
        self.culture = culture

    def build_url(self, product_id: int) -> str:
        return f"{DETAIL_URL}?productId={product_id}&culture={self.culture}"

    async def fetch_attributes(self, product_id: int) -> List[ProductAttribute]:
        try:
            data = await self.http.get_json(self.build_url(product_id), headers=DEFAULT_HEADERS)
            return flatten_attributes(data)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, AttributeError, TypeError) as e:
            raise DetailFetchFailure(product_id, e) from e
