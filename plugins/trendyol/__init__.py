"""
Trendyol plugin for syncing the product catalog.

This plugin provides:
- a CSV category source
- page and product-detail fetchers for the public API gateway
- the payload -> CanonicalProduct normalizer
"""

from .categories import CsvCategorySource
from .fetchers import TrendyolDetailFetcher, TrendyolPageFetcher, gender_partition
from .parsers import compute_discount_ratio, flatten_attributes, normalize_product, slugify

__all__ = [
    "CsvCategorySource",
    "TrendyolPageFetcher",
    "TrendyolDetailFetcher",
    "gender_partition",
    "normalize_product",
    "flatten_attributes",
    "compute_discount_ratio",
    "slugify",
]
