"""
Core data models for the catalog sync platform.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


RawProductPayload = Dict[str, Any]


class CategoryDefinition(BaseModel):
    """One crawlable catalog partition."""
    model_config = ConfigDict(frozen=True)

    primary_category: str
    sub_category: str
    category: str
    path: str


class ProductAttribute(BaseModel):
    """A single flattened detail attribute."""
    category: str = ""
    name: str = ""
    value: str = ""


class VariantInfo(BaseModel):
    listing_id: Optional[str] = None
    attribute_name: Optional[str] = None
    attribute_value: Optional[str] = None
    original_price: float = 0
    discounted_price: float = 0
    discount_ratio: float = 0
    lowest_price_duration: Optional[int] = None
    same_day_shipping: bool = False
    has_coupon: bool = False
    price_labels: List[Any] = Field(default_factory=list)


class ShippingInfo(BaseModel):
    free_cargo: bool = False
    rush_delivery_duration: Optional[int] = None


class CanonicalProduct(BaseModel):
    """Normalized, persisted representation of one catalog item."""
    id: int
    primary_category: str
    sub_category: str
    category: str
    name: str = ""
    slug: str = ""
    brand: str = ""
    category_name: str = ""
    url: str = ""
    images: List[str] = Field(default_factory=list)
    original_price: float = 0
    discounted_price: float = 0
    discount_ratio: float = 0
    favorite_count: int = 0
    basket_count: int = 0
    average_rating: float = 0
    rating_count: int = 0
    lowest_price_duration: Optional[int] = None
    variant_information: Optional[List[VariantInfo]] = None
    shipping_information: Optional[ShippingInfo] = None
    promotion_badge: str = ""
    attributes: List[ProductAttribute] = Field(default_factory=list)


class PipelineRunResult(BaseModel):
    """Counts reported by a single sync run."""
    inserted_count: int = 0
    updated_count: int = 0
    skipped_ids: List[int] = Field(default_factory=list)
    failed_categories: List[str] = Field(default_factory=list)


class UpsertOutcome(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"


# --------------------------------------------------------------------------- #
# Per-page outcomes. A page either has more items, ends the category, or
# fails it.


@dataclass(frozen=True)
class HasMore:
    items: List[RawProductPayload]


@dataclass(frozen=True)
class Terminal:
    reason: str  # "empty" or "not_found"


@dataclass(frozen=True)
class Fatal:
    error: Exception


@dataclass
class CategoryCrawlResult:
    """Products gathered for one category, plus the error that stopped it (if any)."""
    category: CategoryDefinition
    products: List[CanonicalProduct] = field(default_factory=list)
    error: Optional[Exception] = None
    pages_fetched: int = 0

    @property
    def completed(self) -> bool:
        return self.error is None
