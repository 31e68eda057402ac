"""
Parsers for the Trendyol plugin.

Pure mapping of upstream JSON into :class:`~core.models.CanonicalProduct`
and of the product-detail payload into flat attribute triples.
"""

import re
import unicodedata
from typing import Any, Dict, List, Optional

from core.models import (
    CanonicalProduct,
    CategoryDefinition,
    ProductAttribute,
    RawProductPayload,
    ShippingInfo,
    VariantInfo,
)

CDN_ORIGIN = "https://cdn.dsmcdn.com"
SITE_ORIGIN = "https://www.trendyol.com"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Lower-case ASCII slug: diacritics stripped, non-alphanumeric runs -> '-'."""
    text = unicodedata.normalize("NFKD", text.lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("-", text).strip("-")


def product_slug(name: Optional[str], product_id: int) -> str:
    return slugify(f"{name}-{product_id}")


def compute_discount_ratio(original: float, selling: float) -> float:
    """Percentage off *original*, rounded to two decimals; 0 when original is 0."""
    if not original:
        return 0
    return round((original - selling) / original * 100, 2)


def absolute_image_url(url: str) -> str:
    return url if url.startswith("http") else f"{CDN_ORIGIN}{url}"


def _to_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def _opt_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def _opt_str(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def _get(data: Any, *keys: str) -> Any:
    """Walk nested dicts, returning None as soon as a level is missing."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _image_urls(images: Any) -> List[str]:
    if not isinstance(images, list):
        return []
    urls = []
    for img in images:
        url = img if isinstance(img, str) else _get(img, "url")
        if url and isinstance(url, str):
            urls.append(absolute_image_url(url))
    return urls


def _variants(raw_variants: Any) -> Optional[List[VariantInfo]]:
    if not raw_variants or not isinstance(raw_variants, list):
        return None
    variants = []
    for v in raw_variants:
        if not isinstance(v, dict):
            continue
        variants.append(VariantInfo(
            listing_id=_opt_str(v.get("listingId")) or None,
            attribute_name=_opt_str(v.get("attributeName")) or None,
            attribute_value=_opt_str(v.get("attributeValue")) or None,
            original_price=_to_float(_get(v, "price", "originalPrice")),
            discounted_price=_to_float(_get(v, "price", "discountedPrice")),
            discount_ratio=_to_float(_get(v, "price", "discountRatio")),
            lowest_price_duration=_opt_int(v.get("lowestPriceDuration")),
            same_day_shipping=bool(v.get("sameDayShipping", False)),
            has_coupon=bool(v.get("hasCollectableCoupon", False)),
            price_labels=_list(v.get("priceLabels")),
        ))
    return variants


def normalize_product(payload: RawProductPayload, category: CategoryDefinition) -> CanonicalProduct:
    """Map one infinite-scroll product into the canonical record."""
    product_id = payload.get("id")
    if product_id is None:
        raise ValueError("product payload has no id")
    product_id = int(product_id)

    price = payload.get("price")
    if not isinstance(price, dict):
        price = {}
    selling = price.get("sellingPrice")
    selling = _to_float(selling) if selling is not None else 0
    original = price.get("originalPrice")
    original = _to_float(original) if original is not None else selling

    upstream_ratio = price.get("discountRatio")
    if upstream_ratio is not None:
        discount_ratio = _to_float(upstream_ratio)
    else:
        discount_ratio = compute_discount_ratio(original, selling)

    name = _opt_str(payload.get("name"))
    rel_url = _opt_str(payload.get("url"))

    return CanonicalProduct(
        id=product_id,
        primary_category=category.primary_category,
        sub_category=category.sub_category,
        category=category.category,
        name=name,
        slug=product_slug(name, product_id),
        brand=_opt_str(_get(payload, "brand", "name")),
        category_name=_opt_str(payload.get("categoryName")),
        url=f"{SITE_ORIGIN}{rel_url}",
        images=_image_urls(payload.get("images")),
        original_price=original,
        discounted_price=selling,
        discount_ratio=discount_ratio,
        favorite_count=_to_int(_get(payload, "socialProof", "favoriteCount", "count")),
        basket_count=_to_int(_get(payload, "socialProof", "basketCount", "count")),
        average_rating=_to_float(_get(payload, "ratingScore", "averageRating")),
        rating_count=_to_int(_get(payload, "ratingScore", "totalCount")),
        lowest_price_duration=_opt_int(payload.get("lowestPriceDuration")),
        variant_information=_variants(payload.get("variants")),
        shipping_information=ShippingInfo(
            free_cargo=bool(payload.get("freeCargo", False)),
            rush_delivery_duration=_opt_int(payload.get("rushDeliveryDuration")),
        ),
        promotion_badge=_promotion_badge(payload.get("promotionBadge")),
    )


def _promotion_badge(badge: Any) -> str:
    if not badge:
        return ""
    if isinstance(badge, dict):
        return _opt_str(badge.get("text") or badge.get("name"))
    return _opt_str(badge)


def flatten_attributes(detail: Dict[str, Any]) -> List[ProductAttribute]:
    """Flatten ``result.attributeCategories[].attributes[]`` into triples."""
    if not isinstance(detail, dict):
        raise ValueError("product detail response is not an object")
    categories = _get(detail, "result", "attributeCategories") or []

    attributes: List[ProductAttribute] = []
    for cat in categories:
        for attr in cat.get("attributes") or []:
            attributes.append(ProductAttribute(
                category=_opt_str(cat.get("categoryName")),
                name=_opt_str(attr.get("attributeName")),
                value=_opt_str(attr.get("attributeValueName")),
            ))
    return attributes
