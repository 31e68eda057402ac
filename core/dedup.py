"""
Collapse the multi-category product stream to one record per product id.
"""

from typing import Dict, Iterable, List

from .models import CanonicalProduct


def deduplicate(products: Iterable[CanonicalProduct]) -> List[CanonicalProduct]:
    """Last write wins: a later record with the same id replaces the earlier one
    wholesale, category labels included. Output keeps first-seen id order."""
    by_id: Dict[int, CanonicalProduct] = {}
    for product in products:
        by_id[product.id] = product
    return list(by_id.values())
