"""
Local product catalog: loading, keyword search and fallback text rendering.
"""

from .formatter import format_brl, format_product_fallback_text
from .matcher import find_products
from .models import ProductRecord, ScoredMatch
from .store import CatalogStore

__all__ = [
    "CatalogStore",
    "ProductRecord",
    "ScoredMatch",
    "find_products",
    "format_brl",
    "format_product_fallback_text",
]
