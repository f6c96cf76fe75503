"""
Keyword scoring over the in-memory catalog, used as the local fallback search.
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from .models import ProductRecord, ScoredMatch

logger = logging.getLogger(__name__)

NAME_WEIGHT = 3
DESCRIPTION_WEIGHT = 1
CATEGORY_WEIGHT = 1
SKU_EXACT_WEIGHT = 10

DEFAULT_LIMIT = 3


def _keywords(query: str) -> List[str]:
    return [k for k in (query or "").lower().split() if k]


def score_product(product: ProductRecord, keywords: List[str]) -> int:
    name = (product.name or "").lower()
    description = (product.description or "").lower()
    categories = (product.categories or "").lower()
    sku = (product.sku or "").lower()

    score = 0
    for keyword in keywords:
        if keyword in name:
            score += NAME_WEIGHT
        if keyword in description:
            score += DESCRIPTION_WEIGHT
        if keyword in categories:
            score += CATEGORY_WEIGHT
        # SKU only counts on an exact match, never a substring
        if keyword == sku:
            score += SKU_EXACT_WEIGHT
    return score


def find_products(query: str, catalog: Iterable[ProductRecord], limit: int = DEFAULT_LIMIT) -> List[ScoredMatch]:
    """
    Return up to `limit` products matching `query`, best score first.

    Ties keep the catalog order (`sorted` is stable).
    """
    keywords = _keywords(query)
    if not keywords:
        return []

    candidates: List[ScoredMatch] = []
    for product in catalog:
        score = score_product(product, keywords)
        if score > 0:
            candidates.append(ScoredMatch(product=product, match_score=score))

    ranked = sorted(candidates, key=lambda m: m.match_score, reverse=True)
    logger.debug("Local search for %r: %d candidates", query, len(ranked))
    return ranked[:limit]
