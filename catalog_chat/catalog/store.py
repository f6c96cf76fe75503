"""
Read-only product catalog loaded once at startup from a JSON file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator, Sequence, Tuple

from .models import ProductRecord

logger = logging.getLogger(__name__)


class CatalogStore:
    """
    Immutable container for the loaded catalog.

    Built once during application startup and shared by reference with the
    request handlers; nothing writes to it afterwards.
    """

    def __init__(self, products: Sequence[ProductRecord] = ()):
        self._products: Tuple[ProductRecord, ...] = tuple(products)

    @property
    def products(self) -> Tuple[ProductRecord, ...]:
        return self._products

    @property
    def is_empty(self) -> bool:
        return not self._products

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self) -> Iterator[ProductRecord]:
        return iter(self._products)

    @classmethod
    def load(cls, path: Path) -> "CatalogStore":
        """
        Load products from `path`.

        A missing file yields an empty catalog (warning). A file that cannot be
        read or parsed also yields an empty catalog, logged as an error, so the
        API keeps serving.
        """
        if not path.exists():
            logger.warning("Catalog file %s not found; local search will return no results", path)
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Error loading catalog %s: %s", path, e, exc_info=True)
            return cls()

        if not isinstance(data, list):
            logger.error("Catalog %s must contain a JSON list, got %s", path, type(data).__name__)
            return cls()

        products = []
        for idx, raw in enumerate(data):
            if not isinstance(raw, dict):
                logger.warning("Skipping catalog entry %d: expected object, got %s", idx, type(raw).__name__)
                continue
            products.append(ProductRecord.from_dict(raw))

        logger.info("Loaded %d products from %s", len(products), path)
        return cls(products)
