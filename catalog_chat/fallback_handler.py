"""Fallback handling utilities.

When the remote assistant is not configured or fails, the reply is built from
a keyword search over the local product catalog instead.
"""
from typing import Iterable, Optional

import logging

from catalog_chat.catalog import ProductRecord, find_products, format_product_fallback_text
from catalog_chat.catalog.matcher import DEFAULT_LIMIT

logger = logging.getLogger(__name__)

REASON_UNAVAILABLE = "unavailable"
REASON_ASSISTANT_ERROR = "assistant_error"


class FallbackHandler:
    """Generates local-search replies and logs why the fallback was triggered.

    Two situations are distinguished in the wording:
    - the assistant is not configured (`unavailable`)
    - the assistant call raised, timed out or ended in a non-completed run (`assistant_error`)
    """

    UNAVAILABLE_FOUND = "Usando busca local. Encontrei estes produtos:\n\n"
    UNAVAILABLE_NOT_FOUND = "Desculpe, não consegui encontrar produtos com base na sua busca no JSON local."
    ERROR_PREFIX = "Erro ao comunicar com o assistente de IA, usando busca local."
    ERROR_FOUND = " Encontrei:\n\n"
    ERROR_NOT_FOUND = " Não encontrei produtos na busca local."

    def __init__(self, catalog: Iterable[ProductRecord], max_results: int = DEFAULT_LIMIT):
        self.catalog = catalog
        self.max_results = max_results

    def generate_fallback(self, user_input: str, reason: str = REASON_UNAVAILABLE, error: Optional[BaseException] = None) -> str:
        matches = find_products(user_input, self.catalog, limit=self.max_results)
        logger.info("Generating fallback: reason=%s, matches=%d, error=%s", reason, len(matches), error)

        products_text = "".join(format_product_fallback_text(m.product) + "\n" for m in matches)

        if reason == REASON_ASSISTANT_ERROR:
            if matches:
                return self.ERROR_PREFIX + self.ERROR_FOUND + products_text
            return self.ERROR_PREFIX + self.ERROR_NOT_FOUND

        if matches:
            return self.UNAVAILABLE_FOUND + products_text
        return self.UNAVAILABLE_NOT_FOUND
