"""
Plain-text rendering of catalog products for the local-search fallback.

The image line uses the camera marker so the response processor can pull the
URL back out and render it as a picture.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .models import ProductRecord

IMAGE_MARKER = "\U0001F4F8"
PLACEHOLDER = "N/A"


def format_brl(value: Any) -> str:
    """Format a number as Brazilian reais, e.g. 1234.5 -> 'R$\xa01.234,50'.

    Raises ValueError when `value` is not numeric.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a price: {value!r}")
    try:
        amount = Decimal(str(value).strip()).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Not a price: {value!r}") from e
    # quiet NaN survives quantize
    if not amount.is_finite():
        raise ValueError(f"Not a price: {value!r}")

    sign = "-" if amount < 0 else ""
    # en-US grouping first, then swap separators for pt-BR
    digits = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$\xa0{digits}"


def _price_text(product: ProductRecord) -> Any:
    if product.formatted_price:
        return product.formatted_price
    if product.price:
        try:
            return format_brl(product.price)
        except ValueError:
            return product.price
    return None


def format_product_fallback_text(product: ProductRecord) -> str:
    text = f"**Nome:** {product.name or PLACEHOLDER}\n"
    if product.image:
        text += f"{IMAGE_MARKER} {product.image}\n"
    text += f"**SKU:** {product.sku or PLACEHOLDER}\n"

    price = _price_text(product)
    if price:
        text += f"**Preço:** {price}\n"
    if product.pix_price:
        text += f"**Preço Pix:** {product.pix_price}\n"
    if product.brand:
        text += f"**Marca:** {product.brand}\n"
    if product.categories:
        text += f"**Categorias:** {product.categories}\n"
    if product.link:
        text += f"**Link:** {product.link}\n"
    return text
