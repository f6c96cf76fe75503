"""
Catalog record types.

Source records use the store's Portuguese JSON keys; some attributes accept
two alternative keys (first non-empty one wins).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

_FIELD_KEYS: Dict[str, Sequence[str]] = {
    "name": ("nome",),
    "description": ("descricao_completa",),
    "categories": ("categorias",),
    "sku": ("sku",),
    "brand": ("marca",),
    "image": ("imagem", "imagem_url"),
    "price": ("preco",),
    "formatted_price": ("preco_formatado",),
    "pix_price": ("preco_pix",),
    "link": ("link", "link_produto"),
}


def _pick_first(raw: Dict[str, Any], keys: Sequence[str]) -> Any:
    for k in keys:
        v = raw.get(k)
        if v not in (None, ""):
            return v
    return None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        joined = ", ".join(str(v) for v in value if v not in (None, ""))
        return joined or None
    return str(value)


@dataclass(frozen=True)
class ProductRecord:
    name: Optional[str] = None
    description: Optional[str] = None
    categories: Optional[str] = None
    sku: Optional[str] = None
    brand: Optional[str] = None
    image: Optional[str] = None
    # Raw price as found in the source (number or numeric string).
    price: Any = None
    formatted_price: Optional[str] = None
    pix_price: Optional[str] = None
    link: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ProductRecord":
        values = {attr: _pick_first(raw, keys) for attr, keys in _FIELD_KEYS.items()}
        price = values.pop("price")
        return cls(
            price=price,
            **{attr: _as_text(v) for attr, v in values.items()},
        )


@dataclass(frozen=True)
class ScoredMatch:
    product: ProductRecord
    match_score: int
