"""Selectors that embed a runtime value, such as a category or brand name.

Values are checked against the names the shop actually renders before they
are interpolated, so a typo fails fast instead of producing a locator that
silently matches nothing.
"""

from __future__ import annotations

from dataclasses import dataclass

from utils.errors import InvalidSelectorParameterError


@dataclass(frozen=True)
class _DynamicSelector:
    template: str
    allowed: tuple[str, ...]


CATEGORIES = ("Women", "Men", "Kids")
SUB_CATEGORIES = ("Dress", "Tops", "Saree", "Tshirts", "Jeans", "Tops & Shirts")
BRANDS = (
    "Polo",
    "H&M",
    "Madame",
    "Mast & Harbour",
    "Babyhug",
    "Allen Solly Junior",
    "Kookie Kids",
    "Biba",
)

_SELECTORS: dict[tuple[str, str], _DynamicSelector] = {
    ("product", "category"): _DynamicSelector('a[href="#{value}"]', CATEGORIES),
    ("product", "sub_category"): _DynamicSelector(
        '.panel-collapse.in a:text-is("{value}")', SUB_CATEGORIES
    ),
    ("product", "brand"): _DynamicSelector('.brands_products a:has-text("{value}")', BRANDS),
}


def build_selector(page_type: str, name: str, value: str) -> str:
    """Return the selector for `name` on `page_type` with `value` filled in."""
    try:
        entry = _SELECTORS[(page_type, name)]
    except KeyError:
        known = sorted(f"{page}.{key}" for page, key in _SELECTORS)
        raise KeyError(f"No dynamic selector {page_type}.{name}; known: {known}") from None
    if value not in entry.allowed:
        raise InvalidSelectorParameterError(page_type, name, value, list(entry.allowed))
    return entry.template.format(value=value)
