"""
Attribute extraction from feed products.
"""

from typing import List, Dict, Optional, Iterable

from .models import FeedProduct, SizeEntry, ColorEntry


# Oversized tokens that are never offered as a sellable size
EXCLUDED_SIZE_TOKENS = frozenset({
    '3XL', '4XL', '5XL', '6XL', 'XXXL', 'XXXXL', 'XXXXXL',
})


def extract_product_sizes(
    product: FeedProduct,
    excluded_tokens: Iterable[str] = EXCLUDED_SIZE_TOKENS
) -> List[str]:
    """
    Normalized size values in feed order.

    Value = first non-empty of value/name/size_label_1, trimmed. Exact
    duplicates are dropped, excluded tokens (compared case-insensitively)
    are dropped entirely.
    """
    excluded = {token.upper() for token in excluded_tokens}
    sizes: List[str] = []
    seen = set()

    for entry in product.sizes:
        normalized = entry.normalized_value
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        if normalized.upper() in excluded:
            continue
        sizes.append(normalized)

    return sizes


def extract_product_colors(product: FeedProduct) -> List[str]:
    """Raw color names (entry names and shade names), deduplicated."""
    colors: List[str] = []
    seen = set()
    for entry in product.colors:
        for name in entry.raw_names:
            if name in seen:
                continue
            seen.add(name)
            colors.append(name)
    return colors


def extract_product_categories(product: FeedProduct, category_map: Dict[str, str]) -> List[str]:
    """Category labels: mapped path when known, raw id otherwise."""
    return [category_map.get(category_id) or category_id for category_id in product.category_ids]


def get_default_color_entry(product: FeedProduct) -> Optional[ColorEntry]:
    """Color entry matching default_color_id, else the first entry."""
    if not product.colors:
        return None
    if product.default_color_id:
        for entry in product.colors:
            if product.default_color_id in (entry.id, entry.color_id):
                return entry
    return product.colors[0]


def get_default_color_id(product: FeedProduct) -> Optional[str]:
    if product.default_color_id:
        return str(product.default_color_id)
    entry = get_default_color_entry(product)
    return entry.identifier if entry else None


def get_default_size(product: FeedProduct) -> Optional[SizeEntry]:
    """Size flagged as selected, else the first one."""
    if not product.sizes:
        return None
    for size in product.sizes:
        if size.selected:
            return size
    return product.sizes[0]


def find_size_entry(product: FeedProduct, size_key: Optional[str]) -> Optional[SizeEntry]:
    """Size entry whose id or normalized value equals size_key (case-insensitive)."""
    if not size_key:
        return None
    key = size_key.strip().casefold()
    for size in product.sizes:
        if (size.id and size.id.casefold() == key) or size.normalized_value.casefold() == key:
            return size
    return None
