"""
Expand feed products into canonical catalog variants.

For variable products (colors and/or sizes): ONE CanonicalVariant per
(color group, size) pair.
For products without either axis: ONE CanonicalVariant.
"""

import logging
import time
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Dict, Optional, Tuple

from merchant_sync.core.image_resolver import resolve_product_images, resolve_variant_images
from merchant_sync.core.utils import (
    slugify,
    normalize_id_part,
    apply_template,
    ensure_absolute_url,
    sanitize_description,
)
from .models import FeedProduct, CanonicalVariant, MappingOptions, InferenceConfig, Price
from .extractors import (
    EXCLUDED_SIZE_TOKENS,
    extract_product_sizes,
    extract_product_colors,
    extract_product_categories,
    get_default_color_entry,
    get_default_size,
    find_size_entry,
)
from .color_groups import group_colors, select_color_entries
from .demographics import infer_demographics

logger = logging.getLogger(__name__)

OFFER_ID_SEPARATOR = '-'
MAX_COLOR_LABEL_LENGTH = 100


def resolve_base_offer_id(product: FeedProduct) -> str:
    """code-id when both are present, else either one, else a name slug, else a timestamp."""
    if product.code and product.id:
        return f"{product.code}{OFFER_ID_SEPARATOR}{product.id}"
    return (
        product.code
        or product.id
        or slugify(product.name)
        or f"product-{int(time.time() * 1000)}"
    )


def resolve_item_group_id(product: FeedProduct, base_offer_id: str) -> str:
    if product.code and product.id:
        return f"{product.code}{OFFER_ID_SEPARATOR}{product.id}"
    return product.code or product.id or base_offer_id


def build_variant_offer_id(base_offer_id: str, color_label: Optional[str], size: Optional[str]) -> str:
    """
    Offer ID for one (color, size) combination.

    Example: ("TS1", "Black/Navy", "S") -> "ts1-black-navy-s"
    """
    parts = [normalize_id_part(p) for p in (base_offer_id, color_label, size) if p]
    return OFFER_ID_SEPARATOR.join(p for p in parts if p) or base_offer_id


def parse_price(product: FeedProduct, currency: str) -> Optional[Price]:
    """First positive value of price / cheapest_price, two decimals; None otherwise."""
    for raw in (product.price, product.cheapest_price):
        if raw is None:
            continue
        try:
            amount = Decimal(str(raw).strip().replace(',', ''))
            if not amount.is_finite() or amount <= 0:
                continue
            amount = amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
        except InvalidOperation:
            continue
        return Price(currency=currency, value=str(amount))
    return None


def disambiguate_offer_id(offer_id: str, taken: Dict[str, int]) -> str:
    """
    Keep offer IDs unique within one product.

    Sizes like "S" and "s" normalize to the same suffix; later ones get an
    ordinal ending ("ts1-black-s", "ts1-black-s-2").
    """
    candidate = offer_id
    ordinal = taken.get(offer_id, 1)
    while candidate in taken:
        ordinal += 1
        candidate = f"{offer_id}{OFFER_ID_SEPARATOR}{ordinal}"
    taken[offer_id] = ordinal
    taken.setdefault(candidate, 1)
    return candidate


def _axes(sizes: List[str], color_labels: List[str]) -> List[Tuple[Optional[str], Optional[str]]]:
    colors: List[Optional[str]] = list(color_labels) or [None]
    size_values: List[Optional[str]] = list(sizes) or [None]
    return [(color, size) for color in colors for size in size_values]


def build_variants(
    product: FeedProduct,
    options: MappingOptions,
    category_map: Dict[str, str],
    manufacturer_map: Dict[str, str],
    inference_config: InferenceConfig,
    excluded_sizes=EXCLUDED_SIZE_TOKENS
) -> List[CanonicalVariant]:
    """
    Build all canonical variants of one feed product.

    Never raises: a product that cannot be mapped yields an empty list.

    Args:
        product: Normalized feed product
        options: Store-wide mapping values
        category_map: category id -> full category path
        manufacturer_map: manufacturer id -> brand name
        inference_config: Demographic keyword tables and defaults
        excluded_sizes: Size tokens never offered

    Returns:
        Variants in (color group, size) order
    """
    try:
        return _build_variants(product, options, category_map, manufacturer_map, inference_config, excluded_sizes)
    except Exception as e:
        logger.error(f"Failed to map product {product.label}: {e}", exc_info=True)
        return []


def _build_variants(
    product: FeedProduct,
    options: MappingOptions,
    category_map: Dict[str, str],
    manufacturer_map: Dict[str, str],
    inference_config: InferenceConfig,
    excluded_sizes
) -> List[CanonicalVariant]:
    sizes = extract_product_sizes(product, excluded_sizes)
    if product.sizes and not sizes:
        logger.warning(f"Skipping product {product.label}: every declared size is excluded")
        return []

    base_offer_id = resolve_base_offer_id(product)
    item_group_id = resolve_item_group_id(product, base_offer_id)

    template_path = apply_template(options.product_path_template, product.id, product.code, product.name)
    link = ensure_absolute_url(options.base_store_url, template_path) or options.base_store_url

    product_types = extract_product_categories(product, category_map)
    gender, age_group = infer_demographics(product, product_types, inference_config)

    brand = None
    if product.manufacturer_id:
        brand = manufacturer_map.get(product.manufacturer_id) or product.manufacturer_id

    description = sanitize_description(product.description) or (product.name or '').strip()
    title = (product.name or '').strip() or base_offer_id
    price = parse_price(product, options.price_currency)

    color_labels = group_colors(extract_product_colors(product))
    default_color = get_default_color_entry(product)
    image_size = find_size_entry(product, options.preferred_image_size) or get_default_size(product)
    fallback_images = resolve_product_images(product, options.asset_base_url)
    built_at = datetime.now(timezone.utc)

    variants: List[CanonicalVariant] = []
    taken_offer_ids: Dict[str, int] = {}
    for color_label, size in _axes(sizes, color_labels):
        if color_label is None and size is None:
            offer_id = base_offer_id
        else:
            offer_id = build_variant_offer_id(base_offer_id, color_label, size)
        unique_offer_id = disambiguate_offer_id(offer_id, taken_offer_ids)
        if unique_offer_id != offer_id:
            logger.warning(
                f"Product {product.label}: offer ID {offer_id} repeats for size {size!r}, using {unique_offer_id}"
            )
            offer_id = unique_offer_id

        color_entries = select_color_entries(color_label, product.colors, default_color)
        images = resolve_variant_images(
            product,
            color_entries,
            image_size,
            options.asset_base_url,
            fallback=fallback_images,
        )

        variants.append(CanonicalVariant(
            offer_id=offer_id,
            item_group_id=item_group_id,
            title=title,
            description=description,
            link=link,
            image_link=images[0] if images else None,
            additional_image_links=images[1:],
            content_language=options.content_language,
            target_country=options.target_country,
            channel=options.channel,
            availability=options.default_availability,
            condition=options.default_condition,
            price=price,
            brand=brand,
            mpn=product.code,
            google_product_category=options.default_category,
            product_types=list(product_types),
            custom_label_0=product.type_id,
            gender=gender,
            age_group=age_group,
            color=color_label[:MAX_COLOR_LABEL_LENGTH] if color_label else None,
            sizes=[size] if size else [],
            source_product_id=product.id,
            built_at=built_at,
        ))

    return variants
