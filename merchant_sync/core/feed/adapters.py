"""
Adapters for converting CanonicalVariant to catalog request bodies.
"""

from typing import Dict, Any

from merchant_sync.schemas.products import ProductBody, PriceBody
from .models import CanonicalVariant


def variant_to_product_body(variant: CanonicalVariant) -> ProductBody:
    """
    Convert a CanonicalVariant to the catalog product body.

    Empty collections are sent as absent fields rather than empty lists.
    """
    return ProductBody(
        offer_id=variant.offer_id,
        item_group_id=variant.item_group_id,
        title=variant.title,
        description=variant.description,
        link=variant.link,
        image_link=variant.image_link,
        additional_image_links=list(variant.additional_image_links) or None,
        content_language=variant.content_language,
        target_country=variant.target_country,
        channel=variant.channel,
        availability=variant.availability,
        condition=variant.condition,
        price=PriceBody(value=variant.price.value, currency=variant.price.currency) if variant.price else None,
        brand=variant.brand,
        mpn=variant.mpn,
        google_product_category=variant.google_product_category,
        product_types=list(variant.product_types) or None,
        custom_label0=variant.custom_label_0,
        gender=variant.gender,
        age_group=variant.age_group,
        color=variant.color,
        sizes=list(variant.sizes) or None,
    )


def variant_to_request(variant: CanonicalVariant) -> Dict[str, Any]:
    return variant_to_product_body(variant).to_request()
