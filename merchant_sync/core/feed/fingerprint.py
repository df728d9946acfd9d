"""
Content fingerprint of a canonical variant.
"""

import hashlib
import json
from typing import Dict, Any

from .models import CanonicalVariant


def fingerprint_projection(variant: CanonicalVariant) -> Dict[str, Any]:
    """Fields that define the variant's catalog content. Provenance fields are left out."""
    return {
        'offerId': variant.offer_id,
        'itemGroupId': variant.item_group_id,
        'title': variant.title,
        'description': variant.description,
        'link': variant.link,
        'imageLink': variant.image_link,
        'additionalImageLinks': list(variant.additional_image_links),
        'contentLanguage': variant.content_language,
        'targetCountry': variant.target_country,
        'channel': variant.channel,
        'availability': variant.availability,
        'condition': variant.condition,
        'price': {'currency': variant.price.currency, 'value': variant.price.value} if variant.price else None,
        'brand': variant.brand,
        'mpn': variant.mpn,
        'googleProductCategory': variant.google_product_category,
        'productTypes': list(variant.product_types),
        'customLabel0': variant.custom_label_0,
        'gender': variant.gender,
        'ageGroup': variant.age_group,
        'color': variant.color,
        'sizes': list(variant.sizes),
    }


def fingerprint(variant: CanonicalVariant) -> str:
    """SHA-256 hex digest of the canonical JSON form of the projection."""
    payload = json.dumps(
        fingerprint_projection(variant),
        sort_keys=True,
        separators=(',', ':'),
        ensure_ascii=False,
    )
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()
