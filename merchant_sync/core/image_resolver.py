"""
Image resolver for feed image templates.

Handles:
- Alternate views: ordered by a fixed display priority, placed ahead of direct images
- Placeholders: [COLOR_ID], [SIZE_ID], [SIZE] (raw or URI-encoded)
- Per-variant selection: front -> back -> other, each color in turn
"""

import re
from typing import List, Optional, Sequence

from merchant_sync.core.feed.models import FeedProduct, ImageEntry, AlternateView, ColorEntry, SizeEntry
from merchant_sync.core.feed.extractors import get_default_color_id, get_default_size
from merchant_sync.core.utils import replace_placeholder, ensure_absolute_url


# Up to 1 primary + 10 additional image links
MAX_IMAGE_LINKS = 11

# Display priority of alternate views; each row lists accepted spellings
ALTERNATE_VIEW_PRIORITY = (
    ('front',),
    ('back',),
    ('right sleeve', 'sleeve right'),
    ('left sleeve', 'sleeve left'),
)

IMAGE_CATEGORY_ORDER = ('front', 'back', 'other')


def _view_name_key(name: Optional[str]) -> str:
    return ' '.join(re.split(r'[^a-z0-9]+', (name or '').casefold())).strip()


def view_priority(name: Optional[str]) -> int:
    """Index in the priority table; unknown names sort after all of them."""
    key = _view_name_key(name)
    for index, spellings in enumerate(ALTERNATE_VIEW_PRIORITY):
        if key in spellings:
            return index
    return len(ALTERNATE_VIEW_PRIORITY)


def order_alternate_views(views: Sequence[AlternateView]) -> List[AlternateView]:
    # sorted() is stable, so ties keep feed order
    return sorted(views, key=lambda view: view_priority(view.name))


def merge_image_entries(product: FeedProduct) -> List[ImageEntry]:
    """Alternate views (priority-ordered) followed by direct image entries."""
    merged = [
        ImageEntry(type=view.name, src=view.src)
        for view in order_alternate_views(product.alternate_views)
        if view.src
    ]
    merged.extend(entry for entry in product.images if entry.src)
    return merged


def materialize_image_source(
    src: Optional[str],
    color_id: Optional[str],
    size: Optional[SizeEntry]
) -> Optional[str]:
    """Substitute color/size placeholders in an image source template."""
    if not src:
        return None
    result = src
    if color_id:
        result = replace_placeholder(result, 'COLOR_ID', color_id)
    if size is not None:
        if size.id:
            result = replace_placeholder(result, 'SIZE_ID', size.id)
        if size.normalized_value:
            result = replace_placeholder(result, 'SIZE', size.normalized_value)
    return result


class _LinkCollector:
    """Ordered, de-duplicated, capped list of absolute image URLs."""

    def __init__(self, asset_base_url: str, limit: int = MAX_IMAGE_LINKS):
        self.asset_base_url = asset_base_url
        self.limit = limit
        self.links: List[str] = []

    @property
    def full(self) -> bool:
        return len(self.links) >= self.limit

    def add(self, src: Optional[str]):
        if self.full:
            return
        url = ensure_absolute_url(self.asset_base_url, src)
        if url and url not in self.links:
            self.links.append(url)


def resolve_product_images(product: FeedProduct, asset_base_url: str) -> List[str]:
    """
    Product-level image set, using the product's default color and size.

    Used as the fallback for variants whose own resolution yields nothing.
    """
    color_id = get_default_color_id(product)
    size = get_default_size(product)
    collector = _LinkCollector(asset_base_url)
    for entry in merge_image_entries(product):
        if collector.full:
            break
        collector.add(materialize_image_source(entry.src, color_id, size))
    return collector.links


def resolve_variant_images(
    product: FeedProduct,
    color_entries: Sequence[ColorEntry],
    image_size: Optional[SizeEntry],
    asset_base_url: str,
    fallback: Sequence[str] = ()
) -> List[str]:
    """
    Image set for one variant.

    Args:
        product: Feed product
        color_entries: Concrete color entries selected for the variant's color label
        image_size: Canonical display size used for [SIZE_ID]/[SIZE]; images are
                    keyed to this size rather than to the sold size
        asset_base_url: Base for relative image sources
        fallback: Product-level links returned when nothing resolves

    Returns:
        Up to MAX_IMAGE_LINKS absolute URLs, front images first
    """
    entries = merge_image_entries(product)
    color_ids = [entry.identifier for entry in color_entries if entry.identifier]
    if not color_ids:
        color_ids = [get_default_color_id(product)]

    collector = _LinkCollector(asset_base_url)
    for category in IMAGE_CATEGORY_ORDER:
        for color_id in color_ids:
            for entry in entries:
                if collector.full:
                    return collector.links
                if entry.category != category:
                    continue
                collector.add(materialize_image_source(entry.src, color_id, image_size))

    return collector.links or list(fallback)
