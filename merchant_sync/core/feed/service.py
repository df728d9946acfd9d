"""
Variant batch service - loads the feed and metadata and builds canonical variants.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union, Sequence

from .models import FeedProduct, CanonicalVariant, MappingOptions, InferenceConfig, MetaDataMaps
from .parser import load_feed_products, load_metadata_maps
from .builder import build_variants

logger = logging.getLogger(__name__)


@dataclass
class VariantBatch:
    """Output of the build phase."""
    variants: List[CanonicalVariant] = field(default_factory=list)
    products_total: int = 0
    products_selected: int = 0
    duplicates_dropped: List[str] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        """True when a limit left some feed products out of the batch."""
        return self.products_selected < self.products_total


def load_metadata(meta_path: Union[str, Path]) -> MetaDataMaps:
    """Load metadata maps and report what will fall back to raw ids."""
    metadata = load_metadata_maps(meta_path)
    if metadata.categories:
        logger.info(f"Loaded {len(metadata.categories)} categories from {meta_path}")
    else:
        logger.warning(f"No categories parsed from {meta_path}. Product types will use raw IDs.")
    if not metadata.manufacturers:
        logger.warning(f"No manufacturers parsed from {meta_path}. Brand names will use raw IDs.")
    return metadata


def build_variant_batch(
    products: Sequence[FeedProduct],
    options: MappingOptions,
    metadata: MetaDataMaps,
    inference_config: InferenceConfig,
    limit: Optional[int] = None
) -> VariantBatch:
    """
    Build canonical variants for the (optionally limited) product list.

    Offer IDs are unique in the result: when two products produce the same
    offer ID, the first one is kept and the later one is dropped with a warning.
    """
    selected = list(products[:limit]) if limit is not None else list(products)
    batch = VariantBatch(products_total=len(products), products_selected=len(selected))

    seen = {}
    for product in selected:
        for variant in build_variants(
            product,
            options,
            metadata.categories,
            metadata.manufacturers,
            inference_config,
        ):
            if variant.offer_id in seen:
                logger.warning(
                    f"Duplicate offer ID {variant.offer_id} from product {product.label} "
                    f"(first produced by {seen[variant.offer_id]}); skipping"
                )
                batch.duplicates_dropped.append(variant.offer_id)
                continue
            seen[variant.offer_id] = product.label
            batch.variants.append(variant)

    logger.info(f"Prepared {len(batch.variants)} variant products from {len(selected)} feed products.")
    return batch


def load_variant_batch(
    xml_path: Union[str, Path],
    meta_path: Union[str, Path],
    options: MappingOptions,
    inference_config: InferenceConfig,
    limit: Optional[int] = None
) -> VariantBatch:
    """
    Load feed + metadata documents and build the variant batch.

    Raises:
        FeedParseError: If the feed document is missing or malformed.
    """
    metadata = load_metadata(meta_path)

    logger.info(f"Loading feed from: {xml_path}")
    products = load_feed_products(xml_path)
    if not products:
        logger.warning("No products found in the feed.")
        return VariantBatch()

    return build_variant_batch(products, options, metadata, inference_config, limit=limit)
