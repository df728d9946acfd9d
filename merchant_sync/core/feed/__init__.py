"""
Feed ingestion and canonical variant core module.
"""

from .models import FeedProduct, CanonicalVariant, MappingOptions, InferenceConfig, MetaDataMaps
from .parser import FeedParseError, load_feed_products, load_metadata_maps, load_delete_list
from .builder import build_variants
from .fingerprint import fingerprint
from .adapters import variant_to_request
from .service import VariantBatch, build_variant_batch, load_variant_batch

__all__ = [
    'FeedProduct',
    'CanonicalVariant',
    'MappingOptions',
    'InferenceConfig',
    'MetaDataMaps',
    'FeedParseError',
    'load_feed_products',
    'load_metadata_maps',
    'load_delete_list',
    'build_variants',
    'fingerprint',
    'variant_to_request',
    'VariantBatch',
    'build_variant_batch',
    'load_variant_batch',
]
