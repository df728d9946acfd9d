"""
Feed and catalog data models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Literal

from merchant_sync.core.utils import tokenize


GenderValue = Literal['male', 'female', 'unisex']
AgeGroupValue = Literal['newborn', 'infant', 'toddler', 'kids', 'adult']
ImageCategory = Literal['front', 'back', 'other']


# ---- Feed side (read-only input, cardinality already normalized) ----

@dataclass
class SizeEntry:
    """One `<size>` node of a feed product."""
    id: Optional[str] = None
    name: Optional[str] = None
    value: Optional[str] = None
    size_label_1: Optional[str] = None
    size_label_2: Optional[str] = None
    selected: bool = False

    @property
    def normalized_value(self) -> str:
        """First non-empty of value, name, size_label_1, trimmed."""
        for candidate in (self.value, self.name, self.size_label_1):
            if candidate and str(candidate).strip():
                return str(candidate).strip()
        return ''


@dataclass
class ColorShade:
    """A `<clr>` sub-entry of a color."""
    name: Optional[str] = None
    html: Optional[str] = None


@dataclass
class ColorEntry:
    """One `<color>` node: its own name plus any number of shades."""
    id: Optional[str] = None
    color_id: Optional[str] = None
    name: Optional[str] = None
    shades: List[ColorShade] = field(default_factory=list)

    @property
    def identifier(self) -> Optional[str]:
        return self.id or self.color_id

    @property
    def raw_names(self) -> List[str]:
        names = [self.name] + [shade.name for shade in self.shades]
        return [str(n).strip() for n in names if n and str(n).strip()]

    @property
    def name_tokens(self) -> List[str]:
        """Case-folded names used when matching a color label back to entries."""
        return [n.casefold() for n in self.raw_names]


@dataclass
class ImageEntry:
    """An image template (`src` may contain [COLOR_ID], [SIZE_ID], [SIZE])."""
    type: Optional[str] = None
    src: Optional[str] = None

    @property
    def category(self) -> ImageCategory:
        tag = (self.type or '').casefold()
        if 'front' in tag:
            return 'front'
        if 'back' in tag:
            return 'back'
        return 'other'


@dataclass
class AlternateView:
    """An alternate-view image; ordered by display priority before direct images."""
    name: Optional[str] = None
    src: Optional[str] = None


@dataclass
class FeedProduct:
    """Normalized feed product. Collection fields are always lists."""
    id: Optional[str] = None
    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None
    cheapest_price: Optional[str] = None
    manufacturer_id: Optional[str] = None
    type_id: Optional[str] = None
    default_color_id: Optional[str] = None
    images: List[ImageEntry] = field(default_factory=list)
    alternate_views: List[AlternateView] = field(default_factory=list)
    sizes: List[SizeEntry] = field(default_factory=list)
    colors: List[ColorEntry] = field(default_factory=list)
    category_ids: List[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        """Short identifier for log lines."""
        return self.code or self.id or self.name or '<unnamed>'


@dataclass
class MetaDataMaps:
    """Lookup tables parsed from the metadata document."""
    categories: Dict[str, str] = field(default_factory=dict)
    manufacturers: Dict[str, str] = field(default_factory=dict)


# ---- Mapping configuration ----

@dataclass
class MappingOptions:
    """Store-wide values applied to every canonical variant."""
    base_store_url: str
    asset_base_url: str
    product_path_template: str = '/blank_product/{id}/{nameSlug}'
    content_language: str = 'en'
    target_country: str = 'US'
    channel: Literal['online', 'local'] = 'online'
    price_currency: str = 'USD'
    default_availability: str = 'in stock'
    default_condition: str = 'new'
    default_category: Optional[str] = None
    preferred_image_size: Optional[str] = 'L'


@dataclass
class InferenceConfig:
    """Keyword tables and defaults for demographic inference."""
    female_keywords: List[str] = field(default_factory=lambda: [
        'women', 'womens', 'woman', 'lady', 'ladies', 'female', 'girl', 'girls',
    ])
    male_keywords: List[str] = field(default_factory=lambda: [
        'men', 'mens', 'man', 'male', 'boy', 'boys', 'guy', 'guys',
    ])
    unisex_keywords: List[str] = field(default_factory=lambda: ['unisex'])
    # Checked in this order; first match wins
    age_keywords: Dict[str, List[str]] = field(default_factory=lambda: {
        'newborn': ['newborn'],
        'infant': ['infant', 'baby', 'layette'],
        'toddler': ['toddler'],
        'kids': ['youth', 'kid', 'kids', 'child', 'children', 'teen', 'junior', 'boys', 'girls'],
    })
    adult_keyword: str = 'adult'
    default_gender: GenderValue = 'male'
    default_age_group: AgeGroupValue = 'adult'
    kids_default_gender: GenderValue = 'unisex'
    include_description: bool = False

    def __post_init__(self):
        # keywords are matched against tokens, so tokenize them the same way
        self.female_keywords = _tokenized(self.female_keywords)
        self.male_keywords = _tokenized(self.male_keywords)
        self.unisex_keywords = _tokenized(self.unisex_keywords)
        self.age_keywords = {group: _tokenized(words) for group, words in self.age_keywords.items()}


def _tokenized(words: List[str]) -> List[str]:
    result = []
    for word in words:
        result.extend(t for t in tokenize(word) if t not in result)
    return result


# ---- Catalog side ----

@dataclass
class Price:
    currency: str
    value: str  # decimal string, two fractional digits


@dataclass
class CanonicalVariant:
    """One sellable (color, size) combination, fully resolved for the catalog."""
    offer_id: str
    item_group_id: Optional[str] = None
    title: str = ''
    description: str = ''
    link: str = ''
    image_link: Optional[str] = None
    additional_image_links: List[str] = field(default_factory=list)
    content_language: str = 'en'
    target_country: str = 'US'
    channel: str = 'online'
    availability: str = 'in stock'
    condition: str = 'new'
    price: Optional[Price] = None
    brand: Optional[str] = None
    mpn: Optional[str] = None
    google_product_category: Optional[str] = None
    product_types: List[str] = field(default_factory=list)
    custom_label_0: Optional[str] = None
    gender: Optional[str] = None
    age_group: Optional[str] = None
    color: Optional[str] = None
    sizes: List[str] = field(default_factory=list)

    # Provenance only; not part of the content fingerprint
    source_product_id: Optional[str] = None
    built_at: Optional[datetime] = None

    @property
    def rest_id(self) -> str:
        """Composite product key used by the remote catalog for deletes."""
        return build_rest_id(self.offer_id, self.channel, self.content_language, self.target_country)


@dataclass
class CachedVariantRecord:
    """Last successfully uploaded state of one offer identifier."""
    offer_id: str
    item_group_id: Optional[str]
    hash: str
    updated_at: datetime


@dataclass
class UploadQueueItem:
    """A variant scheduled for upload together with its fresh fingerprint."""
    variant: CanonicalVariant
    hash: str


def build_rest_id(offer_id: str, channel: str, content_language: str, target_country: str) -> str:
    return f"{channel}:{content_language}:{target_country}:{offer_id}"
