"""
Catalog product request schemas (Content API v2.1 product resource).
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List


class CatalogModel(BaseModel):
    """Base model serialized with camelCase field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PriceBody(CatalogModel):
    value: str
    currency: str


class ProductBody(CatalogModel):
    """Product insert body."""
    offer_id: str
    item_group_id: Optional[str] = None
    title: str
    description: str
    link: str
    image_link: Optional[str] = None
    additional_image_links: Optional[List[str]] = None
    content_language: str
    target_country: str
    channel: str
    availability: str
    condition: str
    price: Optional[PriceBody] = None
    brand: Optional[str] = None
    mpn: Optional[str] = None
    google_product_category: Optional[str] = None
    product_types: Optional[List[str]] = None
    custom_label0: Optional[str] = None
    gender: Optional[str] = None
    age_group: Optional[str] = None
    color: Optional[str] = None
    sizes: Optional[List[str]] = None

    def to_request(self) -> dict:
        """JSON-ready body; unset optional fields are left out."""
        return self.model_dump(by_alias=True, exclude_none=True)
