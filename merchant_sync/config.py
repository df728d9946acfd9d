"""
Configuration management for the catalog sync tools.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional, Literal, List

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from merchant_sync.core.feed.models import MappingOptions, InferenceConfig


PACKAGE_DIR = Path(__file__).resolve().parent


class ConfigurationError(Exception):
    """Required configuration is missing or invalid."""
    pass


def find_env_file(search_dirs: Optional[List[Path]] = None) -> Optional[Path]:
    """
    First existing .env file in: cwd, the package directory, its parent.

    Returns:
        Path to the .env file or None if none exists.
    """
    dirs = search_dirs if search_dirs is not None else [Path.cwd(), PACKAGE_DIR, PACKAGE_DIR.parent]
    for directory in dirs:
        candidate = Path(directory) / ".env"
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    merchant_id: Optional[str] = Field(default=None, validation_alias="GOOGLE_MERCHANT_ID")

    store_base_url: str = Field(default="https://l1print.com/", validation_alias="STORE_BASE_URL")
    store_asset_base_url: Optional[str] = Field(default=None, validation_alias="STORE_ASSET_BASE_URL")
    product_path_template: str = Field(
        default="/blank_product/{id}/{nameSlug}",
        validation_alias="PRODUCT_PATH_TEMPLATE"
    )

    content_language: str = Field(default="en", validation_alias="GOOGLE_CONTENT_LANGUAGE")
    target_country: str = Field(default="US", validation_alias="GOOGLE_TARGET_COUNTRY")
    channel: Literal["online", "local"] = Field(default="online", validation_alias="GOOGLE_CHANNEL")
    price_currency: str = Field(default="USD", validation_alias="GOOGLE_PRICE_CURRENCY")
    default_availability: str = Field(default="in stock", validation_alias="GOOGLE_DEFAULT_AVAILABILITY")
    product_condition: str = Field(default="new", validation_alias="GOOGLE_PRODUCT_CONDITION")
    default_product_category: Optional[str] = Field(
        default=None,
        validation_alias="GOOGLE_DEFAULT_PRODUCT_CATEGORY"
    )

    service_account_json: Optional[str] = Field(default=None, validation_alias="GOOGLE_SERVICE_ACCOUNT_JSON")
    application_credentials: Optional[str] = Field(
        default=None,
        validation_alias="GOOGLE_APPLICATION_CREDENTIALS"
    )

    feed_xml_path: str = Field(default="data_feeds/products.xml", validation_alias="FEED_XML_PATH")
    feed_meta_path: str = Field(default="data_feeds/meta_data.xml", validation_alias="FEED_META_PATH")
    variant_cache_path: str = Field(default="data/variant_cache.db", validation_alias="VARIANT_CACHE_PATH")

    preferred_image_size: Optional[str] = Field(default="L", validation_alias="PREFERRED_IMAGE_SIZE")
    infer_from_description: bool = Field(default=False, validation_alias="INFER_FROM_DESCRIPTION")
    default_gender: Literal["male", "female", "unisex"] = Field(default="male", validation_alias="DEFAULT_GENDER")
    default_age_group: Literal["newborn", "infant", "toddler", "kids", "adult"] = Field(
        default="adult",
        validation_alias="DEFAULT_AGE_GROUP"
    )
    kids_default_gender: Literal["male", "female", "unisex"] = Field(
        default="unisex",
        validation_alias="KIDS_DEFAULT_GENDER"
    )

    force_exit_grace_seconds: float = Field(default=3.0, ge=0, validation_alias="FORCE_EXIT_GRACE_SECONDS")
    merchant_request_timeout: float = Field(default=30.0, gt=0, validation_alias="MERCHANT_REQUEST_TIMEOUT")
    merchant_max_retries: int = Field(default=3, ge=0, validation_alias="MERCHANT_MAX_RETRIES")
    merchant_rate_limit_rps: float = Field(default=5.0, ge=0, validation_alias="MERCHANT_RATE_LIMIT_RPS")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @model_validator(mode="after")
    def _default_asset_base(self):
        if not self.store_asset_base_url:
            self.store_asset_base_url = self.store_base_url
        return self

    def require_merchant_id(self) -> str:
        """
        Merchant account id for remote calls.

        Raises:
            ConfigurationError: If GOOGLE_MERCHANT_ID is not set.
        """
        merchant_id = (self.merchant_id or "").strip()
        if not merchant_id:
            raise ConfigurationError("GOOGLE_MERCHANT_ID environment variable is required.")
        return merchant_id

    def mapping_options(self) -> MappingOptions:
        return MappingOptions(
            base_store_url=self.store_base_url,
            asset_base_url=self.store_asset_base_url or self.store_base_url,
            product_path_template=self.product_path_template,
            content_language=self.content_language,
            target_country=self.target_country,
            channel=self.channel,
            price_currency=self.price_currency,
            default_availability=self.default_availability,
            default_condition=self.product_condition,
            default_category=self.default_product_category,
            preferred_image_size=self.preferred_image_size,
        )

    def inference_config(self) -> InferenceConfig:
        return InferenceConfig(
            default_gender=self.default_gender,
            default_age_group=self.default_age_group,
            kids_default_gender=self.kids_default_gender,
            include_description=self.infer_from_description,
        )


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Build settings from the environment and the first .env file found.

    Raises:
        ConfigurationError: If a value fails validation.
    """
    path = env_file or find_env_file()
    try:
        return Settings(_env_file=str(path) if path else None)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


@lru_cache()
def get_settings() -> Settings:
    """Get application settings."""
    return load_settings()
