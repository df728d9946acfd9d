import dataclasses
from datetime import datetime, timezone

from merchant_sync.core.feed.models import CanonicalVariant, Price
from merchant_sync.core.feed.fingerprint import fingerprint, fingerprint_projection
from merchant_sync.core.feed.adapters import variant_to_request


def _variant(**overrides) -> CanonicalVariant:
    values = dict(
        offer_id="ts1-black-s",
        item_group_id="TS1",
        title="Tee",
        description="Soft",
        link="https://l1print.com/blank_product/1/tee",
        image_link="https://cdn.example.com/a.jpg",
        additional_image_links=["https://cdn.example.com/b.jpg"],
        price=Price(currency="USD", value="12.50"),
        brand="Gildan",
        mpn="TS1",
        product_types=["Apparel > T-Shirts"],
        custom_label_0="3",
        gender="male",
        age_group="adult",
        color="Black",
        sizes=["S"],
        source_product_id="1",
        built_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return CanonicalVariant(**values)


def test_fingerprint_is_deterministic():
    assert fingerprint(_variant()) == fingerprint(_variant())
    assert len(fingerprint(_variant())) == 64


def test_fingerprint_ignores_provenance():
    later = _variant(built_at=datetime(2025, 6, 1, tzinfo=timezone.utc), source_product_id="other")
    assert fingerprint(later) == fingerprint(_variant())


def test_fingerprint_changes_with_content():
    base = fingerprint(_variant())
    assert fingerprint(_variant(title="Tee v2")) != base
    assert fingerprint(_variant(price=Price(currency="USD", value="13.00"))) != base
    assert fingerprint(_variant(additional_image_links=[])) != base
    assert fingerprint(_variant(gender="female")) != base


def test_projection_covers_every_content_field():
    projected = fingerprint_projection(_variant())
    content_fields = {f.name for f in dataclasses.fields(CanonicalVariant)} - {"source_product_id", "built_at"}
    assert len(projected) == len(content_fields)


def test_request_body_is_camel_case_without_empty_fields():
    body = variant_to_request(_variant(additional_image_links=[], brand=None))

    assert body["offerId"] == "ts1-black-s"
    assert body["itemGroupId"] == "TS1"
    assert body["price"] == {"value": "12.50", "currency": "USD"}
    assert body["customLabel0"] == "3"
    assert body["ageGroup"] == "adult"
    assert body["productTypes"] == ["Apparel > T-Shirts"]
    assert body["sizes"] == ["S"]
    assert "additionalImageLinks" not in body
    assert "brand" not in body
    assert "googleProductCategory" not in body
    assert "sourceProductId" not in body
