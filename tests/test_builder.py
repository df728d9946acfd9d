import pytest

from merchant_sync.core.feed.models import (
    FeedProduct,
    SizeEntry,
    ColorEntry,
    ImageEntry,
    AlternateView,
    MappingOptions,
    InferenceConfig,
    MetaDataMaps,
)
from merchant_sync.core.feed.builder import build_variants, resolve_base_offer_id, parse_price
from merchant_sync.core.feed.service import build_variant_batch
from merchant_sync.core.image_resolver import (
    order_alternate_views,
    resolve_product_images,
    resolve_variant_images,
    MAX_IMAGE_LINKS,
)


@pytest.fixture
def options():
    return MappingOptions(
        base_store_url="https://l1print.com/",
        asset_base_url="https://cdn.example.com/",
    )


def _build(product, options, categories=None, manufacturers=None, **inference):
    return build_variants(product, options, categories or {}, manufacturers or {}, InferenceConfig(**inference))


def _sizes(*values):
    return [SizeEntry(id=f"s{i}", value=v) for i, v in enumerate(values, start=1)]


def test_reference_product_expands_to_color_size_grid(options):
    product = FeedProduct(
        code="TS1",
        name="Men's Tee",
        sizes=_sizes("S", "M", "3XL"),
        colors=[ColorEntry(id="c1", name="Black"), ColorEntry(id="c2", name="Navy")],
    )
    variants = _build(product, options)

    assert [v.offer_id for v in variants] == ["ts1-black-navy-s", "ts1-black-navy-m"]
    for variant in variants:
        assert variant.item_group_id == "TS1"
        assert variant.color == "Black/Navy"
        assert variant.gender == "male"
        assert variant.age_group == "adult"
        assert variant.mpn == "TS1"
    assert [v.sizes for v in variants] == [["S"], ["M"]]


def test_grid_size_and_unique_offer_ids(options):
    product = FeedProduct(
        id="101",
        code="TS1",
        name="Tee",
        sizes=_sizes("S", "M", "L"),
        colors=[ColorEntry(id="c1", name="Black"), ColorEntry(id="c2", name="Navy"), ColorEntry(id="c3", name="Red")],
    )
    variants = _build(product, options)

    assert len(variants) == 6
    assert len({v.offer_id for v in variants}) == 6
    assert variants[0].offer_id == "ts1-101-black-navy-s"
    assert variants[-1].offer_id == "ts1-101-multicolor-l"
    assert {v.item_group_id for v in variants} == {"TS1-101"}


def test_sizes_differing_only_in_case_get_distinct_offer_ids(options):
    product = FeedProduct(
        id="1",
        code="TS1",
        name="Tee",
        sizes=_sizes("S", "s"),
        colors=[ColorEntry(id="c1", name="Black")],
    )
    variants = _build(product, options)

    assert [v.offer_id for v in variants] == ["ts1-1-black-s", "ts1-1-black-s-2"]
    assert [v.sizes for v in variants] == [["S"], ["s"]]

    batch = build_variant_batch([product], options, MetaDataMaps(), InferenceConfig())
    assert len(batch.variants) == 2
    assert batch.duplicates_dropped == []


def test_all_sizes_excluded_yields_nothing(options):
    product = FeedProduct(code="BIG", name="Big Tee", sizes=_sizes("3XL", "4XL", "5xl"))
    assert _build(product, options) == []


def test_no_axes_yields_single_variant(options):
    product = FeedProduct(code="MUG", name="Plain Mug", price="8")
    variants = _build(product, options)

    assert len(variants) == 1
    assert variants[0].offer_id == "MUG"
    assert variants[0].color is None
    assert variants[0].sizes == []
    assert variants[0].price.value == "8.00"


def test_common_fields(options):
    product = FeedProduct(
        id="101",
        code="TS1",
        name="  Men's Tee ",
        description="<p>Soft &amp; light</p>",
        price="12.5",
        manufacturer_id="7",
        type_id="3",
        category_ids=["5", "6"],
    )
    options.default_category = "212"
    variant = _build(product, options, categories={"5": "Apparel > T-Shirts"}, manufacturers={"7": "Gildan"})[0]

    assert variant.title == "Men's Tee"
    assert variant.description == "Soft & light"
    assert variant.link == "https://l1print.com/blank_product/101/mens-tee"
    assert variant.brand == "Gildan"
    assert variant.product_types == ["Apparel > T-Shirts", "6"]
    assert variant.custom_label_0 == "3"
    assert variant.google_product_category == "212"
    assert variant.price.currency == "USD"
    assert variant.price.value == "12.50"
    assert variant.content_language == "en"
    assert variant.target_country == "US"
    assert variant.channel == "online"
    assert variant.availability == "in stock"
    assert variant.condition == "new"
    assert variant.rest_id == "online:en:US:TS1-101"
    assert variant.source_product_id == "101"


def test_description_falls_back_to_name(options):
    variant = _build(FeedProduct(id="1", name="Tote"), options)[0]
    assert variant.description == "Tote"
    assert variant.brand is None


def test_base_offer_id_fallbacks():
    assert resolve_base_offer_id(FeedProduct(code="A", id="1")) == "A-1"
    assert resolve_base_offer_id(FeedProduct(id="1")) == "1"
    assert resolve_base_offer_id(FeedProduct(name="Men's Tee")) == "mens-tee"
    assert resolve_base_offer_id(FeedProduct()).startswith("product-")


def test_price_parsing():
    assert parse_price(FeedProduct(price="0", cheapest_price="9.999"), "USD").value == "10.00"
    assert parse_price(FeedProduct(price="1,250.5"), "EUR").value == "1250.50"
    assert parse_price(FeedProduct(price="abc"), "USD") is None
    assert parse_price(FeedProduct(price="0"), "USD") is None
    assert parse_price(FeedProduct(), "USD") is None
    assert parse_price(FeedProduct(price="1e30"), "USD") is None
    assert parse_price(FeedProduct(price="1e30", cheapest_price="12"), "USD").value == "12.00"


def test_oversized_price_only_drops_price(options):
    variants = _build(FeedProduct(id="1", code="TS1", name="Tee", price="1e30"), options)
    assert [v.offer_id for v in variants] == ["TS1-1"]
    assert variants[0].price is None


def test_variant_images_follow_color_label_and_preferred_size(options):
    product = FeedProduct(
        id="101",
        code="TS1",
        name="Tee",
        sizes=_sizes("S", "M", "L"),
        colors=[ColorEntry(id="c1", name="Black"), ColorEntry(id="c2", name="Navy"), ColorEntry(id="c3", name="Red")],
        images=[
            ImageEntry(type="front", src="/img/[COLOR_ID]/[SIZE_ID]/front.jpg"),
            ImageEntry(type="back", src="/img/[COLOR_ID]/back.jpg"),
        ],
        alternate_views=[AlternateView(name="Left Sleeve", src="/img/[COLOR_ID]/ls.jpg")],
    )
    variants = _build(product, options)
    black_navy_s = variants[0]
    multicolor_s = variants[3]

    assert black_navy_s.image_link == "https://cdn.example.com/img/c1/s3/front.jpg"
    assert black_navy_s.additional_image_links == [
        "https://cdn.example.com/img/c2/s3/front.jpg",
        "https://cdn.example.com/img/c1/back.jpg",
        "https://cdn.example.com/img/c2/back.jpg",
        "https://cdn.example.com/img/c1/ls.jpg",
        "https://cdn.example.com/img/c2/ls.jpg",
    ]
    assert multicolor_s.color == "Multicolor"
    assert multicolor_s.image_link == "https://cdn.example.com/img/c1/s3/front.jpg"
    assert len(multicolor_s.additional_image_links) == 8


def test_images_are_capped(options):
    colors = [ColorEntry(id=f"c{i}", name="Red") for i in range(20)]
    product = FeedProduct(
        code="X",
        colors=colors,
        images=[ImageEntry(type="front", src="/img/[COLOR_ID].jpg")],
    )
    variant = _build(product, options)[0]
    assert 1 + len(variant.additional_image_links) == MAX_IMAGE_LINKS


def test_alternate_view_priority():
    views = [
        AlternateView(name="Back"),
        AlternateView(name="Detail"),
        AlternateView(name="Sleeve Right"),
        AlternateView(name="FRONT"),
        AlternateView(name="left-sleeve"),
    ]
    assert [v.name for v in order_alternate_views(views)] == [
        "FRONT", "Back", "Sleeve Right", "left-sleeve", "Detail",
    ]


def test_product_level_images_use_defaults():
    product = FeedProduct(
        default_color_id="c9",
        sizes=[SizeEntry(id="s1", value="S"), SizeEntry(id="s2", value="M", selected=True)],
        images=[ImageEntry(type="front", src="img/[COLOR_ID]-[SIZE].jpg")],
        alternate_views=[AlternateView(name="Back", src="img/[COLOR_ID]-back.jpg")],
    )
    assert resolve_product_images(product, "https://cdn.example.com") == [
        "https://cdn.example.com/img/c9-back.jpg",
        "https://cdn.example.com/img/c9-M.jpg",
    ]


def test_variant_images_fall_back_to_product_level():
    product = FeedProduct(code="X")
    assert resolve_variant_images(product, [], None, "https://cdn.example.com/", fallback=["a"]) == ["a"]


def test_batch_drops_duplicate_offer_ids(options):
    products = [
        FeedProduct(code="DUP", name="First"),
        FeedProduct(code="DUP", name="Second"),
        FeedProduct(code="OTHER", name="Other"),
    ]
    batch = build_variant_batch(products, options, MetaDataMaps(), InferenceConfig())

    assert [v.offer_id for v in batch.variants] == ["DUP", "OTHER"]
    assert batch.variants[0].title == "First"
    assert batch.duplicates_dropped == ["DUP"]
    assert not batch.is_partial


def test_batch_limit_marks_partial(options):
    products = [FeedProduct(code=f"P{i}") for i in range(3)]
    batch = build_variant_batch(products, options, MetaDataMaps(), InferenceConfig(), limit=2)

    assert [v.offer_id for v in batch.variants] == ["P0", "P1"]
    assert batch.is_partial
