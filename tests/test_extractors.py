from merchant_sync.core.feed.models import FeedProduct, SizeEntry, ColorEntry, ColorShade
from merchant_sync.core.feed.extractors import (
    extract_product_sizes,
    extract_product_colors,
    extract_product_categories,
    get_default_color_entry,
    get_default_color_id,
    get_default_size,
    find_size_entry,
)
from merchant_sync.core.feed.color_groups import group_colors, select_color_entries


def _product(**kwargs) -> FeedProduct:
    return FeedProduct(**kwargs)


def test_sizes_are_normalized_deduped_and_filtered():
    product = _product(sizes=[
        SizeEntry(id="1", value=" S "),
        SizeEntry(id="2", name="M"),
        SizeEntry(id="3", value="3XL"),
        SizeEntry(id="4", value="S"),
        SizeEntry(id="5", size_label_1="xxxl"),
        SizeEntry(id="6"),
    ])
    assert extract_product_sizes(product) == ["S", "M"]


def test_colors_include_shades_once():
    product = _product(colors=[
        ColorEntry(id="c1", name="Black"),
        ColorEntry(id="c2", name="Navy", shades=[ColorShade(name="Black"), ColorShade(name="Midnight")]),
    ])
    assert extract_product_colors(product) == ["Black", "Navy", "Midnight"]


def test_categories_fall_back_to_raw_ids():
    product = _product(category_ids=["5", "99"])
    assert extract_product_categories(product, {"5": "Apparel > T-Shirts"}) == ["Apparel > T-Shirts", "99"]


def test_default_color_and_size():
    colors = [ColorEntry(id="c1", name="Black"), ColorEntry(color_id="c2", name="Navy")]
    sizes = [SizeEntry(id="s1", value="S"), SizeEntry(id="s2", value="L", selected=True)]

    product = _product(colors=colors, sizes=sizes, default_color_id="c2")
    assert get_default_color_entry(product).name == "Navy"
    assert get_default_color_id(product) == "c2"
    assert get_default_size(product).id == "s2"

    product = _product(colors=colors, sizes=sizes[:1], default_color_id="zz")
    assert get_default_color_entry(product).name == "Black"
    assert get_default_size(product).id == "s1"

    product = _product(colors=colors)
    assert get_default_color_id(product) == "c1"
    assert get_default_size(product) is None


def test_find_size_entry_by_id_or_value():
    product = _product(sizes=[SizeEntry(id="s1", value="S"), SizeEntry(id="s9", value="L")])
    assert find_size_entry(product, "l").id == "s9"
    assert find_size_entry(product, "S1").value == "S"
    assert find_size_entry(product, "XL") is None
    assert find_size_entry(product, None) is None


def test_group_colors_merges_small_groups():
    assert group_colors(["Black", "Navy"]) == ["Black/Navy"]


def test_group_colors_splits_large_groups():
    assert group_colors(["Black", "White", "Navy", "Blue"]) == ["Black/White", "Navy/Blue"]


def test_group_colors_substring_matches():
    assert group_colors(["Heather Grey", "Royal Blue"]) == ["Grey/Blue/Royal"]


def test_group_colors_multicolor_for_unmatched():
    assert group_colors(["Red", "Black"]) == ["Black", "Multicolor"]
    assert group_colors(["Red"]) == ["Multicolor"]
    assert group_colors([]) == []


def test_group_colors_caps_matches_per_group():
    labels = group_colors(["Black", "White", "Grey", "Charcoal Gray Black"])
    assert labels == ["Black/White/Grey"]


def test_select_color_entries():
    black = ColorEntry(id="c1", name="Black")
    navy = ColorEntry(id="c2", name="Navy", shades=[ColorShade(name="Dark Navy")])
    red = ColorEntry(id="c3", name="Red")
    entries = [black, navy, red]

    assert select_color_entries("Black/Navy", entries, black) == [black, navy]
    assert select_color_entries("Multicolor", entries, black) == entries
    assert select_color_entries("Grey", entries, red) == [red]
    assert select_color_entries(None, entries, navy) == [navy]
    assert select_color_entries(None, [], None) == []
