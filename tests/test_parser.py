import pytest

from merchant_sync.core.feed.parser import (
    FeedParseError,
    load_feed_products,
    load_delete_list,
    load_metadata_maps,
)


FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<products>
  <product>
    <id>101</id>
    <code>TS1</code>
    <name>Men's Tee</name>
    <description>&lt;p&gt;Soft cotton&lt;/p&gt;</description>
    <price>12.5</price>
    <manufacturer_id>7</manufacturer_id>
    <type_id>3</type_id>
    <default_color_id>c2</default_color_id>
    <images>
      <image type="front" src="/img/[COLOR_ID]/front.jpg"/>
    </images>
    <alternate_views>
      <view><name>Back</name><src>/img/[COLOR_ID]/back.jpg</src></view>
      <view><name>Front</name><src>/img/[COLOR_ID]/alt-front.jpg</src></view>
    </alternate_views>
    <sizes>
      <size id="s1"><value>S</value></size>
      <size id="s2" selected="true"><name>M</name></size>
    </sizes>
    <colors>
      <color id="c1"><name>Black</name></color>
      <color id="c2">
        <name>Navy</name>
        <clr><name>Dark Navy</name><html>#000080</html></clr>
        <clr><name>Midnight</name></clr>
      </color>
    </colors>
    <categories>
      <category id="5"/>
      <category><category_id>6</category_id></category>
      <category id="5"/>
    </categories>
  </product>
  <product>
    <name>Plain Mug</name>
  </product>
</products>
"""

META_XML = """<?xml version="1.0" encoding="UTF-8"?>
<meta>
  <categories>
    <category id="1">
      <name>Apparel</name>
      <category id="5"><name>T-Shirts</name></category>
    </category>
  </categories>
  <manufacturers>
    <manufacturer><id>7</id><name> Gildan </name></manufacturer>
    <manufacturer><id>8</id><name></name></manufacturer>
  </manufacturers>
</meta>
"""


@pytest.fixture
def feed_file(tmp_path):
    path = tmp_path / "products.xml"
    path.write_text(FEED_XML, encoding="utf-8")
    return path


def test_load_feed_products_normalizes_collections(feed_file):
    products = load_feed_products(feed_file)
    assert len(products) == 2

    tee = products[0]
    assert tee.id == "101"
    assert tee.code == "TS1"
    assert tee.description == "<p>Soft cotton</p>"
    assert tee.price == "12.5"
    assert [i.src for i in tee.images] == ["/img/[COLOR_ID]/front.jpg"]
    assert [i.type for i in tee.images] == ["front"]
    assert [(v.name, v.src) for v in tee.alternate_views] == [
        ("Back", "/img/[COLOR_ID]/back.jpg"),
        ("Front", "/img/[COLOR_ID]/alt-front.jpg"),
    ]
    assert [s.normalized_value for s in tee.sizes] == ["S", "M"]
    assert [s.selected for s in tee.sizes] == [False, True]
    assert [c.identifier for c in tee.colors] == ["c1", "c2"]
    assert tee.colors[1].raw_names == ["Navy", "Dark Navy", "Midnight"]
    assert tee.colors[1].shades[0].html == "#000080"
    assert tee.category_ids == ["5", "6"]

    mug = products[1]
    assert mug.name == "Plain Mug"
    assert mug.images == []
    assert mug.sizes == []
    assert mug.colors == []
    assert mug.category_ids == []


def test_single_product_document(tmp_path):
    path = tmp_path / "one.xml"
    path.write_text("<products><product><id>1</id><sizes><size>XL</size></sizes></product></products>")
    products = load_feed_products(path)
    assert len(products) == 1
    assert [s.normalized_value for s in products[0].sizes] == ["XL"]


def test_empty_feed_yields_no_products(tmp_path):
    path = tmp_path / "empty.xml"
    path.write_text("<products></products>")
    assert load_feed_products(path) == []


def test_missing_feed_raises(tmp_path):
    with pytest.raises(FeedParseError):
        load_feed_products(tmp_path / "missing.xml")


def test_malformed_feed_raises(tmp_path):
    path = tmp_path / "broken.xml"
    path.write_text("<products><product>")
    with pytest.raises(FeedParseError):
        load_feed_products(path)


def test_load_delete_list_prefers_code_and_dedupes(tmp_path):
    path = tmp_path / "delete.xml"
    path.write_text(
        "<products>"
        "<product><code>A1</code><id>1</id></product>"
        "<product><id>2</id></product>"
        "<product><code>A1</code></product>"
        "<product><name>no ids</name></product>"
        "</products>"
    )
    assert load_delete_list(path) == ["A1", "2"]


def test_load_metadata_maps(tmp_path):
    path = tmp_path / "meta.xml"
    path.write_text(META_XML, encoding="utf-8")
    metadata = load_metadata_maps(path)
    assert metadata.categories == {"1": "Apparel", "5": "Apparel > T-Shirts"}
    assert metadata.manufacturers == {"7": "Gildan"}


def test_metadata_failure_degrades_to_empty_maps(tmp_path):
    missing = load_metadata_maps(tmp_path / "nope.xml")
    assert missing.categories == {}
    assert missing.manufacturers == {}

    broken = tmp_path / "broken.xml"
    broken.write_text("<meta><categories>")
    assert load_metadata_maps(broken).categories == {}
