"""
Parse product feed and metadata XML documents.

Nodes are converted to plain mappings first (attributes and child elements
merged, text trimmed, repeated children collected into lists), then typed
into FeedProduct objects whose collection fields are always lists.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Dict, Any, Optional, Union

from merchant_sync.core.category_utils import build_category_tree, build_category_path_map
from merchant_sync.core.utils import to_list, dedupe
from .models import (
    FeedProduct,
    SizeEntry,
    ColorEntry,
    ColorShade,
    ImageEntry,
    AlternateView,
    MetaDataMaps,
)

logger = logging.getLogger(__name__)

TEXT_KEY = "_"


class FeedParseError(Exception):
    """Feed document could not be read or parsed."""
    pass


def _local_name(tag: str) -> str:
    return tag.split('}', 1)[1] if tag.startswith('{') else tag


def element_to_value(elem: ET.Element) -> Union[str, Dict[str, Any]]:
    """
    Convert an element to a string (leaf without attributes) or a mapping.

    Attributes and child elements share one mapping; a name that occurs more
    than once becomes a list. Text of a non-leaf element is kept under "_".
    """
    text = (elem.text or '').strip()
    children = list(elem)
    if not elem.attrib and not children:
        return text

    result: Dict[str, Any] = {}

    def put(key: str, value: Any):
        if key in result:
            existing = result[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[key] = [existing, value]
        else:
            result[key] = value

    for key, value in elem.attrib.items():
        put(_local_name(key), value.strip())
    for child in children:
        put(_local_name(child.tag), element_to_value(child))
    if text:
        result[TEXT_KEY] = text
    return result


def _parse_document(path: Union[str, Path]) -> ET.Element:
    tree = ET.parse(str(path))
    return tree.getroot()


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get(TEXT_KEY)
        if value is None:
            return None
    if isinstance(value, list):
        return _text(value[0]) if value else None
    text = str(value).strip()
    return text or None


def _children(node: Dict[str, Any], container: str, item: str) -> List[Any]:
    """Items of `<container><item/>...</container>`, always as a list."""
    holder = node.get(container)
    if isinstance(holder, list):
        # repeated container elements: concatenate their items
        items = []
        for h in holder:
            if isinstance(h, dict):
                items.extend(to_list(h.get(item)))
        return items
    if not isinstance(holder, dict):
        return []
    return to_list(holder.get(item))


def _image_entry(raw: Any) -> Optional[ImageEntry]:
    if isinstance(raw, dict):
        return ImageEntry(type=_text(raw.get('type')), src=_text(raw.get('src')) or _text(raw))
    src = _text(raw)
    return ImageEntry(src=src) if src else None


def _alternate_view(raw: Any) -> Optional[AlternateView]:
    if isinstance(raw, dict):
        return AlternateView(name=_text(raw.get('name')), src=_text(raw.get('src')) or _text(raw))
    src = _text(raw)
    return AlternateView(src=src) if src else None


def _size_entry(raw: Any) -> Optional[SizeEntry]:
    if isinstance(raw, dict):
        selected = _text(raw.get('selected')) or ''
        return SizeEntry(
            id=_text(raw.get('id')),
            name=_text(raw.get('name')),
            value=_text(raw.get('value')) or _text(raw),
            size_label_1=_text(raw.get('size_label_1')),
            size_label_2=_text(raw.get('size_label_2')),
            selected=selected.lower() == 'true',
        )
    value = _text(raw)
    return SizeEntry(value=value) if value else None


def _color_entry(raw: Any) -> Optional[ColorEntry]:
    if isinstance(raw, dict):
        shades = []
        for clr in to_list(raw.get('clr')):
            if isinstance(clr, dict):
                shades.append(ColorShade(name=_text(clr.get('name')) or _text(clr), html=_text(clr.get('html'))))
            elif _text(clr):
                shades.append(ColorShade(name=_text(clr)))
        return ColorEntry(
            id=_text(raw.get('id')),
            color_id=_text(raw.get('color_id')),
            name=_text(raw.get('name')) or _text(raw),
            shades=shades,
        )
    name = _text(raw)
    return ColorEntry(name=name) if name else None


def _category_id(raw: Any) -> Optional[str]:
    if isinstance(raw, dict):
        return _text(raw.get('category_id')) or _text(raw.get('id'))
    return _text(raw)


def feed_product_from_node(node: Dict[str, Any]) -> FeedProduct:
    """Type one `<product>` mapping into a FeedProduct."""
    return FeedProduct(
        id=_text(node.get('id')),
        code=_text(node.get('code')),
        name=_text(node.get('name')),
        description=_text(node.get('description')),
        price=_text(node.get('price')),
        cheapest_price=_text(node.get('cheapest_price')),
        manufacturer_id=_text(node.get('manufacturer_id')),
        type_id=_text(node.get('type_id')),
        default_color_id=_text(node.get('default_color_id')),
        images=[e for e in map(_image_entry, _children(node, 'images', 'image')) if e],
        alternate_views=[v for v in map(_alternate_view, _children(node, 'alternate_views', 'view')) if v],
        sizes=[s for s in map(_size_entry, _children(node, 'sizes', 'size')) if s],
        colors=[c for c in map(_color_entry, _children(node, 'colors', 'color')) if c],
        category_ids=dedupe(c for c in map(_category_id, _children(node, 'categories', 'category')) if c),
    )


def _product_nodes(path: Union[str, Path]) -> List[Dict[str, Any]]:
    try:
        root = _parse_document(path)
    except (OSError, ET.ParseError) as e:
        raise FeedParseError(f"Unable to read feed {path}: {e}") from e

    if _local_name(root.tag) != 'products':
        logger.warning(f"Feed root element is <{_local_name(root.tag)}>, expected <products>")
        return []

    parsed = element_to_value(root)
    if not isinstance(parsed, dict):
        return []
    return [n for n in to_list(parsed.get('product')) if isinstance(n, dict)]


def load_feed_products(xml_path: Union[str, Path]) -> List[FeedProduct]:
    """
    Load all products from a feed document.

    Raises:
        FeedParseError: If the document is missing or malformed.
    """
    return [feed_product_from_node(node) for node in _product_nodes(xml_path)]


def load_delete_list(xml_path: Union[str, Path]) -> List[str]:
    """
    Load offer IDs (code, else id) from a delete-list feed, deduplicated.

    Raises:
        FeedParseError: If the document is missing or malformed.
    """
    offer_ids = []
    for node in _product_nodes(xml_path):
        offer_id = _text(node.get('code')) or _text(node.get('id'))
        if offer_id:
            offer_ids.append(offer_id)
    return dedupe(offer_ids)


def load_metadata_maps(meta_path: Union[str, Path]) -> MetaDataMaps:
    """
    Load category path and manufacturer name maps.

    Never raises: an unreadable document degrades to empty maps.
    """
    try:
        root = _parse_document(meta_path)
    except (OSError, ET.ParseError) as e:
        logger.warning(f"Unable to load metadata from {meta_path}: {e}")
        return MetaDataMaps()

    parsed = element_to_value(root)
    if _local_name(root.tag) != 'meta' or not isinstance(parsed, dict):
        logger.warning(f"Metadata root element is <{_local_name(root.tag)}>, expected <meta>")
        return MetaDataMaps()

    categories_holder = parsed.get('categories')
    raw_categories = categories_holder.get('category') if isinstance(categories_holder, dict) else None
    category_map = build_category_path_map(build_category_tree(raw_categories))

    manufacturer_map: Dict[str, str] = {}
    for entry in _children(parsed, 'manufacturers', 'manufacturer'):
        if not isinstance(entry, dict):
            continue
        entry_id = _text(entry.get('id'))
        name = _text(entry.get('name'))
        if entry_id and name:
            manufacturer_map[entry_id] = name

    return MetaDataMaps(categories=category_map, manufacturers=manufacturer_map)
