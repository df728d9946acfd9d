"""
Identifier and text utility functions.
"""

import re
import html
import logging
import unicodedata
from typing import Optional, List, Any, Iterable, TypeVar
from urllib.parse import quote, urljoin

logger = logging.getLogger(__name__)

T = TypeVar("T")

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"

_ABSOLUTE_URL_RE = re.compile(r'^https?://', re.IGNORECASE)


def to_list(value: Any) -> List[Any]:
    """Normalize an absent / single / list value to a list."""
    if value is None or value == "" or value == {}:
        return []
    if isinstance(value, list):
        return [v for v in value if v is not None]
    return [value]


def dedupe(values: Iterable[T]) -> List[T]:
    """Drop repeated values, keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def slugify(text: Optional[str]) -> str:
    """Convert text to URL-safe slug."""
    if not text:
        return ""
    normalized = unicodedata.normalize("NFKD", text)
    slug = re.sub(r'[^\w\s-]', '', normalized, flags=re.ASCII).strip()
    slug = re.sub(r'[\s_-]+', '-', slug)
    return slug.strip('-').lower()


def normalize_id_part(value: Optional[str]) -> str:
    """
    Normalize a value for use inside an offer identifier.

    Lower-cases, collapses every run of non-alphanumeric characters into a
    single hyphen and trims leading/trailing hyphens.
    """
    if not value:
        return ""
    return re.sub(r'[^a-z0-9]+', '-', str(value).lower()).strip('-')


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def apply_template(template: str, product_id: Optional[str], code: Optional[str], name: Optional[str]) -> str:
    """
    Fill a product path template.

    Supported tokens (case-insensitive): {id}, {code}, {nameSlug}.
    Every substituted value is URI-component encoded.
    """
    result = re.sub(r'\{id\}', lambda _: encode_uri_component(product_id or ''), template, flags=re.IGNORECASE)
    result = re.sub(r'\{code\}', lambda _: encode_uri_component(code or ''), result, flags=re.IGNORECASE)
    result = re.sub(r'\{nameslug\}', lambda _: encode_uri_component(slugify(name)), result, flags=re.IGNORECASE)
    return result


def replace_placeholder(source: str, placeholder: str, value: Optional[str]) -> str:
    """
    Replace `[PLACEHOLDER]` in an image source template.

    Both the raw form and its URI-encoded form (`%5BPLACEHOLDER%5D`) are
    replaced, case-insensitively. The encoded form receives an encoded value.
    """
    if not source or not value:
        return source
    raw_pattern = re.compile(re.escape(f"[{placeholder}]"), re.IGNORECASE)
    encoded_pattern = re.compile(re.escape(encode_uri_component(f"[{placeholder}]")), re.IGNORECASE)
    result = raw_pattern.sub(lambda _: value, source)
    return encoded_pattern.sub(lambda _: encode_uri_component(value), result)


def ensure_absolute_url(base_url: str, candidate: Optional[str]) -> Optional[str]:
    """
    Resolve a possibly relative URL against a base URL.

    Args:
        base_url: Base URL (trailing slash optional)
        candidate: Absolute URL, site-relative path, or relative path

    Returns:
        Absolute URL, or None if candidate is empty or cannot be resolved
    """
    if not candidate:
        return None
    if _ABSOLUTE_URL_RE.match(candidate):
        return candidate
    try:
        normalized_base = base_url if base_url.endswith('/') else f"{base_url}/"
        relative = candidate[1:] if candidate.startswith('/') else candidate
        resolved = urljoin(normalized_base, relative)
    except (ValueError, AttributeError, TypeError) as e:
        logger.warning(f"Unable to build absolute URL from '{candidate}': {e}")
        return None
    if not _ABSOLUTE_URL_RE.match(resolved):
        logger.warning(f"Unable to build absolute URL from '{candidate}' with base '{base_url}'")
        return None
    return resolved


def sanitize_description(description: Optional[str]) -> str:
    """
    Turn an HTML product description into plain text lines.

    Entities are decoded, block and line-break markup become newlines, list
    items become bullet lines, remaining tags are stripped, whitespace is
    collapsed per line and empty lines are dropped.
    """
    if not description:
        return ''
    decoded = html.unescape(description)
    text = re.sub(r'<\s*br\s*/?>', '\n', decoded, flags=re.IGNORECASE)
    text = re.sub(r'</\s*(p|div|h\d)\s*>', '\n', text, flags=re.IGNORECASE)
    text = re.sub(r'<\s*(p|div|h\d)\b[^>]*>', '\n', text, flags=re.IGNORECASE)
    text = re.sub(r'<\s*li\b[^>]*>\s*', '\n• ', text, flags=re.IGNORECASE)
    text = re.sub(r'</\s*li\s*>', '', text, flags=re.IGNORECASE)
    text = re.sub(r'</\s*(ul|ol)\s*>', '\n', text, flags=re.IGNORECASE)
    text = re.sub(r'<[^>]*>', ' ', text)

    lines = [re.sub(r'\s+', ' ', line).strip() for line in text.split('\n')]
    return '\n'.join(line for line in lines if line)


def tokenize(text: str) -> List[str]:
    """
    Split free text into lower-case alphanumeric tokens.

    Apostrophes are removed before splitting so "Women's" becomes "womens".
    """
    if not text:
        return []
    lowered = text.casefold()
    lowered = re.sub(r"['’]", '', lowered)
    return [token for token in re.split(r'[^a-z0-9]+', lowered) if token]
