"""
Collapse raw feed color names into a few coarse display labels.

Two keyword groups are matched against the raw names. Their matches become
slash-joined labels ("Black/Navy"); anything left unmatched adds the
"Multicolor" label. Labels key variant generation and are mapped back to
concrete color entries when images are resolved.
"""

from dataclasses import dataclass
from typing import List, Tuple, Set, Sequence, Optional

from .models import ColorEntry


@dataclass(frozen=True)
class ColorKeyword:
    label: str
    terms: Tuple[str, ...]

    def matches_exactly(self, folded: str) -> bool:
        return folded in self.terms

    def matches(self, folded: str) -> bool:
        return any(term in folded for term in self.terms)


NEUTRAL_COLOR_KEYWORDS: Tuple[ColorKeyword, ...] = (
    ColorKeyword('Black', ('black',)),
    ColorKeyword('White', ('white',)),
    ColorKeyword('Grey', ('grey', 'gray')),
)

COOL_COLOR_KEYWORDS: Tuple[ColorKeyword, ...] = (
    ColorKeyword('Navy', ('navy',)),
    ColorKeyword('Blue', ('blue',)),
    ColorKeyword('Royal', ('royal',)),
)

MAX_MATCHES_PER_GROUP = 3
MAX_MERGED_MATCHES = 3
MULTICOLOR_LABEL = 'Multicolor'
LABEL_SEPARATOR = '/'


def match_keyword_group(
    raw_colors: Sequence[str],
    keywords: Sequence[ColorKeyword],
    max_matches: int = MAX_MATCHES_PER_GROUP
) -> Tuple[List[ColorKeyword], Set[str]]:
    """
    Match one keyword group against raw color names.

    Exact matches are collected first (in keyword order), then substring
    matches, up to max_matches keywords.

    Returns:
        (matched keywords in label order, raw colors they cover)
    """
    folded = [(raw, raw.casefold()) for raw in raw_colors]
    matched: List[ColorKeyword] = []

    for keyword in keywords:
        if len(matched) >= max_matches:
            break
        if any(keyword.matches_exactly(f) for _, f in folded):
            matched.append(keyword)

    for keyword in keywords:
        if len(matched) >= max_matches:
            break
        if keyword in matched:
            continue
        if any(keyword.matches(f) for _, f in folded):
            matched.append(keyword)

    covered = {raw for raw, f in folded if any(k.matches(f) for k in matched)}
    return matched, covered


def group_colors(
    raw_colors: Sequence[str],
    neutral_keywords: Sequence[ColorKeyword] = NEUTRAL_COLOR_KEYWORDS,
    cool_keywords: Sequence[ColorKeyword] = COOL_COLOR_KEYWORDS,
    max_matches: int = MAX_MATCHES_PER_GROUP,
    max_merged: int = MAX_MERGED_MATCHES
) -> List[str]:
    """
    Build color group labels for a product.

    Examples:
        ["Black", "Navy"]               -> ["Black/Navy"]
        ["Black", "White", "Navy", "Blue"] -> ["Black/White", "Navy/Blue"]
        ["Red", "Black"]                -> ["Black", "Multicolor"]
    """
    if not raw_colors:
        return []

    neutral, neutral_covered = match_keyword_group(raw_colors, neutral_keywords, max_matches)
    cool, cool_covered = match_keyword_group(raw_colors, cool_keywords, max_matches)

    labels: List[str] = []
    if neutral and cool and len(neutral) + len(cool) <= max_merged:
        labels.append(LABEL_SEPARATOR.join(k.label for k in neutral + cool))
    else:
        if neutral:
            labels.append(LABEL_SEPARATOR.join(k.label for k in neutral))
        if cool:
            labels.append(LABEL_SEPARATOR.join(k.label for k in cool))

    covered = neutral_covered | cool_covered
    if any(raw not in covered for raw in raw_colors):
        labels.append(MULTICOLOR_LABEL)

    return labels


def select_color_entries(
    label: Optional[str],
    entries: Sequence[ColorEntry],
    default_entry: Optional[ColorEntry] = None,
    keywords: Sequence[ColorKeyword] = NEUTRAL_COLOR_KEYWORDS + COOL_COLOR_KEYWORDS
) -> List[ColorEntry]:
    """
    Map a color group label back to the concrete entries it stands for.

    "Multicolor" selects every entry. Otherwise each slash-separated token is
    matched against entry name tokens, in label order; when nothing matches,
    the default entry is used.
    """
    if not label:
        return [default_entry] if default_entry else []
    if label.casefold() == MULTICOLOR_LABEL.casefold():
        return list(entries)

    by_label = {k.label.casefold(): k for k in keywords}
    selected: List[ColorEntry] = []
    for token in label.split(LABEL_SEPARATOR):
        token = token.strip().casefold()
        if not token:
            continue
        keyword = by_label.get(token) or ColorKeyword(token, (token,))
        for entry in entries:
            if entry in selected:
                continue
            if any(keyword.matches(name) for name in entry.name_tokens):
                selected.append(entry)

    if not selected and default_entry:
        selected.append(default_entry)
    return selected
