"""
Token-based gender and age-group inference.
"""

from typing import List, Set, Tuple, Sequence

from merchant_sync.core.utils import tokenize, sanitize_description
from .models import FeedProduct, InferenceConfig, GenderValue, AgeGroupValue


AGE_GROUP_PRIORITY = ('newborn', 'infant', 'toddler', 'kids')


def build_token_set(
    product: FeedProduct,
    category_labels: Sequence[str],
    include_description: bool = False
) -> Set[str]:
    """Tokens from name, code and category labels (and description when enabled)."""
    parts: List[str] = [product.name or '', product.code or '']
    parts.extend(category_labels)
    if include_description and product.description:
        parts.append(sanitize_description(product.description))
    tokens: Set[str] = set()
    for part in parts:
        tokens.update(tokenize(part))
    return tokens


def infer_gender(tokens: Set[str], config: InferenceConfig) -> GenderValue:
    if any(k in tokens for k in config.unisex_keywords):
        return 'unisex'
    has_female = any(k in tokens for k in config.female_keywords)
    has_male = any(k in tokens for k in config.male_keywords)
    if has_female and has_male:
        return 'unisex'
    if has_female:
        return 'female'
    if has_male:
        return 'male'
    return config.default_gender


def infer_age_group(tokens: Set[str], config: InferenceConfig) -> AgeGroupValue:
    for group in AGE_GROUP_PRIORITY:
        if any(k in tokens for k in config.age_keywords.get(group, [])):
            return group
    if config.adult_keyword in tokens:
        return 'adult'
    return config.default_age_group


def infer_demographics(
    product: FeedProduct,
    category_labels: Sequence[str],
    config: InferenceConfig
) -> Tuple[GenderValue, AgeGroupValue]:
    """
    Infer (gender, age_group) for a product.

    Kids products always get the configured kids gender, whatever the
    keywords say.
    """
    tokens = build_token_set(product, category_labels, config.include_description)
    gender = infer_gender(tokens, config)
    age_group = infer_age_group(tokens, config)
    if age_group == 'kids':
        gender = config.kids_default_gender
    return gender, age_group
