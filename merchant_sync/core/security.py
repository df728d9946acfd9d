"""
Security utilities - never log secrets.
"""

import re
from typing import Any, Dict


REDACTED = '***REDACTED***'

SENSITIVE_KEYS = (
    'private_key',
    'private_key_id',
    'client_secret',
    'refresh_token',
    'access_token',
    'token',
    'password',
    'secret',
    'authorization',
)


def sanitize_dict_for_logging(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Remove sensitive fields from dict for logging.

    Args:
        data: Dictionary that may contain secrets (service account info, headers).

    Returns:
        Sanitized copy with secrets replaced.
    """
    result = data.copy()
    for key in list(result.keys()):
        if str(key).lower() in SENSITIVE_KEYS:
            result[key] = REDACTED

    # Also check nested dicts
    for k, v in result.items():
        if isinstance(v, dict):
            result[k] = sanitize_dict_for_logging(v)
        elif isinstance(v, list):
            result[k] = [
                sanitize_dict_for_logging(item) if isinstance(item, dict) else item
                for item in v
            ]

    return result


def sanitize_string_for_logging(text: str) -> str:
    """
    Remove potential secrets from a string (PEM keys, bearer tokens, JSON key fields).

    Args:
        text: String that may contain secrets.

    Returns:
        Sanitized string.
    """
    if not text:
        return text

    patterns = [
        (r'-----BEGIN [A-Z ]*PRIVATE KEY-----.*?-----END [A-Z ]*PRIVATE KEY-----', REDACTED),
        (r'(?i)bearer\s+[A-Za-z0-9._\-]+', f'Bearer {REDACTED}'),
        (r'ya29\.[A-Za-z0-9._\-]+', REDACTED),
        (r'("private_key(?:_id)?"\s*:\s*")[^"]*(")', rf'\g<1>{REDACTED}\g<2>'),
    ]

    result = text
    for pattern, replacement in patterns:
        result = re.sub(pattern, replacement, result, flags=re.DOTALL)

    return result
