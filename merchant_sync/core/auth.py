"""
Google service-account credential loading for the catalog API.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import google.auth
from google.auth.credentials import Credentials
from google.oauth2 import service_account

from merchant_sync.core.security import sanitize_dict_for_logging, sanitize_string_for_logging

logger = logging.getLogger(__name__)

CONTENT_API_SCOPES = ['https://www.googleapis.com/auth/content']


def load_inline_service_account(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Parse GOOGLE_SERVICE_ACCOUNT_JSON: inline JSON text or a path to a JSON key file.

    Returns:
        Service account info dict, or None when unset or unreadable
    """
    if not raw or not raw.strip():
        return None

    trimmed = raw.strip()
    try:
        if trimmed.startswith('{'):
            info = json.loads(trimmed)
        else:
            path = Path(trimmed)
            if not path.is_absolute():
                path = Path.cwd() / path
            info = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        logger.warning(
            "Unable to parse GOOGLE_SERVICE_ACCOUNT_JSON. Provide valid JSON or a path to the JSON file. "
            f"{sanitize_string_for_logging(str(e))}"
        )
        return None

    if not isinstance(info, dict):
        logger.warning("GOOGLE_SERVICE_ACCOUNT_JSON must contain a JSON object")
        return None
    return info


def load_credentials(
    service_account_json: Optional[str] = None,
    application_credentials: Optional[str] = None
) -> Credentials:
    """
    Resolve credentials: inline service account, key file, then application default.

    Args:
        service_account_json: GOOGLE_SERVICE_ACCOUNT_JSON value
        application_credentials: GOOGLE_APPLICATION_CREDENTIALS key file path

    Returns:
        Scoped google-auth credentials (not yet refreshed)
    """
    info = load_inline_service_account(service_account_json)
    if info is not None:
        logger.info(f"Using inline service account {info.get('client_email', '<unknown>')}")
        logger.debug(f"Service account info: {sanitize_dict_for_logging(info)}")
        return service_account.Credentials.from_service_account_info(info, scopes=CONTENT_API_SCOPES)

    if application_credentials:
        logger.info(f"Using service account key file {application_credentials}")
        return service_account.Credentials.from_service_account_file(
            application_credentials,
            scopes=CONTENT_API_SCOPES
        )

    credentials, project = google.auth.default(scopes=CONTENT_API_SCOPES)
    logger.info(f"Using application default credentials (project: {project or 'n/a'})")
    return credentials
