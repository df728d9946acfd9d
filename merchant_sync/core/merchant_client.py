"""
Google Content API (v2.1) client with retry logic and rate limiting.
"""

import time
import random
import asyncio
import logging
from typing import Optional, Dict, Any
from urllib.parse import quote

import httpx
from google.auth.credentials import Credentials
from google.auth.transport.requests import Request as GoogleAuthRequest

from merchant_sync.core.security import sanitize_string_for_logging

logger = logging.getLogger(__name__)

CONTENT_API_BASE_URL = "https://shoppingcontent.googleapis.com/content/v2.1"

RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)
NON_RETRYABLE_STATUS_CODES = (400, 401, 403, 404, 409, 422)


class MerchantApiError(Exception):
    """Catalog API call failed (non-retryable status or retries exhausted)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MerchantClient:
    """
    Async Content API client for product insert/delete.

    Calls are made one at a time by the caller; this client only adds pacing
    and retries for a single logical call.
    """

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        base_url: str = CONTENT_API_BASE_URL,
        rate_limit_rps: float = 5.0,
        timeout: float = 30.0,
        max_retries: int = 3,
        initial_delay: float = 2.0,
        backoff_factor: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize catalog client.

        Args:
            credentials: google-auth credentials; None sends no Authorization header
            base_url: API root
            rate_limit_rps: Rate limit (requests per second)
            timeout: Request timeout in seconds
            max_retries: Retry attempts after the first try
            initial_delay: Initial retry delay in seconds
            backoff_factor: Backoff multiplier
            transport: Optional httpx transport (used by tests)
        """
        self.credentials = credentials
        self.base_url = base_url.rstrip('/')
        self.rate_limit_rps = rate_limit_rps
        self.timeout = timeout
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.backoff_factor = backoff_factor

        # Rate limiting state
        self._last_request_time = 0.0
        self._min_interval = 1.0 / rate_limit_rps if rate_limit_rps > 0 else 0

        self.client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=transport
        )

    async def _auth_headers(self) -> Dict[str, str]:
        if self.credentials is None:
            return {}
        if not self.credentials.valid:
            # google-auth refresh is blocking I/O
            await asyncio.to_thread(self.credentials.refresh, GoogleAuthRequest())
        return {"Authorization": f"Bearer {self.credentials.token}"}

    async def _wait_for_rate_limit(self):
        """Wait if needed to respect rate limit."""
        now = time.time()
        elapsed = now - self._last_request_time
        if elapsed < self._min_interval:
            await asyncio.sleep(self._min_interval - elapsed)
        self._last_request_time = time.time()

    def _retry_delay(self, attempt: int) -> float:
        delay = min(self.initial_delay * (self.backoff_factor ** attempt), 60.0)
        if delay > 0:
            delay += random.uniform(0, 0.4)  # Jitter
        return delay

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic.

        Raises:
            MerchantApiError: If request fails after retries or with a non-retryable status
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        max_retries = self.max_retries
        last_error = None

        for attempt in range(max_retries + 1):
            await self._wait_for_rate_limit()

            try:
                headers = await self._auth_headers()
                response = await self.client.request(
                    method=method,
                    url=url,
                    json=json_data,
                    headers=headers
                )

                if response.status_code in (200, 201, 204):
                    return response

                body = sanitize_string_for_logging(response.text[:200])

                if response.status_code in NON_RETRYABLE_STATUS_CODES:
                    raise MerchantApiError(f"HTTP {response.status_code}: {body}", response.status_code)

                if response.status_code in RETRYABLE_STATUS_CODES:
                    last_error = f"HTTP {response.status_code}"
                    if attempt < max_retries:
                        delay = self._retry_delay(attempt)
                        logger.warning(
                            f"{method} {endpoint} returned {response.status_code}, "
                            f"retrying in {delay:.1f}s ({attempt + 1}/{max_retries})"
                        )
                        await asyncio.sleep(delay)
                        continue
                    raise MerchantApiError(
                        f"HTTP {response.status_code} after {max_retries} retries: {body}",
                        response.status_code
                    )

                if response.is_success:
                    return response
                raise MerchantApiError(f"HTTP {response.status_code}: {body}", response.status_code)

            except httpx.TimeoutException as e:
                last_error = f"Timeout: {e}"
                if attempt < max_retries:
                    await asyncio.sleep(self._retry_delay(attempt))
                    continue
                raise MerchantApiError(f"Timeout after {max_retries} retries: {e}") from e

            except httpx.RequestError as e:
                last_error = f"Request error: {e}"
                if attempt < max_retries:
                    await asyncio.sleep(self._retry_delay(attempt))
                    continue
                raise MerchantApiError(f"Request error after {max_retries} retries: {e}") from e

        # Should not reach here
        raise MerchantApiError(f"Request failed after {max_retries} retries: {last_error}")

    async def insert_product(self, merchant_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert (or replace) a product.

        Args:
            merchant_id: Merchant Center account id
            body: Product resource in camelCase

        Returns:
            Product resource returned by the API
        """
        response = await self._request("POST", f"{quote(str(merchant_id), safe='')}/products", json_data=body)
        if not response.content:
            return {}
        return response.json()

    async def delete_product(self, merchant_id: str, rest_id: str) -> bool:
        """
        Delete a product by its REST id (channel:contentLanguage:targetCountry:offerId).

        Returns:
            True on success

        Raises:
            MerchantApiError: On failure, including 404 for an unknown product
        """
        endpoint = f"{quote(str(merchant_id), safe='')}/products/{quote(rest_id, safe='')}"
        await self._request("DELETE", endpoint)
        return True

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
