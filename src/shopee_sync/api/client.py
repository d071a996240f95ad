"""Shopee Open Platform request signer and HTTP client."""

import hashlib
import hmac
import time
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode

import httpx

from shopee_sync.core.errors import (
    DecodeError,
    TransportError,
    UnauthenticatedError,
    UpstreamError,
)
from shopee_sync.core.logger import setup_logger
from shopee_sync.core.token_store import TokenStore

logger = setup_logger(__name__)

USER_AGENT = "shopee-sync/1.0"


def raise_for_api_error(response: Dict[str, Any], context: str) -> None:
    """
    Raise UpstreamError when Shopee reports an error inside a 2xx body.

    Shopee answers most failures with HTTP 200 and a non-empty "error" field.
    """
    if response.get("error"):
        message = response.get("message") or response.get("error")
        raise UpstreamError(f"{context}: {message}")


class ShopeeSigner:
    """Signs and sends requests to the Shopee Open Platform API."""

    def __init__(
        self,
        partner_id: int,
        partner_key: str,
        token_store: TokenStore,
        host_api: str = "https://partner.shopeemobile.com",
        http_client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize signer with partner credentials."""
        self.partner_id = partner_id
        self.partner_key = partner_key or ""
        self.token_store = token_store
        self.host_api = host_api.rstrip("/")
        self.clock = clock
        self.client = http_client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    def now_sec(self) -> int:
        return int(self.clock())

    def sign(
        self,
        path: str,
        timestamp: int,
        access_token: str = "",
        shop_id: Any = "",
    ) -> str:
        """
        Generate HMAC-SHA256 signature for an API path.

        Base string format: {partner_id}{path}{timestamp}{access_token}{shop_id}
        """
        base_string = f"{self.partner_id}{path}{timestamp}{access_token}{shop_id}"

        return hmac.new(
            self.partner_key.encode("utf-8"),
            base_string.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def build_url(self, path: str, params: Optional[Dict[str, Any]] = None) -> str:
        """Join host, path and URL-encoded query parameters."""
        url = f"{self.host_api}{path}"
        if params:
            url += "?" + urlencode(params)
        return url

    def _access_token_for(self, shop_id: int) -> str:
        """
        Return the stored access token for a shop.

        Raises:
            UnauthenticatedError: If the shop has no token or it has expired
        """
        credentials = self.token_store.get(shop_id)
        if not credentials or not credentials.access_token:
            raise UnauthenticatedError(f"No access token found for shop {shop_id}")
        if not self.token_store.is_valid(shop_id):
            raise UnauthenticatedError(
                f"Token expired for shop {shop_id}. Please re-authorize."
            )
        return credentials.access_token

    def _signed_params(self, path: str, shop_id: Optional[int]) -> Dict[str, Any]:
        timestamp = self.now_sec()
        access_token = self._access_token_for(shop_id) if shop_id else ""
        signature = self.sign(path, timestamp, access_token, shop_id or "")

        logger.debug(f"Generated signature for {path}: {signature[:16]}...")

        params = {
            "partner_id": self.partner_id,
            "timestamp": timestamp,
            "sign": signature,
        }
        if access_token:
            params["access_token"] = access_token
            params["shop_id"] = shop_id
        return params

    def signed_get(
        self,
        path: str,
        shop_id: Optional[int] = None,
        extra_params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Make a signed GET request.

        Args:
            path: API endpoint path (e.g., "/api/v2/product/get_item_list")
            shop_id: Shop to act for; partner-level call when omitted
            extra_params: Additional query parameters

        Returns:
            Parsed JSON response from API
        """
        params = self._signed_params(path, shop_id)
        if extra_params:
            params.update(extra_params)

        url = self.build_url(path, params)
        return self._make_request("GET", url, path)

    def signed_post(
        self,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        shop_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Make a signed POST request with a JSON body."""
        params = self._signed_params(path, shop_id)
        url = self.build_url(path, params)
        return self._make_request("POST", url, path, body or {})

    def _make_request(
        self,
        method: str,
        url: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        logger.info(f"Making API request: {method} {path}")

        try:
            if method == "POST":
                response = self.client.post(url, json=body)
            else:
                response = self.client.get(url)
        except httpx.TransportError as e:
            logger.error(f"Transport error calling {path}: {e}")
            raise TransportError(f"Transport error calling {path}: {e}") from e

        if response.status_code >= 400:
            logger.error(f"HTTP {response.status_code} calling {path}: {response.text[:200]}")
            raise UpstreamError(
                f"HTTP Error {response.status_code}: {response.text}",
                upstream_status=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from {path}: {response.text[:200]}")
            raise DecodeError(f"Invalid JSON response: {response.text}") from e

        if not isinstance(data, dict):
            raise DecodeError(f"Invalid JSON response: {response.text}")

        return data

    def close(self) -> None:
        """Close HTTP client connection."""
        self.client.close()
