"""
Product API Adapter for Price Collector.
Client for the remote product database API (insert, bulk insert, health).
"""
import re
from typing import Any, Dict, List, Optional

import httpx

from price_collector.config import config
from price_collector.models.product import ProductDraft
from price_collector.utils.logger import LayerLogger


# Columns of the remote products table
PAYLOAD_FIELDS = ("title", "price", "currency", "site", "asin", "url", "notes", "timestamp")


class ProductApiError(Exception):
    """The remote API was unreachable or rejected the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def to_payload(draft: ProductDraft, notes: Optional[str] = None) -> Dict[str, Any]:
    """Row payload for one product; explicit notes override the draft's."""
    data = draft.model_dump()
    payload = {name: data.get(name) for name in PAYLOAD_FIELDS}
    if notes is not None:
        payload["notes"] = notes
    return payload


class ProductApiClient:
    """
    Remote product API client.

    ``endpoint`` is the API base, e.g. ``https://host/api``. Mutating calls
    authenticate with the ``x-api-key`` header.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = (endpoint or config.API_ENDPOINT or "").strip()
        self.api_key = (api_key or config.API_KEY or "").strip()
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT
        self.transport = transport
        self.logger = LayerLogger("product_api")

    def is_configured(self) -> bool:
        """Check if endpoint and key are both set."""
        configured = bool(self.endpoint and self.api_key)

        self.logger.log_decision(
            decision="api_configuration_check",
            reason="checking_credentials",
            api_configured=configured,
        )

        return configured

    @property
    def health_url(self) -> str:
        return re.sub(r"/api/?$", "", self.endpoint) + "/api/health"

    @property
    def products_url(self) -> str:
        return self.endpoint.rstrip("/") + "/products"

    @property
    def bulk_url(self) -> str:
        return self.products_url + "/bulk"

    def _headers(self, authenticated: bool = True) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if authenticated:
            headers["x-api-key"] = self.api_key
        return headers

    async def health(self) -> bool:
        """
        Probe the API health endpoint.

        Returns True when the server reports success; never raises for an
        unhealthy server, only for an unreachable one.
        """
        try:
            data = await self._request("GET", self.health_url, endpoint="/api/health", authenticated=False)
        except ProductApiError as e:
            if e.status_code is None:
                raise
            return False
        return bool(data.get("success"))

    async def submit(self, draft: ProductDraft, notes: Optional[str] = None) -> Dict[str, Any]:
        """Insert one product. Title and price are required by the server."""
        payload = to_payload(draft, notes)
        data = await self._request("POST", self.products_url, endpoint="/products", json=payload)
        self._ensure_success(data)
        return data

    async def submit_bulk(self, drafts: List[ProductDraft]) -> int:
        """Insert many products in one request and return the inserted count."""
        payload = {"products": [to_payload(draft) for draft in drafts]}
        data = await self._request("POST", self.bulk_url, endpoint="/products/bulk", json=payload)
        self._ensure_success(data)
        inserted = int(data.get("insertedCount", 0))

        self.logger.log_action("bulk_submit", "completed", submitted=len(drafts), inserted=inserted)
        return inserted

    async def _request(
        self,
        method: str,
        url: str,
        endpoint: str,
        authenticated: bool = True,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not self.endpoint:
            raise ProductApiError("API endpoint is not configured")
        if authenticated and not self.api_key:
            raise ProductApiError("API key is not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, url, headers=self._headers(authenticated), json=json)
        except httpx.HTTPError as e:
            self.logger.log_error(
                f"Cannot reach server: {str(e)}",
                error_type="http_error",
                url=url,
            )
            raise ProductApiError(f"Cannot reach server: {str(e)}") from e

        self.logger.log_http_probe(
            url=url,
            endpoint=endpoint,
            status_code=response.status_code,
            result="ok" if response.is_success else "failed",
        )

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.is_success:
            message = data.get("error") or data.get("message") or f"HTTP {response.status_code}"
            raise ProductApiError(message, response.status_code)
        return data

    @staticmethod
    def _ensure_success(data: Dict[str, Any]):
        if data.get("success") is False:
            raise ProductApiError(data.get("error") or "Request failed")
