# clients.py
"""
Async HTTP client for the Billbee REST API.

Every request carries the X-Billbee-Api-Key header and basic-auth
credentials. Failures of any kind are raised as UpstreamError.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

import config
from errors import UpstreamError
from schemas import OrderPage

logger = logging.getLogger(__name__)


class BillbeeClient:
    """
    Thin wrapper around one httpx.AsyncClient session.

    Use as an async context manager so a multi-page scan reuses one
    connection pool:

        async with BillbeeClient() as billbee:
            page = await billbee.get_orders_page(1, 250)
    """

    def __init__(
        self,
        base_url: str = config.BILLBEE_BASE_URL,
        api_key: Optional[str] = config.BILLBEE_API_KEY,
        username: Optional[str] = config.BILLBEE_USER,
        password: Optional[str] = config.BILLBEE_PASSWORD,
        timeout: float = config.UPSTREAM_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.username = username
        self.password = password
        self.timeout = timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "BillbeeClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "X-Billbee-Api-Key": self.api_key or "",
                "Content-Type": "application/json",
            },
            auth=(self.username or "", self.password or ""),
            timeout=self.timeout,
            transport=self.transport,
        )
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        Issue a GET request and decode the JSON body.

        Args:
            path: Resource path relative to the API base URL.
            params: Query parameters.

        Returns:
            Decoded JSON body.

        Raises:
            UpstreamError: On timeout, HTTP error status, transport failure
                or an undecodable body.
        """
        if self._client is None:
            raise RuntimeError("BillbeeClient must be used as an async context manager")

        logger.debug("GET %s params=%s", path, params)
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            logger.error("Billbee request %s timed out: %s", path, e)
            raise UpstreamError(f"Request timed out: {e}")
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("Billbee returned HTTP %d for %s", status, path)
            raise UpstreamError(
                f"HTTP error {status}: {_upstream_detail(e.response)}",
                upstream_status=status,
            )
        except httpx.RequestError as e:
            logger.error("Billbee request %s failed: %s", path, e)
            raise UpstreamError(f"Request failed: {e}")
        except ValueError as e:
            logger.error("Billbee returned invalid JSON for %s: %s", path, e)
            raise UpstreamError(f"Invalid JSON from upstream: {e}")

    async def list_orders(self, params: Optional[dict[str, Any]] = None) -> OrderPage:
        """
        Fetch one page of the order listing.

        Args:
            params: Upstream query parameters (page, pageSize, filters).

        Returns:
            Parsed OrderPage.

        Raises:
            UpstreamError: If the call fails or the body reports an error.
        """
        body = await self._get("/orders", params=params)
        try:
            page = OrderPage.model_validate(body)
        except ValidationError as e:
            logger.error("Unexpected order page shape: %s", e)
            raise UpstreamError(f"Unexpected response from upstream: {e}")

        if page.failed:
            logger.error(
                "Billbee reported error %s: %s", page.error_code, page.error_message
            )
            raise UpstreamError(page.error_message or f"Upstream error code {page.error_code}")

        logger.debug(
            "Fetched %d orders (page %s of %d)",
            len(page.orders),
            params.get("page") if params else None,
            page.total_pages,
        )
        return page

    async def get_orders_page(
        self,
        page: int,
        page_size: int,
        params: Optional[dict[str, Any]] = None,
    ) -> OrderPage:
        """Fetch a specific 1-based page with extra filter parameters."""
        query = dict(params or {})
        query["page"] = page
        query["pageSize"] = page_size
        return await self.list_orders(query)

    async def list_products(self, params: Optional[dict[str, Any]] = None) -> Any:
        """Fetch the product listing and return the raw body."""
        body = await self._get("/products", params=params)
        logger.info("Fetched products listing")
        return body


def _upstream_detail(response: httpx.Response) -> str:
    """Best-effort error message from a failed Billbee response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("ErrorMessage", "Message", "message", "error"):
            if body.get(key):
                return str(body[key])
    return response.reason_phrase
