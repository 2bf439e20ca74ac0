"""Commerce platform client — async HTTP wrapper for products and orders.

The service does not interpret catalogue or order data; it forwards
requests to the upstream platform and returns its JSON unchanged.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from otp_auth.config import settings
from otp_auth.errors import UpstreamError

logger = logging.getLogger(__name__)


class CommerceClient:
    """Async HTTP wrapper around the upstream commerce API."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.commerce_api_base_url).rstrip("/")
        self._token = settings.commerce_api_token if token is None else token
        self._timeout = timeout or settings.commerce_timeout_seconds
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(
                headers=self._headers(), timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.request(method, url, params=params, json=json)
        except httpx.HTTPError as exc:
            logger.exception("Commerce request error: %s %s", method, url)
            raise UpstreamError(f"Commerce platform unreachable: {exc}") from exc

        if resp.is_success:
            return resp.json()

        logger.error("Commerce request failed: %s %s -> %s %s", method, url, resp.status_code, resp.text)
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        raise UpstreamError(
            f"Commerce platform returned {resp.status_code}",
            status_code=resp.status_code,
            detail=detail,
        )

    # ── Products ─────────────────────────────────────────

    async def list_products(self, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", "/products", params=params)

    async def get_product(self, product_id: str) -> Any:
        return await self._request("GET", f"/products/{product_id}")

    # ── Orders ───────────────────────────────────────────

    async def list_orders(self, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", "/orders", params=params)

    async def get_order(self, order_id: str) -> Any:
        return await self._request("GET", f"/orders/{order_id}")

    async def create_order(self, payload: dict[str, Any]) -> Any:
        """Place an order; *payload* is forwarded as the JSON body."""
        return await self._request("POST", "/orders", json=payload)
