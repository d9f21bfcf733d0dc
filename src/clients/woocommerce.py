"""WooCommerce REST API client (wc/v3).

Async httpx client authenticated with the store's consumer key/secret.
Every failure, HTTP status or transport, surfaces as TransportError.
There is no local retry: the Stripe webhook retry is the recovery path.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.reconcile.errors import TransportError

logger = logging.getLogger(__name__)


class WooCommerceClient:
    """Minimal get/post/put client for WooCommerce resource collections."""

    def __init__(
        self,
        store_url: str,
        consumer_key: str,
        consumer_secret: str,
        api_version: str = "wc/v3",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        base_url = f"{store_url.rstrip('/')}/wp-json/{api_version.strip('/')}/"
        self._http = httpx.AsyncClient(
            base_url=base_url,
            auth=(consumer_key, consumer_secret),
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", endpoint, params=params)

    async def post(self, endpoint: str, data: dict[str, Any]) -> Any:
        return await self._request("POST", endpoint, json=data)

    async def put(self, endpoint: str, data: dict[str, Any]) -> Any:
        return await self._request("PUT", endpoint, json=data)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        path = endpoint.lstrip("/")
        try:
            response = await self._http.request(method, path, params=params, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(
                "WooCommerce %s %s returned HTTP %d",
                method,
                path,
                status,
                extra={"endpoint": path, "status_code": status},
            )
            raise TransportError(
                "woocommerce", f"{method} {path} returned HTTP {status}", status_code=status
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                "WooCommerce %s %s failed: %s",
                method,
                path,
                type(e).__name__,
                extra={"endpoint": path},
            )
            raise TransportError("woocommerce", f"{method} {path} failed: {type(e).__name__}") from e

        try:
            return response.json()
        except ValueError as e:
            raise TransportError("woocommerce", f"{method} {path} returned non-JSON body") from e
