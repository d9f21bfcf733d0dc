"""Collaborator protocols for the external systems.

The reconcilers depend on these shapes only, so production clients and
test fakes are interchangeable.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ProcessorAPI(Protocol):
    """Read-only view of the payments processor (Stripe)."""

    async def list_line_items(self, session_id: str) -> list[dict[str, Any]]:
        """Line items purchased in a checkout session."""
        ...

    async def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        ...

    async def retrieve_customer(self, customer_id: str) -> dict[str, Any]:
        ...


@runtime_checkable
class BackOfficeAPI(Protocol):
    """REST vocabulary used against WooCommerce (customers, orders, subscriptions)."""

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        ...

    async def post(self, endpoint: str, data: dict[str, Any]) -> Any:
        ...

    async def put(self, endpoint: str, data: dict[str, Any]) -> Any:
        ...
