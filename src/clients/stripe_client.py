"""Stripe read-only gateway.

Wraps the official SDK's StripeClient with the async HTTPX transport.
Only the three reads the bridge needs are exposed; results are returned
as plain dicts so the reconcilers never touch SDK types.
"""

from __future__ import annotations

import logging
from typing import Any

import stripe

from src.reconcile.errors import TransportError

logger = logging.getLogger(__name__)

# Stripe caps list pages at 100; a checkout session never carries more
_LINE_ITEM_PAGE_SIZE = 100


class StripeGateway:
    """Async reads against the Stripe API."""

    def __init__(self, api_key: str, client: stripe.StripeClient | None = None):
        self._client = client or stripe.StripeClient(
            api_key=api_key,
            http_client=stripe.HTTPXClient(),
        )

    async def list_line_items(self, session_id: str) -> list[dict[str, Any]]:
        try:
            page = await self._client.v1.checkout.sessions.line_items.list_async(
                session_id, params={"limit": _LINE_ITEM_PAGE_SIZE}
            )
        except stripe.StripeError as e:
            raise _wrap(e, "list line items", session_id) from e
        return [item.to_dict() for item in page.data]

    async def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        try:
            subscription = await self._client.v1.subscriptions.retrieve_async(subscription_id)
        except stripe.StripeError as e:
            raise _wrap(e, "retrieve subscription", subscription_id) from e
        return subscription.to_dict()

    async def retrieve_customer(self, customer_id: str) -> dict[str, Any]:
        try:
            customer = await self._client.v1.customers.retrieve_async(customer_id)
        except stripe.StripeError as e:
            raise _wrap(e, "retrieve customer", customer_id) from e
        return customer.to_dict()


def _wrap(error: stripe.StripeError, operation: str, object_id: str) -> TransportError:
    logger.error(
        "Stripe call failed: %s %s",
        operation,
        object_id,
        extra={"stripe_object_id": object_id, "error": str(error)},
    )
    return TransportError(
        "stripe",
        f"{operation} {object_id}: {error.user_message or type(error).__name__}",
        status_code=error.http_status,
    )
