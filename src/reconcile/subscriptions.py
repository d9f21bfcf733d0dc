"""Subscription lookup and status writes against WooCommerce Subscriptions.

Matching order:
1. A subscription whose meta_data carries stripe_subscription_id == id
2. Fallback: the customer's most recently created 'active' subscription

The fallback is a heuristic. A customer with several active subscriptions
and no tagged one can have a renewal or status change attached to the
wrong record; every fallback match is logged at WARNING.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from src.clients.protocol import BackOfficeAPI
from src.reconcile.mapping import translate_status
from src.reconcile.orders import SUBSCRIPTION_ID_KEY

logger = logging.getLogger(__name__)

# WooCommerce caps per_page at 100 and defaults to 10
SUBSCRIPTIONS_PAGE_SIZE = 100


def _has_stripe_tag(subscription: dict[str, Any], stripe_subscription_id: str) -> bool:
    return any(
        meta.get("key") == SUBSCRIPTION_ID_KEY and meta.get("value") == stripe_subscription_id
        for meta in subscription.get("meta_data") or []
    )


def _created_at(subscription: dict[str, Any]) -> datetime:
    raw = subscription.get("date_created")
    if raw:
        try:
            created = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
        except ValueError:
            return datetime.min
        if created.tzinfo is not None:
            # compare offset-bearing values as naive UTC
            created = created.astimezone(timezone.utc).replace(tzinfo=None)
        return created
    return datetime.min


class SubscriptionLocator:
    """Finds the WooCommerce subscription for a Stripe subscription ID."""

    def __init__(self, backoffice: BackOfficeAPI):
        self._backoffice = backoffice

    async def locate(self, stripe_subscription_id: str, customer_id: int) -> dict[str, Any] | None:
        """Return the matching WooCommerce subscription, or None if there is none."""
        subscriptions = await self._fetch_all(customer_id)

        for subscription in subscriptions:
            if _has_stripe_tag(subscription, stripe_subscription_id):
                return subscription

        active = [s for s in subscriptions if s.get("status") == "active"]
        if active:
            # sorted() is stable: equal timestamps keep API order
            fallback = sorted(active, key=_created_at, reverse=True)[0]
            logger.warning(
                "Using most recent active subscription as fallback",
                extra={
                    "stripe_subscription_id": stripe_subscription_id,
                    "woo_subscription_id": fallback.get("id"),
                    "active_candidates": len(active),
                },
            )
            return fallback

        logger.warning(
            "No WooCommerce subscription found",
            extra={"stripe_subscription_id": stripe_subscription_id, "customer_id": customer_id},
        )
        return None

    async def _fetch_all(self, customer_id: int) -> list[dict[str, Any]]:
        subscriptions: list[dict[str, Any]] = []
        page = 1
        while True:
            batch = await self._backoffice.get(
                "subscriptions",
                {"customer": customer_id, "per_page": SUBSCRIPTIONS_PAGE_SIZE, "page": page},
            ) or []
            subscriptions.extend(batch)
            if len(batch) < SUBSCRIPTIONS_PAGE_SIZE:
                return subscriptions
            page += 1


class SubscriptionStatusWriter:
    """Writes WooCommerce subscription statuses."""

    def __init__(self, backoffice: BackOfficeAPI):
        self._backoffice = backoffice

    async def apply_processor_status(self, subscription_id: int, stripe_status: str | None) -> dict[str, Any]:
        """Translate a Stripe status and write it."""
        woo_status = translate_status(stripe_status)
        result = await self.force_status(subscription_id, woo_status)
        logger.info(
            "Updated WooCommerce subscription status",
            extra={"woo_subscription_id": subscription_id, "stripe_status": stripe_status, "woo_status": woo_status},
        )
        return result

    async def force_status(self, subscription_id: int, woo_status: str) -> dict[str, Any]:
        """Write a WooCommerce status verbatim (no translation)."""
        return await self._backoffice.put(f"subscriptions/{subscription_id}", {"status": woo_status})
