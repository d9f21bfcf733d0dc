"""Order builder: one WooCommerce order per completed Stripe checkout.

Write sequence for subscription checkouts is two-phase and NOT atomic:
  1. POST orders            (tagged with stripe_checkout_id)
  2. PUT  orders/{id}       (appends stripe_subscription_id)
A failure between the two leaves the order without the subscription tag.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from src.clients.protocol import BackOfficeAPI
from src.reconcile.customers import build_address
from src.reconcile.mapping import PRODUCT_MAPPING, ProductMapping, resolve_price

logger = logging.getLogger(__name__)

PAYMENT_METHOD = "stripe"
PAYMENT_METHOD_TITLE = "Stripe"

CHECKOUT_ID_KEY = "stripe_checkout_id"
SUBSCRIPTION_ID_KEY = "stripe_subscription_id"


def _price_id(line_item: dict[str, Any]) -> str | None:
    price = line_item.get("price") or {}
    return price.get("id")


class OrderBuilder:
    """Creates WooCommerce orders from Stripe checkout sessions."""

    def __init__(
        self,
        backoffice: BackOfficeAPI,
        product_mapping: Mapping[str, ProductMapping] = PRODUCT_MAPPING,
    ):
        self._backoffice = backoffice
        self._product_mapping = product_mapping

    def map_line_items(
        self, line_items: list[dict[str, Any]]
    ) -> tuple[list[dict[str, Any]], bool]:
        """Resolve Stripe line items to WooCommerce line items.

        Returns (woo_line_items, has_subscription). Raises
        UnmappedProductError on the first unknown price, before any write.
        """
        woo_items = []
        has_subscription = False
        for item in line_items:
            mapping = resolve_price(_price_id(item), self._product_mapping)
            woo_items.append({"product_id": mapping.product_id, "quantity": item.get("quantity", 1)})
            has_subscription = has_subscription or mapping.is_subscription
        return woo_items, has_subscription

    async def create_from_checkout(
        self,
        session: dict[str, Any],
        line_items: list[dict[str, Any]],
        customer_id: int,
    ) -> dict[str, Any]:
        """Create the order for a completed checkout session and return it."""
        session_id = session.get("id")
        woo_items, has_subscription = self.map_line_items(line_items)
        details = session.get("customer_details") or {}

        order_data = {
            "customer_id": customer_id,
            "payment_method": PAYMENT_METHOD,
            "payment_method_title": PAYMENT_METHOD_TITLE,
            "set_paid": True,
            "billing": build_address(details, include_contact=True),
            "shipping": build_address(details),
            "line_items": woo_items,
            "meta_data": [{"key": CHECKOUT_ID_KEY, "value": session_id}],
        }

        order = await self._backoffice.post("orders", order_data)
        logger.info(
            "WooCommerce order created",
            extra={"order_id": order.get("id"), "stripe_session_id": session_id},
        )

        subscription_id = session.get("subscription")
        if has_subscription and subscription_id:
            meta_data = [
                *(order.get("meta_data") or []),
                {"key": SUBSCRIPTION_ID_KEY, "value": subscription_id},
            ]
            order = await self._backoffice.put(f"orders/{order['id']}", {"meta_data": meta_data})
            logger.info(
                "Added Stripe subscription ID to WooCommerce order",
                extra={"order_id": order.get("id"), "stripe_subscription_id": subscription_id},
            )

        return order
