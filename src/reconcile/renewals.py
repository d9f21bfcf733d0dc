"""Renewal processing for paid Stripe invoices.

Write sequence (not atomic):
  1. POST orders                 (renewal order, copies subscription line items)
  2. PUT  subscriptions/{id}     (status -> active)
"""

from __future__ import annotations

import logging
from typing import Any

from src.clients.protocol import BackOfficeAPI
from src.reconcile.customers import CustomerReconciler
from src.reconcile.orders import PAYMENT_METHOD, PAYMENT_METHOD_TITLE, SUBSCRIPTION_ID_KEY
from src.reconcile.subscriptions import SubscriptionLocator, SubscriptionStatusWriter

logger = logging.getLogger(__name__)

INVOICE_ID_KEY = "stripe_invoice_id"
RENEWAL_FLAG_KEY = "is_renewal"


class RenewalProcessor:
    """Creates a renewal order and reactivates the matched subscription."""

    def __init__(
        self,
        backoffice: BackOfficeAPI,
        customers: CustomerReconciler,
        locator: SubscriptionLocator,
        status_writer: SubscriptionStatusWriter,
    ):
        self._backoffice = backoffice
        self._customers = customers
        self._locator = locator
        self._status_writer = status_writer

    async def process(
        self,
        invoice: dict[str, Any],
        stripe_subscription_id: str,
        customer_email: str | None,
    ) -> dict[str, Any] | None:
        """Return the renewal order, or None when no subscription matches.

        Renewals never provision customers: an unknown email raises
        CustomerNotFoundError.
        """
        invoice_id = invoice.get("id")
        customer = await self._customers.require_by_email(customer_email)
        customer_id = customer["id"]
        woo_subscription = await self._locator.locate(stripe_subscription_id, customer_id)
        if woo_subscription is None:
            logger.warning(
                "No matching WooCommerce subscription found for renewal",
                extra={"stripe_subscription_id": stripe_subscription_id, "stripe_invoice_id": invoice_id},
            )
            return None

        # Product and quantity only; prices come from the WooCommerce catalog
        line_items = [
            {"product_id": item.get("product_id"), "quantity": item.get("quantity")}
            for item in woo_subscription.get("line_items") or []
        ]
        order_data = {
            "customer_id": customer_id,
            "payment_method": PAYMENT_METHOD,
            "payment_method_title": PAYMENT_METHOD_TITLE,
            "set_paid": True,
            "status": "processing",
            "line_items": line_items,
            "meta_data": [
                {"key": INVOICE_ID_KEY, "value": invoice_id},
                {"key": SUBSCRIPTION_ID_KEY, "value": stripe_subscription_id},
                {"key": RENEWAL_FLAG_KEY, "value": "true"},
            ],
        }

        order = await self._backoffice.post("orders", order_data)
        logger.info(
            "Created WooCommerce renewal order",
            extra={
                "order_id": order.get("id"),
                "woo_subscription_id": woo_subscription.get("id"),
                "stripe_invoice_id": invoice_id,
            },
        )

        # A paid invoice means the subscription is in good standing
        await self._status_writer.force_status(woo_subscription["id"], "active")
        return order
