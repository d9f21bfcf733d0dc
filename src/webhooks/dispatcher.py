"""Stripe event dispatcher: routes verified events to reconciliation handlers.

Routing table:
- checkout.session.completed     -> customer find-or-create + order
- invoice.paid                   -> renewal order + reactivate subscription
- customer.subscription.updated  -> translated status write
- customer.subscription.deleted  -> forced 'cancelled' status write

Contract:
- Handlers share no state; each event runs its steps strictly in sequence
- Unknown event types are logged and acknowledged, never an error
- A missing WooCommerce subscription is a logged, soft outcome
- Every other failure is logged with identifiers and re-raised
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from src.clients.protocol import BackOfficeAPI, ProcessorAPI
from src.reconcile.customers import CustomerReconciler
from src.reconcile.errors import ValidationError
from src.reconcile.mapping import PRODUCT_MAPPING, ProductMapping
from src.reconcile.orders import OrderBuilder
from src.reconcile.renewals import RenewalProcessor
from src.reconcile.subscriptions import SubscriptionLocator, SubscriptionStatusWriter

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
INVOICE_PAID = "invoice.paid"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"


def _invoice_subscription_id(invoice: dict[str, Any]) -> str:
    """Subscription ID of an invoice, from either API shape.

    Newer Stripe API versions move it under parent.subscription_details.
    """
    subscription_id = invoice.get("subscription")
    if isinstance(subscription_id, dict):
        subscription_id = subscription_id.get("id")
    if not subscription_id:
        details = (invoice.get("parent") or {}).get("subscription_details") or {}
        subscription_id = details.get("subscription")
    if not subscription_id:
        raise ValidationError(f"Invoice {invoice.get('id')} has no subscription")
    return subscription_id


@dataclass
class WebhookEvent:
    """A verified Stripe event, reduced to what the handlers read."""

    event_id: str
    event_type: str
    data_object: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> WebhookEvent:
        data = payload.get("data") or {}
        return cls(
            event_id=str(payload.get("id") or ""),
            event_type=str(payload.get("type") or "unknown"),
            data_object=data.get("object") or {},
        )


class EventDispatcher:
    """Holds the reconciliation components and routes events to them."""

    def __init__(
        self,
        processor: ProcessorAPI,
        customers: CustomerReconciler,
        orders: OrderBuilder,
        locator: SubscriptionLocator,
        status_writer: SubscriptionStatusWriter,
        renewals: RenewalProcessor,
    ):
        self._processor = processor
        self._customers = customers
        self._orders = orders
        self._locator = locator
        self._status_writer = status_writer
        self._renewals = renewals
        self._routes: dict[str, Callable[[dict[str, Any]], Awaitable[Any]]] = {
            CHECKOUT_COMPLETED: self.handle_checkout_completed,
            INVOICE_PAID: self.handle_invoice_paid,
            SUBSCRIPTION_UPDATED: self.handle_subscription_updated,
            SUBSCRIPTION_DELETED: self.handle_subscription_cancelled,
        }

    @classmethod
    def build(
        cls,
        processor: ProcessorAPI,
        backoffice: BackOfficeAPI,
        product_mapping: Mapping[str, ProductMapping] = PRODUCT_MAPPING,
    ) -> EventDispatcher:
        """Wire every component against the two external clients."""
        customers = CustomerReconciler(backoffice)
        locator = SubscriptionLocator(backoffice)
        status_writer = SubscriptionStatusWriter(backoffice)
        return cls(
            processor=processor,
            customers=customers,
            orders=OrderBuilder(backoffice, product_mapping),
            locator=locator,
            status_writer=status_writer,
            renewals=RenewalProcessor(backoffice, customers, locator, status_writer),
        )

    @property
    def event_types(self) -> frozenset[str]:
        return frozenset(self._routes)

    async def dispatch(self, event: WebhookEvent) -> bool:
        """Run the handler for this event. Returns False for unhandled types."""
        handler = self._routes.get(event.event_type)
        if handler is None:
            logger.info("Unhandled event type: %s", event.event_type, extra={"event_id": event.event_id})
            return False
        await handler(event.data_object)
        return True

    async def handle_checkout_completed(self, session: dict[str, Any]) -> dict[str, Any]:
        session_id = session.get("id")
        logger.info("Processing checkout.session.completed", extra={"stripe_session_id": session_id})
        try:
            line_items = await self._processor.list_line_items(session_id)
            customer = await self._customers.get_or_create(session.get("customer_details"))
            order = await self._orders.create_from_checkout(session, line_items, customer["id"])
        except Exception as e:
            logger.error(
                "Failed to process checkout session",
                extra={"stripe_session_id": session_id, "error": str(e)},
            )
            raise
        logger.info("Successfully processed checkout session", extra={"stripe_session_id": session_id})
        return order

    async def handle_invoice_paid(self, invoice: dict[str, Any]) -> dict[str, Any] | None:
        invoice_id = invoice.get("id")
        logger.info("Processing invoice.paid", extra={"stripe_invoice_id": invoice_id})
        try:
            subscription = await self._processor.retrieve_subscription(_invoice_subscription_id(invoice))
            stripe_customer = await self._processor.retrieve_customer(invoice.get("customer"))
            order = await self._renewals.process(invoice, subscription["id"], stripe_customer.get("email"))
        except Exception as e:
            logger.error(
                "Failed to process invoice payment",
                extra={"stripe_invoice_id": invoice_id, "error": str(e)},
            )
            raise
        logger.info("Successfully processed invoice payment", extra={"stripe_invoice_id": invoice_id})
        return order

    async def handle_subscription_updated(self, subscription: dict[str, Any]) -> dict[str, Any] | None:
        subscription_id = subscription.get("id")
        logger.info("Processing subscription update", extra={"stripe_subscription_id": subscription_id})
        try:
            woo_subscription = await self._locate_for(subscription)
            if woo_subscription is None:
                return None
            result = await self._status_writer.apply_processor_status(
                woo_subscription["id"], subscription.get("status")
            )
        except Exception as e:
            logger.error(
                "Failed to update subscription",
                extra={"stripe_subscription_id": subscription_id, "error": str(e)},
            )
            raise
        logger.info(
            "Successfully updated subscription",
            extra={"stripe_subscription_id": subscription_id, "woo_subscription_id": woo_subscription["id"]},
        )
        return result

    async def handle_subscription_cancelled(self, subscription: dict[str, Any]) -> dict[str, Any] | None:
        subscription_id = subscription.get("id")
        logger.info("Processing subscription cancellation", extra={"stripe_subscription_id": subscription_id})
        try:
            woo_subscription = await self._locate_for(subscription)
            if woo_subscription is None:
                return None
            result = await self._status_writer.force_status(woo_subscription["id"], "cancelled")
        except Exception as e:
            logger.error(
                "Failed to cancel subscription",
                extra={"stripe_subscription_id": subscription_id, "error": str(e)},
            )
            raise
        logger.info(
            "Successfully cancelled subscription",
            extra={"stripe_subscription_id": subscription_id, "woo_subscription_id": woo_subscription["id"]},
        )
        return result

    async def _locate_for(self, subscription: dict[str, Any]) -> dict[str, Any] | None:
        """Stripe subscription -> WooCommerce customer -> WooCommerce subscription."""
        stripe_customer = await self._processor.retrieve_customer(subscription.get("customer"))
        customer = await self._customers.require_by_email(stripe_customer.get("email"))
        woo_subscription = await self._locator.locate(subscription.get("id"), customer["id"])
        if woo_subscription is None:
            logger.warning(
                "No matching WooCommerce subscription found",
                extra={"stripe_subscription_id": subscription.get("id")},
            )
        return woo_subscription
