"""Static lookup tables: Stripe prices -> WooCommerce products, and
Stripe subscription statuses -> WooCommerce subscription statuses.

Both tables are read-only at runtime and shared by every request.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from src.reconcile.errors import UnmappedProductError


@dataclass(frozen=True)
class ProductMapping:
    """WooCommerce product a Stripe price resolves to."""

    product_id: int
    is_subscription: bool = False
    subscription_period: str | None = None  # day, week, month, year


PRODUCT_MAPPING: Mapping[str, ProductMapping] = MappingProxyType(
    {
        "price_123456789": ProductMapping(
            product_id=123,
            is_subscription=True,
            subscription_period="month",
        ),
        "price_987654321": ProductMapping(product_id=456),
    }
)


def resolve_price(
    price_id: str | None,
    table: Mapping[str, ProductMapping] = PRODUCT_MAPPING,
) -> ProductMapping:
    """Look up a Stripe price ID. Raises UnmappedProductError if unknown."""
    mapping = table.get(price_id) if price_id else None
    if mapping is None:
        raise UnmappedProductError(price_id)
    return mapping


# Stripe subscription status -> WooCommerce Subscriptions status
STATUS_MAP: Mapping[str, str] = MappingProxyType(
    {
        "active": "active",
        "past_due": "on-hold",
        "unpaid": "on-hold",
        "canceled": "cancelled",
        "incomplete": "pending",
        "incomplete_expired": "cancelled",
        "trialing": "active",
        "paused": "on-hold",
    }
)

DEFAULT_STATUS = "on-hold"


def translate_status(stripe_status: str | None) -> str:
    """Map a Stripe status to WooCommerce. Unknown values -> 'on-hold'."""
    if stripe_status is None:
        return DEFAULT_STATUS
    return STATUS_MAP.get(stripe_status, DEFAULT_STATUS)
