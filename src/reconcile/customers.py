"""Customer reconciliation: find-or-create a WooCommerce customer by email.

WooCommerce does not enforce unique emails; the first match returned by
the API wins.
"""

from __future__ import annotations

import logging
from typing import Any

from src.clients.protocol import BackOfficeAPI
from src.reconcile.errors import CustomerNotFoundError, ValidationError

logger = logging.getLogger(__name__)


def split_name(name: str | None) -> tuple[str, str]:
    """Split a display name on the first space -> (first, last)."""
    if not name:
        return "", ""
    first, _, last = name.partition(" ")
    return first, last


def build_address(details: dict[str, Any], include_contact: bool = False) -> dict[str, str]:
    """Build a WooCommerce billing/shipping block from Stripe customer_details.

    Every optional field defaults to "". Billing blocks carry email and
    phone (include_contact=True); shipping blocks do not.
    """
    first_name, last_name = split_name(details.get("name"))
    address = details.get("address") or {}

    block = {"first_name": first_name, "last_name": last_name}
    if include_contact:
        block["email"] = details.get("email") or ""
        block["phone"] = details.get("phone") or ""
    block.update(
        {
            "address_1": address.get("line1") or "",
            "address_2": address.get("line2") or "",
            "city": address.get("city") or "",
            "state": address.get("state") or "",
            "postcode": address.get("postal_code") or "",
            "country": address.get("country") or "",
        }
    )
    return block


class CustomerReconciler:
    """Resolves Stripe contact details to a WooCommerce customer record."""

    def __init__(self, backoffice: BackOfficeAPI):
        self._backoffice = backoffice

    async def find_by_email(self, email: str | None) -> dict[str, Any] | None:
        """Return the first WooCommerce customer with this email, or None."""
        if not email:
            return None
        customers = await self._backoffice.get("customers", {"email": email})
        if customers:
            return customers[0]
        return None

    async def require_by_email(self, email: str | None) -> dict[str, Any]:
        """Like find_by_email, but absence raises CustomerNotFoundError."""
        customer = await self.find_by_email(email)
        if customer is None:
            raise CustomerNotFoundError(email)
        return customer

    async def get_or_create(self, details: dict[str, Any] | None) -> dict[str, Any]:
        """Return the existing customer for details["email"], creating one if absent.

        Raises:
            ValidationError: no email in the contact details.
        """
        if not details or not details.get("email"):
            raise ValidationError("Customer email is required")

        email = details["email"]
        existing = await self.find_by_email(email)
        if existing is not None:
            logger.info("Found existing customer", extra={"email": email, "customer_id": existing.get("id")})
            return existing

        first_name, last_name = split_name(details.get("name"))
        payload = {
            "email": email,
            "first_name": first_name,
            "last_name": last_name,
            "billing": build_address(details, include_contact=True),
            "shipping": build_address(details),
        }
        created = await self._backoffice.post("customers", payload)
        logger.info("Created new customer", extra={"email": email, "customer_id": created.get("id")})
        return created
