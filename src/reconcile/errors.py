"""Error taxonomy for the Stripe -> WooCommerce bridge.

Contract:
- Every error raised by the bridge derives from BridgeError
- SignatureVerificationError is the only caller-facing error (400)
- Everything else surfaces as a generic 500 with details in logs only
- A missing back-office subscription is NOT an error (locator returns None)
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for bridge failures."""


class SignatureVerificationError(BridgeError):
    """Webhook payload failed authenticity verification."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ValidationError(BridgeError):
    """A field required to process the event is missing."""


class UnmappedProductError(BridgeError):
    """A Stripe price has no WooCommerce product mapping."""

    def __init__(self, price_id: str | None):
        self.price_id = price_id
        super().__init__(f"No product mapping found for Stripe price ID: {price_id}")


class CustomerNotFoundError(BridgeError):
    """No WooCommerce customer exists for the Stripe customer's email."""

    def __init__(self, email: str | None):
        self.email = email
        super().__init__(f"No WooCommerce customer found for email: {email}")


class TransportError(BridgeError):
    """A call to Stripe or WooCommerce failed."""

    def __init__(self, service: str, message: str, status_code: int | None = None):
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service}: {message}")
