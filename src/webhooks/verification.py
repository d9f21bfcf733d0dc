"""Stripe webhook signature verification: constant-time HMAC, v1 scheme.

Security contract:
- All comparisons use hmac.compare_digest() (constant-time, no timing attacks)
- Verification failure -> 400 immediately, no handler runs
- Missing webhook secret -> verification always fails (fail-closed)
- Timestamp tolerance: 300s (5 min) by default to prevent replay
- Multiple v1 signatures accepted (secret rotation)
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from typing import Any

from src.reconcile.errors import SignatureVerificationError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "stripe-signature"

DEFAULT_TOLERANCE = 300


def _parse_signature_header(signature_header: str) -> tuple[str | None, list[str]]:
    """Parse 't=timestamp,v1=sig1,v1=sig2,...' -> (timestamp, [v1 sigs])."""
    timestamp = None
    v1_sigs: list[str] = []
    for item in signature_header.split(","):
        kv = item.strip().split("=", 1)
        if len(kv) != 2:
            continue
        key, value = kv
        if key == "t":
            timestamp = value
        elif key == "v1":
            v1_sigs.append(value)
    return timestamp, v1_sigs


def compute_signature(secret: str, timestamp: int, body: bytes) -> str:
    """HMAC-SHA256 hex digest of '{timestamp}.{body}'."""
    signed_payload = f"{timestamp}.".encode("utf-8") + body
    return hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()


def verify_stripe(
    body: bytes,
    signature_header: str | None,
    secret: str,
    tolerance: int = DEFAULT_TOLERANCE,
) -> None:
    """Verify a Stripe-Signature header against the raw body.

    Raises:
        SignatureVerificationError: with a reason naming what failed.
    """
    if not secret:
        logger.warning("STRIPE_WEBHOOK_SECRET not set, rejecting webhook")
        raise SignatureVerificationError("Webhook secret is not configured")
    if not signature_header:
        raise SignatureVerificationError("No Stripe-Signature header found")

    timestamp_str, v1_sigs = _parse_signature_header(signature_header)
    if not timestamp_str:
        raise SignatureVerificationError("Unable to extract timestamp from header")

    try:
        timestamp = int(timestamp_str)
    except ValueError:
        raise SignatureVerificationError("Unable to extract timestamp from header")

    if not v1_sigs:
        raise SignatureVerificationError("No v1 signatures found in header")

    expected = compute_signature(secret, timestamp, body)
    if not any(hmac.compare_digest(expected, sig) for sig in v1_sigs):
        raise SignatureVerificationError("No signatures found matching the expected signature for payload")

    # Replay protection
    if tolerance > 0 and abs(time.time() - timestamp) > tolerance:
        logger.warning("Stripe webhook timestamp outside tolerance: %s", timestamp)
        raise SignatureVerificationError("Timestamp outside the tolerance zone")


def construct_event(
    body: bytes,
    signature_header: str | None,
    secret: str,
    tolerance: int = DEFAULT_TOLERANCE,
) -> dict[str, Any]:
    """Verify the payload and return the parsed event.

    An unparseable body is treated as a verification failure.
    """
    verify_stripe(body, signature_header, secret, tolerance)
    try:
        event = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise SignatureVerificationError("Invalid payload")
    if not isinstance(event, dict):
        raise SignatureVerificationError("Invalid payload")
    return event
