"""Webhook HTTP fixtures.

Responsibilities:
- Creates the FastAPI `app` fixture wired to the in-memory Stripe/WooCommerce fakes
- Wraps it in a TestClient (attacker perspective: no credentials beyond the signature)
- Provides a signer for valid Stripe-Signature headers

The parent tests/conftest.py provides the fakes themselves.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time

import pytest
from fastapi.testclient import TestClient

from src.config import Settings
from src.serve import create_app
from src.webhooks.dispatcher import EventDispatcher

WEBHOOK_SECRET = "whsec_http_test"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        stripe_secret_key="sk_test_unused",
        stripe_webhook_secret=WEBHOOK_SECRET,
        woocommerce_store_url="https://shop.example.com",
        dedupe_events=False,
    )


@pytest.fixture
def app(settings, stripe_api, woo):
    """App with an injected dispatcher: no real clients are constructed."""
    return create_app(settings, dispatcher=EventDispatcher.build(stripe_api, woo))


@pytest.fixture
def client(app):
    """TestClient that surfaces 500s as responses instead of exceptions."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def signed():
    """Factory: event dict -> (body, headers) with a valid Stripe signature."""

    def _signed(event: dict, secret: str = WEBHOOK_SECRET, timestamp: int | None = None):
        body = json.dumps(event).encode()
        ts = timestamp or int(time.time())
        sig = hmac.new(secret.encode(), f"{ts}.".encode() + body, hashlib.sha256).hexdigest()
        return body, {"Stripe-Signature": f"t={ts},v1={sig}", "Content-Type": "application/json"}

    return _signed
