"""Shared fixtures: in-memory fakes of Stripe and WooCommerce.

Both fakes record every call so tests can assert exact read/write counts.
"""

from __future__ import annotations

import copy
from typing import Any

import pytest


class FakeWooCommerce:
    """In-memory WooCommerce: customers, orders, subscriptions."""

    def __init__(self) -> None:
        self.customers: list[dict[str, Any]] = []
        self.orders: list[dict[str, Any]] = []
        self.subscriptions: list[dict[str, Any]] = []
        self.calls: list[tuple[str, str, Any]] = []
        self._next_id = 1000

    @property
    def writes(self) -> list[tuple[str, str, Any]]:
        return [c for c in self.calls if c[0] in ("POST", "PUT")]

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        self.calls.append(("GET", endpoint, params))
        params = params or {}
        if endpoint == "customers":
            return [copy.deepcopy(c) for c in self.customers if c.get("email") == params.get("email")]
        if endpoint == "subscriptions":
            matches = [s for s in self.subscriptions if s.get("customer_id") == params.get("customer")]
            per_page = params.get("per_page", 10)
            start = (params.get("page", 1) - 1) * per_page
            return [copy.deepcopy(s) for s in matches[start : start + per_page]]
        raise AssertionError(f"unexpected GET {endpoint}")

    async def post(self, endpoint: str, data: dict[str, Any]) -> Any:
        self.calls.append(("POST", endpoint, copy.deepcopy(data)))
        record = {**copy.deepcopy(data), "id": self._next_id}
        self._next_id += 1
        getattr(self, endpoint).append(record)
        return copy.deepcopy(record)

    async def put(self, endpoint: str, data: dict[str, Any]) -> Any:
        self.calls.append(("PUT", endpoint, copy.deepcopy(data)))
        collection, _, raw_id = endpoint.partition("/")
        record = next(r for r in getattr(self, collection) if r["id"] == int(raw_id))
        record.update(copy.deepcopy(data))
        return copy.deepcopy(record)


class FakeStripe:
    """In-memory Stripe reads keyed by object ID."""

    def __init__(self) -> None:
        self.line_items: dict[str, list[dict[str, Any]]] = {}
        self.subscriptions: dict[str, dict[str, Any]] = {}
        self.customers: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []

    async def list_line_items(self, session_id: str) -> list[dict[str, Any]]:
        self.calls.append(("list_line_items", session_id))
        return copy.deepcopy(self.line_items.get(session_id, []))

    async def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        self.calls.append(("retrieve_subscription", subscription_id))
        return copy.deepcopy(self.subscriptions[subscription_id])

    async def retrieve_customer(self, customer_id: str) -> dict[str, Any]:
        self.calls.append(("retrieve_customer", customer_id))
        return copy.deepcopy(self.customers[customer_id])


@pytest.fixture
def woo() -> FakeWooCommerce:
    return FakeWooCommerce()


@pytest.fixture
def stripe_api() -> FakeStripe:
    return FakeStripe()


@pytest.fixture
def customer_details() -> dict[str, Any]:
    """Stripe checkout customer_details with a full address."""
    return {
        "email": "a@example.com",
        "name": "Ada King Lovelace",
        "phone": "+15550100",
        "address": {
            "line1": "12 St James's Square",
            "line2": None,
            "city": "London",
            "state": "",
            "postal_code": "SW1Y 4JH",
            "country": "GB",
        },
    }


@pytest.fixture
def subscription_session(customer_details) -> dict[str, Any]:
    """checkout.session.completed object for a subscription purchase."""
    return {
        "id": "cs_test_1",
        "object": "checkout.session",
        "customer": "cus_1",
        "customer_details": customer_details,
        "subscription": "sub_1",
    }


def line_item(price_id: str, quantity: int) -> dict[str, Any]:
    return {"id": f"li_{price_id}", "price": {"id": price_id}, "quantity": quantity}


@pytest.fixture
def make_line_item():
    return line_item
