"""Tests for the static product and status lookup tables."""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from src.reconcile.errors import UnmappedProductError
from src.reconcile.mapping import (
    DEFAULT_STATUS,
    PRODUCT_MAPPING,
    STATUS_MAP,
    ProductMapping,
    resolve_price,
    translate_status,
)


class TestStatusTranslator:
    """Stripe subscription status -> WooCommerce status."""

    @pytest.mark.parametrize(
        "stripe_status,woo_status",
        [
            ("active", "active"),
            ("past_due", "on-hold"),
            ("unpaid", "on-hold"),
            ("canceled", "cancelled"),
            ("incomplete", "pending"),
            ("incomplete_expired", "cancelled"),
            ("trialing", "active"),
            ("paused", "on-hold"),
        ],
    )
    def test_known_statuses(self, stripe_status, woo_status):
        assert translate_status(stripe_status) == woo_status

    @given(st.text().filter(lambda s: s not in STATUS_MAP))
    @settings(max_examples=100)
    def test_unknown_status_defaults_to_on_hold(self, status):
        assert translate_status(status) == "on-hold"

    @given(st.sampled_from(sorted(STATUS_MAP)))
    def test_every_table_entry_is_returned_verbatim(self, status):
        assert translate_status(status) == STATUS_MAP[status]

    def test_none_defaults(self):
        assert translate_status(None) == DEFAULT_STATUS

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            STATUS_MAP["active"] = "cancelled"  # type: ignore[index]


class TestProductMapping:
    """Stripe price -> WooCommerce product lookup."""

    def test_subscription_price(self):
        mapping = resolve_price("price_123456789")
        assert mapping.product_id == 123
        assert mapping.is_subscription is True
        assert mapping.subscription_period == "month"

    def test_one_off_price(self):
        mapping = resolve_price("price_987654321")
        assert mapping == ProductMapping(product_id=456)
        assert mapping.is_subscription is False

    @given(st.text().filter(lambda s: s not in PRODUCT_MAPPING))
    @settings(max_examples=50)
    def test_unknown_price_raises(self, price_id):
        with pytest.raises(UnmappedProductError):
            resolve_price(price_id)

    def test_missing_price_raises(self):
        with pytest.raises(UnmappedProductError) as exc_info:
            resolve_price(None)
        assert exc_info.value.price_id is None

    def test_custom_table(self):
        table = {"price_x": ProductMapping(product_id=9)}
        assert resolve_price("price_x", table).product_id == 9
        with pytest.raises(UnmappedProductError):
            resolve_price("price_123456789", table)

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            PRODUCT_MAPPING["price_new"] = ProductMapping(product_id=1)  # type: ignore[index]
