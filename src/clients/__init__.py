"""Thin async clients for the two external systems (Stripe, WooCommerce)."""
