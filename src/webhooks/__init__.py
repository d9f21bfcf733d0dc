"""Webhook inbound system.

Receives Stripe webhooks, verifies their signature, and reconciles each
event into WooCommerce customers, orders, and subscriptions.
"""
