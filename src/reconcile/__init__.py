"""Stripe -> WooCommerce reconciliation.

Components are plain classes that receive their collaborators through
their constructors, so each one can be exercised against in-memory fakes
of the two external systems.
"""
