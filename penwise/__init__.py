"""Penwise backend: subscription lifecycle and entitlement engine."""
