"""Adapters package: concrete implementations of core protocols."""
