"""Fakes for the usage domain."""
