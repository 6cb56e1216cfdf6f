"""Entitlements domain: feature gating and the per-request decision facade."""
