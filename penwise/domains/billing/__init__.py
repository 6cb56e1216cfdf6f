"""Billing domain: subscription lifecycle driven by payment-provider webhooks."""
