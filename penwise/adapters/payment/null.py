"""Null payment gateway for when Stripe is disabled.

Satisfies PaymentGatewayProtocol so the container can always be fully
constructed. Lookups return empty defaults; user-facing billing operations
raise BillingNotAvailableError. verify_webhook_signature raises
WebhookSignatureError, matching the Stripe adapter's contract for invalid
signatures.
"""

from typing import Any, Dict, Optional

from penwise.core.config.enums import BillingPeriod
from penwise.core.protocols.payment import PaymentGatewayProtocol
from penwise.domains.billing.exceptions import BillingNotAvailableError, WebhookSignatureError
from penwise.domains.plans.types import Plan


class NullPaymentGateway(PaymentGatewayProtocol):
    """No-op payment gateway used when Stripe is disabled."""

    def get_price_for_plan(self, plan: Plan, period: BillingPeriod) -> Optional[str]:
        """Return None, no prices configured."""
        return None

    def get_price_id_mapping(self) -> dict[str, Plan]:
        """Return empty mapping."""
        return {}

    async def create_customer(
        self,
        email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Raise, requires real payment provider."""
        raise BillingNotAvailableError()

    async def get_subscription(self, subscription_id: str) -> Any:
        """Raise, requires real payment provider."""
        raise BillingNotAvailableError()

    async def update_subscription(
        self,
        subscription_id: str,
        cancel_at_period_end: Optional[bool] = None,
    ) -> Any:
        """Raise, requires real payment provider."""
        raise BillingNotAvailableError()

    async def create_checkout_session(
        self,
        price_id: str,
        success_url: str,
        cancel_url: str,
        customer_id: Optional[str] = None,
        customer_email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Raise, requires real payment provider."""
        raise BillingNotAvailableError()

    async def create_portal_session(self, customer_id: str, return_url: str) -> Any:
        """Raise, requires real payment provider."""
        raise BillingNotAvailableError()

    def verify_webhook_signature(self, payload: bytes, signature: str) -> Any:
        """Raise, billing is not enabled."""
        raise WebhookSignatureError("Billing is not enabled")
