"""Payment gateway protocol.

Cross-cutting infrastructure protocol for payment processing (Stripe, etc.).
All methods must be implemented by the same provider; the protocol is not split.

Direct consumers: BillingService, BillingWebhookProcessor.
"""

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from penwise.core.config.enums import BillingPeriod
from penwise.domains.plans.types import Plan


@runtime_checkable
class PaymentGatewayProtocol(Protocol):
    """Protocol for payment gateway operations.

    Abstracts all payment provider interactions (customers, subscriptions,
    checkout, portal, webhooks).
    """

    # -------------------------------------------------------------------------
    # Price / plan mapping
    # -------------------------------------------------------------------------

    def get_price_id_mapping(self) -> dict[str, Plan]:
        """Get reverse mapping from price IDs to plans."""
        ...

    def get_price_for_plan(self, plan: Plan, period: BillingPeriod) -> Optional[str]:
        """Get payment provider price ID for a plan and billing cadence."""
        ...

    # -------------------------------------------------------------------------
    # Customer operations
    # -------------------------------------------------------------------------

    async def create_customer(
        self,
        email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Create a customer in the payment provider."""
        ...

    # -------------------------------------------------------------------------
    # Subscription operations
    # -------------------------------------------------------------------------

    async def get_subscription(self, subscription_id: str) -> Any:
        """Retrieve a subscription."""
        ...

    async def update_subscription(
        self,
        subscription_id: str,
        cancel_at_period_end: Optional[bool] = None,
    ) -> Any:
        """Update a subscription."""
        ...

    # -------------------------------------------------------------------------
    # Checkout operations
    # -------------------------------------------------------------------------

    async def create_checkout_session(
        self,
        price_id: str,
        success_url: str,
        cancel_url: str,
        customer_id: Optional[str] = None,
        customer_email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Create a checkout session for a subscription."""
        ...

    # -------------------------------------------------------------------------
    # Portal operations
    # -------------------------------------------------------------------------

    async def create_portal_session(self, customer_id: str, return_url: str) -> Any:
        """Create a customer portal session."""
        ...

    # -------------------------------------------------------------------------
    # Webhook operations
    # -------------------------------------------------------------------------

    def verify_webhook_signature(self, payload: bytes, signature: str) -> Any:
        """Verify and construct webhook event from payload and signature.

        Raises WebhookSignatureError (a ValueError) when verification fails.
        """
        ...
