"""Billing domain protocols.

BillingServiceProtocol: the only thing billing endpoints need injected.
BillingWebhookProtocol: single method for webhook event processing.
"""

from typing import Optional, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from penwise.core.config.enums import BillingPeriod
from penwise.domains.plans.types import Plan
from penwise.schemas.billing import CheckoutSessionResponse
from penwise.schemas.subscription import Subscription


@runtime_checkable
class BillingServiceProtocol(Protocol):
    """Public billing service interface."""

    async def create_checkout_session(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        plan: Plan,
        billing_period: BillingPeriod,
        email: Optional[str] = None,
    ) -> CheckoutSessionResponse:
        """Start a subscription checkout. Returns the session id and URL."""
        ...

    async def create_portal_session(self, db: AsyncSession, *, user_id: UUID) -> str:
        """Create a customer portal session. Returns the portal URL."""
        ...

    async def get_subscription(self, db: AsyncSession, *, user_id: UUID) -> Optional[Subscription]:
        """Return the user's most recent subscription, if any."""
        ...

    async def cancel_subscription(self, db: AsyncSession, *, user_id: UUID) -> str:
        """Ask the provider to cancel at period end. Returns a status message."""
        ...

    async def set_plan(self, db: AsyncSession, *, user_id: UUID, plan: Plan) -> Plan:
        """Administrative plan override. Returns the plan now on the user."""
        ...


@runtime_checkable
class BillingWebhookProtocol(Protocol):
    """Webhook event processing."""

    async def process_webhook(self, db: AsyncSession, payload: bytes, signature: str) -> None:
        """Verify the signature and apply the event.

        Raises WebhookSignatureError (a ValueError) when verification fails.
        """
        ...
