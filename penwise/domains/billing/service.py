"""Billing service.

Starts checkout and portal sessions at the payment provider and reads the
local subscription record. Subscription state itself is only ever written
by the webhook processor (or the admin plan override below).
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from penwise.core.config.enums import BillingPeriod
from penwise.core.exceptions import InvalidStateError
from penwise.core.logging import logger
from penwise.core.protocols.payment import PaymentGatewayProtocol
from penwise.db.unit_of_work import UnitOfWork
from penwise.domains.billing.exceptions import BillingNotFoundError, wrap_gateway_errors
from penwise.domains.billing.protocols import BillingServiceProtocol
from penwise.domains.billing.repository import SubscriptionRepositoryProtocol
from penwise.domains.plans.types import Plan, is_paid_plan
from penwise.domains.usage.exceptions import UserNotFoundError
from penwise.domains.users.repository import UserRepositoryProtocol
from penwise.schemas.billing import CheckoutSessionResponse
from penwise.schemas.subscription import Subscription


class BillingService(BillingServiceProtocol):
    """Service for managing user subscriptions at the payment provider."""

    def __init__(
        self,
        payment_gateway: PaymentGatewayProtocol,
        subscription_repo: SubscriptionRepositoryProtocol,
        user_repo: UserRepositoryProtocol,
        frontend_url: str,
    ) -> None:
        """Initialize with all required dependencies."""
        self._payment_gateway = payment_gateway
        self._subscription_repo = subscription_repo
        self._user_repo = user_repo
        self._frontend_url = frontend_url.rstrip("/")

    async def _get_customer_id(self, db: AsyncSession, user_id: UUID) -> Optional[str]:
        subscription = await self._subscription_repo.get_latest_for_user(db, user_id=user_id)
        return subscription.external_customer_id if subscription else None

    @wrap_gateway_errors
    async def create_checkout_session(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        plan: Plan,
        billing_period: BillingPeriod,
        email: Optional[str] = None,
    ) -> CheckoutSessionResponse:
        """Start a subscription checkout flow.

        Reuses the customer from the user's latest subscription, otherwise
        creates one tagged with the user id. The plan and user id travel in
        the session metadata so the completion webhook can attribute it.
        """
        if not is_paid_plan(plan):
            raise InvalidStateError(f"Invalid plan: {plan.value}")

        price_id = self._payment_gateway.get_price_for_plan(plan, billing_period)
        if not price_id:
            raise InvalidStateError(
                f"No price configured for {plan.value} ({billing_period.value})"
            )

        customer_id = await self._get_customer_id(db, user_id)
        if not customer_id:
            customer = await self._payment_gateway.create_customer(
                email=email, metadata={"user_id": str(user_id)}
            )
            customer_id = customer.id
            logger.info(f"Created payment customer {customer_id} for user {user_id}")

        session = await self._payment_gateway.create_checkout_session(
            price_id=price_id,
            success_url=(
                f"{self._frontend_url}/dashboard?payment=success"
                "&session_id={CHECKOUT_SESSION_ID}"
            ),
            cancel_url=f"{self._frontend_url}/pricing?payment=cancelled",
            customer_id=customer_id,
            metadata={
                "user_id": str(user_id),
                "plan": plan.value,
                "billing_period": billing_period.value,
            },
        )

        return CheckoutSessionResponse(session_id=session.id, url=session.url)

    @wrap_gateway_errors
    async def create_portal_session(self, db: AsyncSession, *, user_id: UUID) -> str:
        """Create customer portal session."""
        customer_id = await self._get_customer_id(db, user_id)
        if not customer_id:
            raise BillingNotFoundError("No billing customer found for user")

        session = await self._payment_gateway.create_portal_session(
            customer_id=customer_id,
            return_url=f"{self._frontend_url}/dashboard",
        )
        return session.url

    async def get_subscription(self, db: AsyncSession, *, user_id: UUID) -> Optional[Subscription]:
        """Return the user's most recent subscription, if any."""
        record = await self._subscription_repo.get_latest_for_user(db, user_id=user_id)
        if not record:
            return None
        return Subscription.model_validate(record, from_attributes=True)

    @wrap_gateway_errors
    async def cancel_subscription(self, db: AsyncSession, *, user_id: UUID) -> str:
        """Ask the provider to cancel at period end.

        The local record is left alone; the resulting
        ``customer.subscription.updated`` webhook carries the change.
        """
        subscription = await self._subscription_repo.get_latest_entitling_for_user(
            db, user_id=user_id
        )
        if not subscription or not subscription.external_subscription_id:
            raise BillingNotFoundError("No active subscription found")

        await self._payment_gateway.update_subscription(
            subscription.external_subscription_id, cancel_at_period_end=True
        )

        logger.info(f"Cancellation requested for user {user_id}")
        return "Subscription will be canceled at the end of the current billing period"

    async def set_plan(self, db: AsyncSession, *, user_id: UUID, plan: Plan) -> Plan:
        """Administrative plan override.

        Writes ``user.plan`` directly. The next subscription webhook for the
        user re-derives the plan from their subscriptions.
        """
        async with UnitOfWork(db) as uow:
            user = await self._user_repo.set_plan(db, user_id=user_id, plan=plan)
            if user is None:
                raise UserNotFoundError(f"User {user_id} not found")
            await uow.commit()

        logger.warning(f"Plan for user {user_id} manually set to {plan.value}")
        return plan
