"""Webhook processor for Stripe billing events.

This module verifies incoming Stripe webhook events and delegates each
recognized event type to a handler. Every handler runs in one unit of work
and is idempotent, so a redelivered event converges on the same state.
"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from penwise.core.logging import ContextualLogger, logger
from penwise.core.protocols.clock import Clock
from penwise.core.protocols.payment import PaymentGatewayProtocol
from penwise.db.unit_of_work import UnitOfWork
from penwise.domains.billing.exceptions import wrap_gateway_errors
from penwise.domains.billing.protocols import BillingWebhookProtocol
from penwise.domains.billing.repository import SubscriptionRepositoryProtocol
from penwise.domains.plans.types import Plan, parse_plan
from penwise.domains.users.repository import UserRepositoryProtocol
from penwise.schemas.subscription import (
    SubscriptionPatch,
    SubscriptionStatus,
    SubscriptionUpsert,
)

_STATUS_MAP: dict[str, SubscriptionStatus] = {
    "canceled": SubscriptionStatus.CANCELED,
    "past_due": SubscriptionStatus.PAST_DUE,
    "incomplete": SubscriptionStatus.INCOMPLETE,
    "trialing": SubscriptionStatus.TRIALING,
}


def map_stripe_status(status: Optional[str]) -> SubscriptionStatus:
    """Map a Stripe subscription status onto the local status; anything else is ACTIVE."""
    return _STATUS_MAP.get(status or "", SubscriptionStatus.ACTIVE)


def _from_timestamp(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _subscription_items(subscription: Any) -> list:
    # Stripe objects are dicts, so `.items` is the dict method; go through get().
    items = subscription.get("items") if hasattr(subscription, "get") else None
    if not items:
        return []
    return list(items.get("data") or [])


def _period_end(subscription: Any) -> Optional[datetime]:
    """Read current_period_end from the subscription or, on newer API versions, its first item."""
    value = subscription.get("current_period_end") if hasattr(subscription, "get") else None
    if value is None:
        items = _subscription_items(subscription)
        if items:
            value = items[0].get("current_period_end")
    return _from_timestamp(value)


def _invoice_subscription_id(invoice: Any) -> Optional[str]:
    """Read the invoice's subscription id, top-level or under parent.subscription_details."""
    subscription_id = getattr(invoice, "subscription", None)
    if subscription_id:
        return subscription_id
    parent = getattr(invoice, "parent", None)
    details = getattr(parent, "subscription_details", None) if parent else None
    return getattr(details, "subscription", None) if details else None


def _metadata_value(obj: Any, key: str) -> Optional[str]:
    metadata = getattr(obj, "metadata", None) or {}
    value = metadata.get(key)
    return str(value) if value else None


class BillingWebhookProcessor(BillingWebhookProtocol):
    """Process Stripe webhook events for billing."""

    def __init__(
        self,
        payment_gateway: PaymentGatewayProtocol,
        subscription_repo: SubscriptionRepositoryProtocol,
        user_repo: UserRepositoryProtocol,
        clock: Clock,
    ) -> None:
        """Initialize with all required dependencies."""
        self._payment_gateway = payment_gateway
        self._subscription_repo = subscription_repo
        self._user_repo = user_repo
        self._clock = clock

        # Event handler mapping
        self.handlers = {
            "checkout.session.completed": self._handle_checkout_completed,
            "customer.subscription.updated": self._handle_subscription_updated,
            "customer.subscription.deleted": self._handle_subscription_deleted,
            "invoice.payment_failed": self._handle_payment_failed,
        }

    @wrap_gateway_errors
    async def process_webhook(self, db: AsyncSession, payload: bytes, signature: str) -> None:
        """Verify webhook signature and process the resulting event.

        Raises WebhookSignatureError (a ValueError) if the signature is invalid.
        """
        event = self._payment_gateway.verify_webhook_signature(payload, signature)
        await self._process_event(db, event)

    async def _process_event(self, db: AsyncSession, event: Any) -> None:
        """Process a verified Stripe webhook event."""
        log = logger.with_context(event_type=event.type, stripe_event_id=event.id)

        handler = self.handlers.get(event.type)
        if handler:
            try:
                log.info(f"Processing webhook event: {event.type}")
                async with UnitOfWork(db) as uow:
                    await handler(db, event, log)
                    await uow.commit()
            except Exception as e:
                log.error(f"Error handling {event.type}: {e}", exc_info=True)
                raise
        else:
            log.info(f"Unhandled webhook event type: {event.type}")

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _handle_checkout_completed(
        self,
        db: AsyncSession,
        event: Any,
        log: ContextualLogger,
    ) -> None:
        """Handle checkout session completion: create or refresh the subscription."""
        session = event.data.object
        customer_id = getattr(session, "customer", None)

        log.info(
            f"Checkout completed: {session.id}, "
            f"Customer: {customer_id}, "
            f"Mode: {getattr(session, 'mode', None)}, "
            f"Subscription: {getattr(session, 'subscription', None)}"
        )

        if getattr(session, "mode", None) != "subscription" or not customer_id:
            log.info(f"Ignoring checkout session {session.id}: not a subscription checkout")
            return

        raw_user_id = _metadata_value(session, "user_id")
        plan = parse_plan(_metadata_value(session, "plan"))
        if not raw_user_id or plan is None:
            log.warning(f"Checkout session {session.id} is missing user_id or plan metadata")
            return
        try:
            user_id = UUID(raw_user_id)
        except ValueError:
            log.warning(f"Checkout session {session.id} has malformed user_id {raw_user_id!r}")
            return

        user = await self._user_repo.get(db, user_id=user_id)
        if not user:
            log.error(f"No user {user_id} for checkout session {session.id}")
            return

        subscription_id = getattr(session, "subscription", None)
        current_period_end = None
        if subscription_id:
            subscription = await self._payment_gateway.get_subscription(subscription_id)
            current_period_end = _period_end(subscription)

        await self._subscription_repo.upsert(
            db,
            obj_in=SubscriptionUpsert(
                user_id=user_id,
                plan=plan,
                status=SubscriptionStatus.ACTIVE,
                external_customer_id=customer_id,
                external_subscription_id=subscription_id,
                current_period_end=current_period_end,
                canceled_at=None,
            ),
        )
        await self._user_repo.set_plan(db, user_id=user_id, plan=plan)

        log.info(f"Subscription activated for user {user_id} on plan {plan.value}")

    async def _handle_subscription_updated(
        self,
        db: AsyncSession,
        event: Any,
        log: ContextualLogger,
    ) -> None:
        """Handle subscription status or period changes."""
        stripe_subscription = event.data.object
        customer_id = getattr(stripe_subscription, "customer", None)

        subscription = await self._subscription_repo.get_by_customer_id(
            db, external_customer_id=customer_id
        )
        if not subscription:
            log.error(f"No subscription record for customer {customer_id}")
            return

        status = map_stripe_status(getattr(stripe_subscription, "status", None))
        patch = SubscriptionPatch(
            status=status,
            external_subscription_id=stripe_subscription.id,
            current_period_end=_period_end(stripe_subscription),
            canceled_at=self._clock.now() if status == SubscriptionStatus.CANCELED else None,
        )
        new_plan = self._infer_plan_from_items(stripe_subscription)
        if new_plan is not None and new_plan.value != subscription.plan:
            log.info(f"Plan changed from {subscription.plan} to {new_plan.value}")
            patch.plan = new_plan

        await self._subscription_repo.update(db, db_obj=subscription, obj_in=patch)
        plan = await self._derive_user_plan(db, subscription.user_id)

        log.info(
            f"Subscription for customer {customer_id} is now {status.value}; "
            f"user {subscription.user_id} plan {plan.value}"
        )

    async def _handle_subscription_deleted(
        self,
        db: AsyncSession,
        event: Any,
        log: ContextualLogger,
    ) -> None:
        """Handle subscription deletion: entitlements end immediately."""
        stripe_subscription = event.data.object
        customer_id = getattr(stripe_subscription, "customer", None)

        subscription = await self._subscription_repo.get_by_customer_id(
            db, external_customer_id=customer_id
        )
        if not subscription:
            log.error(f"No subscription record for customer {customer_id}")
            return

        await self._subscription_repo.update(
            db,
            db_obj=subscription,
            obj_in=SubscriptionPatch(
                status=SubscriptionStatus.CANCELED,
                canceled_at=self._clock.now(),
            ),
        )
        await self._user_repo.set_plan(db, user_id=subscription.user_id, plan=Plan.FREE)

        log.info(f"Subscription fully canceled for user {subscription.user_id}")

    async def _handle_payment_failed(
        self,
        db: AsyncSession,
        event: Any,
        log: ContextualLogger,
    ) -> None:
        """Handle failed payment: mark the subscription past due, keep the plan."""
        invoice = event.data.object

        if not _invoice_subscription_id(invoice):
            return  # One-time payment

        subscription = await self._subscription_repo.get_by_customer_id(
            db, external_customer_id=invoice.customer
        )
        if not subscription:
            log.error(f"No subscription record for customer {invoice.customer}")
            return

        await self._subscription_repo.update(
            db,
            db_obj=subscription,
            obj_in=SubscriptionPatch(status=SubscriptionStatus.PAST_DUE),
        )

        log.warning(f"Payment failed for user {subscription.user_id}; subscription past due")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _infer_plan_from_items(self, stripe_subscription: Any) -> Optional[Plan]:
        """Return the plan of the subscription's price when exactly one known plan matches."""
        price_ids = []
        for item in _subscription_items(stripe_subscription):
            price = item.get("price")
            if price is not None and price.get("id"):
                price_ids.append(price.get("id"))

        mapping = self._payment_gateway.get_price_id_mapping()
        plans = {mapping[price_id] for price_id in price_ids if price_id in mapping}
        if len(plans) == 1:
            return next(iter(plans))
        return None

    async def _derive_user_plan(self, db: AsyncSession, user_id: UUID) -> Plan:
        """Set user.plan from the latest entitling subscription, FREE when there is none."""
        entitling = await self._subscription_repo.get_latest_entitling_for_user(
            db, user_id=user_id
        )
        plan = Plan(entitling.plan) if entitling else Plan.FREE
        await self._user_repo.set_plan(db, user_id=user_id, plan=plan)
        return plan
