"""Fake payment gateway for testing.

In-memory implementation of PaymentGatewayProtocol.
Records all calls for assertions. No external API calls.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import uuid4

from penwise.core.config.enums import BillingPeriod
from penwise.core.protocols.payment import PaymentGatewayProtocol
from penwise.domains.billing.exceptions import WebhookSignatureError
from penwise.domains.plans.types import Plan

VALID_SIGNATURE = "t=1,v1=valid"


class FakePaymentGateway(PaymentGatewayProtocol):
    """Test implementation of PaymentGatewayProtocol.

    Usage::

        fake = FakePaymentGateway()
        fake.set_webhook_event(_obj(type="invoice.payment_failed", ...))
        event = fake.verify_webhook_signature(b"{}", VALID_SIGNATURE)
        assert fake.call_count("verify_webhook_signature") == 1
    """

    def __init__(
        self,
        price_ids: Optional[dict[tuple[Plan, BillingPeriod], str]] = None,
        should_raise: Optional[Exception] = None,
        valid_signature: str = VALID_SIGNATURE,
    ) -> None:
        """Initialize with optional price IDs and error injection."""
        self._price_ids = (
            price_ids
            if price_ids is not None
            else {
                (Plan.PRO, BillingPeriod.MONTHLY): "price_pro_monthly",
                (Plan.PRO, BillingPeriod.YEARLY): "price_pro_yearly",
                (Plan.AGENCY, BillingPeriod.MONTHLY): "price_agency_monthly",
                (Plan.AGENCY, BillingPeriod.YEARLY): "price_agency_yearly",
                (Plan.ENTERPRISE, BillingPeriod.MONTHLY): "price_ent_monthly",
                (Plan.ENTERPRISE, BillingPeriod.YEARLY): "price_ent_yearly",
            }
        )
        self._should_raise = should_raise
        self._valid_signature = valid_signature
        self._calls: list[tuple[str, tuple, dict]] = []

        # In-memory state
        self._customers: dict[str, Any] = {}
        self._subscriptions: dict[str, Any] = {}
        self._webhook_event: Any = None

    def _record(self, method: str, *args: Any, **kwargs: Any) -> None:
        self._calls.append((method, args, kwargs))
        if self._should_raise:
            raise self._should_raise

    # ---- Test helpers ----

    def call_count(self, method: str) -> int:
        """Number of times a method was called."""
        return sum(1 for name, _, _ in self._calls if name == method)

    def calls_for(self, method: str) -> list[tuple[tuple, dict]]:
        """Return (args, kwargs) for each call to *method*."""
        return [(a, k) for name, a, k in self._calls if name == method]

    def seed_subscription(
        self,
        subscription_id: str,
        customer_id: str = "cus_test",
        status: str = "active",
        current_period_end: Optional[int] = None,
    ) -> Any:
        """Store a subscription returned by get_subscription."""
        obj = _obj(
            id=subscription_id,
            customer=customer_id,
            status=status,
            cancel_at_period_end=False,
            current_period_end=current_period_end,
            items=_obj(data=[]),
        )
        self._subscriptions[subscription_id] = obj
        return obj

    def set_webhook_event(self, event: Any) -> None:
        """Event returned by the next successful verify_webhook_signature."""
        self._webhook_event = event

    # ---- Price / plan mapping ----

    def get_price_id_mapping(self) -> dict[str, Plan]:
        """Return reverse mapping from price IDs to plans."""
        return {pid: plan for (plan, _), pid in self._price_ids.items() if pid}

    def get_price_for_plan(self, plan: Plan, period: BillingPeriod) -> Optional[str]:
        """Return fake price ID for a plan."""
        return self._price_ids.get((plan, period))

    # ---- Customer / subscription operations ----

    async def create_customer(
        self,
        email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Create a fake customer in memory."""
        self._record("create_customer", email=email, metadata=metadata)
        cid = f"cus_{uuid4().hex[:14]}"
        obj = _obj(id=cid, email=email, metadata=metadata or {})
        self._customers[cid] = obj
        return obj

    async def get_subscription(self, subscription_id: str) -> Any:
        """Retrieve a fake subscription from memory."""
        self._record("get_subscription", subscription_id)
        sub = self._subscriptions.get(subscription_id)
        if sub is None:
            sub = _obj(
                id=subscription_id,
                status="active",
                items=_obj(data=[]),
                cancel_at_period_end=False,
                current_period_end=None,
            )
        return sub

    async def update_subscription(
        self,
        subscription_id: str,
        cancel_at_period_end: Optional[bool] = None,
    ) -> Any:
        """Update a fake subscription in memory."""
        self._record(
            "update_subscription",
            subscription_id,
            cancel_at_period_end=cancel_at_period_end,
        )
        sub = self._subscriptions.get(subscription_id, _obj(id=subscription_id))
        if cancel_at_period_end is not None:
            sub.cancel_at_period_end = cancel_at_period_end
        return sub

    # ---- Checkout / portal ----

    async def create_checkout_session(
        self,
        price_id: str,
        success_url: str,
        cancel_url: str,
        customer_id: Optional[str] = None,
        customer_email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Return a fake checkout session."""
        self._record(
            "create_checkout_session",
            price_id,
            customer_id=customer_id,
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
        )
        return _obj(id=f"cs_{uuid4().hex[:14]}", url="https://checkout.fake/session")

    async def create_portal_session(self, customer_id: str, return_url: str) -> Any:
        """Return a fake portal session URL."""
        self._record("create_portal_session", customer_id, return_url=return_url)
        return _obj(url="https://portal.fake/session")

    # ---- Webhook operations ----

    def verify_webhook_signature(self, payload: bytes, signature: str) -> Any:
        """Return the configured event when *signature* matches."""
        self._calls.append(("verify_webhook_signature", (payload, signature), {}))
        if signature != self._valid_signature:
            raise WebhookSignatureError()
        if self._webhook_event is None:
            return _obj(type="test.event", id="evt_fake", data=_obj(object=_obj()))
        return self._webhook_event


class _obj:
    """Tiny attribute-bag to emulate Stripe object shapes in tests."""

    def __init__(self, **kwargs: Any):
        for k, v in kwargs.items():
            setattr(self, k, v)

    def get(self, key: str, default: Any = None) -> Any:
        """Get attribute by key with default."""
        return getattr(self, key, default)
