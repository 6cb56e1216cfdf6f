"""Shared fixtures and helpers for billing domain tests."""

from datetime import datetime, timezone
from typing import Any, Optional
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from penwise.adapters.clock.fake import FakeClock
from penwise.adapters.payment.fake import FakePaymentGateway, _obj
from penwise.domains.billing.fakes.repository import FakeSubscriptionRepository
from penwise.domains.billing.service import BillingService
from penwise.domains.billing.webhook_processor import BillingWebhookProcessor
from penwise.domains.plans.types import Plan
from penwise.domains.users.fakes.repository import FakeUserRepository
from penwise.models import Subscription

DEFAULT_USER_ID = UUID("00000000-0000-0000-0000-000000000001")
FRONTEND_URL = "https://app.test"

# 2024-02-15 00:00 UTC
PERIOD_END_TS = 1707955200


def _make_subscription_model(user_id: UUID = DEFAULT_USER_ID, **overrides: Any) -> Subscription:
    """Return a Subscription ORM model for seeding FakeSubscriptionRepository."""
    now = datetime.now(timezone.utc)
    defaults = dict(
        id=uuid4(),
        user_id=user_id,
        plan=Plan.PRO.value,
        status="ACTIVE",
        external_customer_id="cus_test",
        external_subscription_id="sub_test",
        current_period_end=None,
        canceled_at=None,
        created_at=now,
        modified_at=now,
    )
    defaults.update(overrides)
    return Subscription(**defaults)


def _make_service(
    *,
    payment_gateway: Optional[FakePaymentGateway] = None,
    subscription_repo: Optional[FakeSubscriptionRepository] = None,
    user_repo: Optional[FakeUserRepository] = None,
) -> tuple[BillingService, FakePaymentGateway, FakeSubscriptionRepository, FakeUserRepository]:
    """Build a BillingService wired to fakes. Returns (service, *fakes)."""
    gw = payment_gateway or FakePaymentGateway()
    sr = subscription_repo or FakeSubscriptionRepository()
    ur = user_repo or FakeUserRepository()
    svc = BillingService(
        payment_gateway=gw,
        subscription_repo=sr,
        user_repo=ur,
        frontend_url=FRONTEND_URL,
    )
    return svc, gw, sr, ur


def _make_webhook_processor(
    *,
    payment_gateway: Optional[FakePaymentGateway] = None,
    subscription_repo: Optional[FakeSubscriptionRepository] = None,
    user_repo: Optional[FakeUserRepository] = None,
    clock: Optional[FakeClock] = None,
) -> tuple[
    BillingWebhookProcessor,
    FakePaymentGateway,
    FakeSubscriptionRepository,
    FakeUserRepository,
    FakeClock,
]:
    """Build a BillingWebhookProcessor wired to fakes. Returns (processor, *fakes)."""
    gw = payment_gateway or FakePaymentGateway()
    sr = subscription_repo or FakeSubscriptionRepository()
    ur = user_repo or FakeUserRepository()
    ck = clock or FakeClock()
    proc = BillingWebhookProcessor(
        payment_gateway=gw,
        subscription_repo=sr,
        user_repo=ur,
        clock=ck,
    )
    return proc, gw, sr, ur, ck


def _make_stripe_event(
    event_type: str,
    data_object: Any,
    event_id: str = "evt_test",
) -> _obj:
    """Build a minimal Stripe event attribute-bag."""
    return _obj(type=event_type, id=event_id, data=_obj(object=data_object))


def _make_checkout_session_obj(user_id: UUID = DEFAULT_USER_ID, **overrides: Any) -> _obj:
    """Build a completed subscription checkout session."""
    defaults = dict(
        id="cs_test",
        mode="subscription",
        customer="cus_test",
        subscription="sub_test",
        metadata={"user_id": str(user_id), "plan": "PRO", "billing_period": "monthly"},
    )
    defaults.update(overrides)
    return _obj(**defaults)


def _make_subscription_obj(price_id: Optional[str] = "price_pro_monthly", **overrides: Any) -> _obj:
    """Build a fake Stripe subscription attribute-bag with defaults."""
    items = [_obj(id="si_test", price=_obj(id=price_id))] if price_id else []
    defaults = dict(
        id="sub_test",
        customer="cus_test",
        status="active",
        current_period_end=PERIOD_END_TS,
        cancel_at_period_end=False,
        items=_obj(data=items),
    )
    defaults.update(overrides)
    return _obj(**defaults)


def _make_invoice_obj(**overrides: Any) -> _obj:
    """Build a fake Stripe invoice attribute-bag."""
    defaults = dict(
        id="in_test",
        customer="cus_test",
        subscription="sub_test",
        amount_due=2000,
    )
    defaults.update(overrides)
    return _obj(**defaults)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db():
    """AsyncMock database session; fakes ignore it."""
    return AsyncMock()
