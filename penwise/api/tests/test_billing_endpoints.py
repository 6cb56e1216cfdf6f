"""API tests for the billing endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from penwise.adapters.payment.fake import VALID_SIGNATURE, _obj
from penwise.api.conftest import TEST_USER_ID
from penwise.api.v1.endpoints.billing import stripe_webhook
from penwise.domains.billing.exceptions import WebhookSignatureError
from penwise.domains.plans.types import Plan
from penwise.models import Subscription


def _seed_subscription(repo, **overrides):
    now = datetime.now(timezone.utc)
    defaults = dict(
        id=uuid4(),
        user_id=TEST_USER_ID,
        plan="PRO",
        status="ACTIVE",
        external_customer_id="cus_api",
        external_subscription_id="sub_api",
        current_period_end=datetime(2024, 2, 15, tzinfo=timezone.utc),
        canceled_at=None,
        created_at=now,
        modified_at=now,
    )
    defaults.update(overrides)
    record = Subscription(**defaults)
    repo.seed(record)
    return record


class TestCheckoutSession:
    @pytest.mark.asyncio
    async def test_returns_session_url(self, client, fake_payment_gateway):
        response = await client.post(
            "/api/v1/billing/checkout-session",
            json={"plan": "pro", "billing_period": "yearly"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["url"] == "https://checkout.fake/session"
        assert body["session_id"].startswith("cs_")
        [(args, _)] = fake_payment_gateway.calls_for("create_checkout_session")
        assert args == ("price_pro_yearly",)

    @pytest.mark.asyncio
    async def test_defaults_to_monthly(self, client, fake_payment_gateway):
        response = await client.post("/api/v1/billing/checkout-session", json={"plan": "AGENCY"})

        assert response.status_code == 200
        [(args, _)] = fake_payment_gateway.calls_for("create_checkout_session")
        assert args == ("price_agency_monthly",)

    @pytest.mark.asyncio
    async def test_free_plan_rejected(self, client, fake_payment_gateway):
        response = await client.post("/api/v1/billing/checkout-session", json={"plan": "FREE"})

        assert response.status_code == 422
        assert fake_payment_gateway._calls == []

    @pytest.mark.asyncio
    async def test_provider_outage_is_503(self, client, fake_payment_gateway):
        from penwise.core.exceptions import ExternalServiceError

        fake_payment_gateway._should_raise = ExternalServiceError("Stripe", "connection reset")

        response = await client.post("/api/v1/billing/checkout-session", json={"plan": "PRO"})

        assert response.status_code == 503
        assert response.json() == {"detail": "PaymentGateway is temporarily unavailable"}


class TestPortalSession:
    @pytest.mark.asyncio
    async def test_no_customer_is_404(self, client):
        response = await client.post("/api/v1/billing/portal-session")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_returns_portal_url(self, client, fake_subscription_repo):
        _seed_subscription(fake_subscription_repo)

        response = await client.post("/api/v1/billing/portal-session")

        assert response.status_code == 200
        assert response.json() == {"url": "https://portal.fake/session"}


class TestGetSubscription:
    @pytest.mark.asyncio
    async def test_null_when_none(self, client):
        response = await client.get("/api/v1/billing/subscription")

        assert response.status_code == 200
        assert response.json() == {"subscription": None}

    @pytest.mark.asyncio
    async def test_returns_current_subscription(self, client, fake_subscription_repo):
        _seed_subscription(fake_subscription_repo, status="PAST_DUE")

        response = await client.get("/api/v1/billing/subscription")

        sub = response.json()["subscription"]
        assert sub["plan"] == "PRO"
        assert sub["status"] == "PAST_DUE"
        assert sub["external_customer_id"] == "cus_api"


class TestCancel:
    @pytest.mark.asyncio
    async def test_requests_cancellation(
        self, client, fake_subscription_repo, fake_payment_gateway
    ):
        _seed_subscription(fake_subscription_repo)

        response = await client.post("/api/v1/billing/cancel")

        assert response.status_code == 200
        assert response.json()["cancel_at_period_end"] is True
        assert fake_payment_gateway.call_count("update_subscription") == 1

    @pytest.mark.asyncio
    async def test_nothing_to_cancel_is_404(self, client):
        response = await client.post("/api/v1/billing/cancel")

        assert response.status_code == 404


class TestWebhookHttp:
    @pytest.mark.asyncio
    async def test_missing_signature_is_400(self, client):
        response = await client.post("/api/v1/billing/webhook", content=b"{}")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_bad_signature_is_400_without_writes(
        self, client, fake_user_repo, fake_subscription_repo, fake_payment_gateway
    ):
        fake_user_repo.seed(TEST_USER_ID)
        fake_payment_gateway.set_webhook_event(_checkout_event())

        response = await client.post(
            "/api/v1/billing/webhook",
            content=b"{}",
            headers={"Stripe-Signature": "t=1,v1=forged"},
        )

        assert response.status_code == 400
        assert fake_subscription_repo.all() == []

    @pytest.mark.asyncio
    async def test_checkout_completed_activates_plan(
        self, client, fake_user_repo, fake_subscription_repo, fake_payment_gateway
    ):
        user = fake_user_repo.seed(TEST_USER_ID)
        fake_payment_gateway.set_webhook_event(_checkout_event())

        response = await client.post(
            "/api/v1/billing/webhook",
            content=b"{}",
            headers={"Stripe-Signature": VALID_SIGNATURE},
        )

        assert response.status_code == 200
        assert user.plan == "AGENCY"
        [record] = fake_subscription_repo.all()
        assert record.plan == "AGENCY"

    @pytest.mark.asyncio
    async def test_processing_failure_is_500(
        self, client, fake_user_repo, fake_payment_gateway
    ):
        fake_user_repo.seed(TEST_USER_ID)
        fake_payment_gateway.set_webhook_event(_checkout_event())
        fake_user_repo._should_raise = RuntimeError("db down")

        response = await client.post(
            "/api/v1/billing/webhook",
            content=b"{}",
            headers={"Stripe-Signature": VALID_SIGNATURE},
        )

        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_value_error_while_applying_event_is_500(
        self, client, fake_user_repo, fake_subscription_repo, fake_payment_gateway
    ):
        fake_user_repo.seed(TEST_USER_ID)
        fake_payment_gateway.set_webhook_event(_checkout_event())
        fake_user_repo._should_raise = ValueError("invalid input value for enum")

        response = await client.post(
            "/api/v1/billing/webhook",
            content=b"{}",
            headers={"Stripe-Signature": VALID_SIGNATURE},
        )

        assert response.status_code == 500
        assert fake_subscription_repo.all() == []

    @pytest.mark.asyncio
    async def test_unhandled_event_is_200(self, client, fake_payment_gateway):
        fake_payment_gateway.set_webhook_event(
            _obj(type="customer.created", id="evt_x", data=_obj(object=_obj(id="cus_x")))
        )

        response = await client.post(
            "/api/v1/billing/webhook",
            content=b"{}",
            headers={"Stripe-Signature": VALID_SIGNATURE},
        )

        assert response.status_code == 200


class TestStripeWebhookEndpoint:
    """Calls the endpoint function directly to pin the error mapping."""

    @pytest.mark.asyncio
    async def test_signature_error_returns_400(self):
        request = AsyncMock()
        request.body = AsyncMock(return_value=b"payload")
        webhook = AsyncMock()
        webhook.process_webhook = AsyncMock(side_effect=WebhookSignatureError("bad signature"))

        response = await stripe_webhook(
            request=request, stripe_signature="sig_test", db=AsyncMock(), webhook=webhook
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_plain_value_error_returns_500(self):
        request = AsyncMock()
        request.body = AsyncMock(return_value=b"payload")
        webhook = AsyncMock()
        webhook.process_webhook = AsyncMock(side_effect=ValueError("invalid literal for int()"))

        response = await stripe_webhook(
            request=request, stripe_signature="sig_test", db=AsyncMock(), webhook=webhook
        )

        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_500(self):
        request = AsyncMock()
        request.body = AsyncMock(return_value=b"payload")
        webhook = AsyncMock()
        webhook.process_webhook = AsyncMock(side_effect=RuntimeError("boom"))

        response = await stripe_webhook(
            request=request, stripe_signature="sig_test", db=AsyncMock(), webhook=webhook
        )

        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_success_returns_200(self):
        request = AsyncMock()
        request.body = AsyncMock(return_value=b"payload")
        webhook = AsyncMock()

        response = await stripe_webhook(
            request=request, stripe_signature="sig_test", db=AsyncMock(), webhook=webhook
        )

        assert response.status_code == 200
        webhook.process_webhook.assert_awaited_once()


def _checkout_event():
    session = _obj(
        id="cs_api",
        mode="subscription",
        customer="cus_api",
        subscription="sub_api",
        metadata={"user_id": str(TEST_USER_ID), "plan": Plan.AGENCY.value},
    )
    return _obj(type="checkout.session.completed", id="evt_api", data=_obj(object=session))
