"""Root conftest for pytest configuration and shared fixtures.

This conftest is loaded before both testpaths (tests/ and penwise/),
making its fixtures available to centralized tests AND colocated domain tests.
"""

import os

import pytest

# Register pytest-asyncio plugin at the root level
pytest_plugins = ("pytest_asyncio",)

# ---------------------------------------------------------------------------
# Environment variables, set before any penwise module import.
# Uses setdefault so real env vars (CI) are never overridden.
# ---------------------------------------------------------------------------
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_USER", "test_user")
os.environ.setdefault("POSTGRES_PASSWORD", "test_password")
os.environ.setdefault("POSTGRES_DB", "test_db")
os.environ.setdefault("STRIPE_ENABLED", "false")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("FRONTEND_URL", "https://app.test")
os.environ.setdefault("USAGE_TIMEZONE", "UTC")


# ---------------------------------------------------------------------------
# Shared fake fixtures: individual protocol fakes
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_clock():
    """Fake Clock frozen at 2024-01-15 12:00 UTC."""
    from penwise.adapters.clock.fake import FakeClock

    return FakeClock()


@pytest.fixture
def fake_payment_gateway():
    """Fake PaymentGateway that records all calls."""
    from penwise.adapters.payment.fake import FakePaymentGateway

    return FakePaymentGateway()


@pytest.fixture
def fake_content_generator():
    """Fake ContentGenerator that echoes the prompt."""
    from penwise.adapters.generation.fake import FakeContentGenerator

    return FakeContentGenerator()


@pytest.fixture
def fake_user_repo():
    """In-memory user repository."""
    from penwise.domains.users.fakes.repository import FakeUserRepository

    return FakeUserRepository()


@pytest.fixture
def fake_subscription_repo():
    """In-memory subscription repository."""
    from penwise.domains.billing.fakes.repository import FakeSubscriptionRepository

    return FakeSubscriptionRepository()


@pytest.fixture
def fake_ledger_repo():
    """In-memory usage ledger repository."""
    from penwise.domains.usage.fakes.repository import FakeUsageLedgerRepository

    return FakeUsageLedgerRepository()


@pytest.fixture
def rate_limiter(fake_clock):
    """Real in-memory rate limiter over the default policies and the fake clock."""
    from penwise.core.config import settings
    from penwise.domains.rate_limits.limiter import InMemoryRateLimiter
    from penwise.domains.rate_limits.policies import build_policies

    return InMemoryRateLimiter(build_policies(settings), clock=fake_clock)


# ---------------------------------------------------------------------------
# Test container: real domain services over fakes, for injection
# ---------------------------------------------------------------------------


@pytest.fixture
def test_container(
    fake_clock,
    fake_payment_gateway,
    fake_content_generator,
    fake_user_repo,
    fake_subscription_repo,
    fake_ledger_repo,
    rate_limiter,
):
    """A Container whose infrastructure is replaced by fakes.

    Domain services are the real ones, wired to in-memory repositories, so
    API tests exercise the same rules production does.

    For partial overrides, use dataclasses.replace():
        strict = dataclasses.replace(test_container, rate_limiter=tight_limiter)
    """
    from datetime import timezone

    from penwise.core.config import settings
    from penwise.core.container import Container
    from penwise.domains.billing.service import BillingService
    from penwise.domains.billing.webhook_processor import BillingWebhookProcessor
    from penwise.domains.entitlements.facade import EntitlementFacade
    from penwise.domains.entitlements.feature_gate import FeatureGate
    from penwise.domains.usage.ledger import UsageLedger
    from penwise.domains.usage.meter import UsageMeter

    feature_gate = FeatureGate()
    usage_meter = UsageMeter(
        user_repo=fake_user_repo,
        ledger_repo=fake_ledger_repo,
        clock=fake_clock,
        tz=timezone.utc,
        feature_gate=feature_gate,
    )

    return Container(
        clock=fake_clock,
        payment_gateway=fake_payment_gateway,
        billing_service=BillingService(
            payment_gateway=fake_payment_gateway,
            subscription_repo=fake_subscription_repo,
            user_repo=fake_user_repo,
            frontend_url=settings.FRONTEND_URL,
        ),
        billing_webhook=BillingWebhookProcessor(
            payment_gateway=fake_payment_gateway,
            subscription_repo=fake_subscription_repo,
            user_repo=fake_user_repo,
            clock=fake_clock,
        ),
        user_repo=fake_user_repo,
        subscription_repo=fake_subscription_repo,
        usage_meter=usage_meter,
        usage_ledger=UsageLedger(ledger_repo=fake_ledger_repo, clock=fake_clock),
        rate_limiter=rate_limiter,
        feature_gate=feature_gate,
        entitlements=EntitlementFacade(
            meter=usage_meter,
            feature_gate=feature_gate,
            rate_limiter=rate_limiter,
        ),
        content_generator=fake_content_generator,
    )
