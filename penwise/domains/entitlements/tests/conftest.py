"""Entitlements domain test fixtures and helpers."""

from datetime import datetime, timezone
from typing import Optional
from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from penwise.adapters.clock.fake import FakeClock
from penwise.domains.entitlements.facade import EntitlementFacade
from penwise.domains.entitlements.feature_gate import FeatureGate
from penwise.domains.entitlements.types import FailurePolicy
from penwise.domains.rate_limits.limiter import InMemoryRateLimiter
from penwise.domains.rate_limits.types import GENERATION, RateLimitPolicy
from penwise.domains.usage.fakes.repository import FakeUsageLedgerRepository
from penwise.domains.usage.meter import UsageMeter
from penwise.domains.users.fakes.repository import FakeUserRepository

DEFAULT_USER_ID = UUID("00000000-0000-0000-0000-000000000001")
CLIENT = "203.0.113.7"
NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
THIS_MONTH = datetime(2024, 1, 3, tzinfo=timezone.utc)

TEST_POLICIES = {
    GENERATION: RateLimitPolicy(name=GENERATION, window_seconds=60, max_requests=2),
}


def _make_facade(
    *,
    user_repo: Optional[FakeUserRepository] = None,
    ledger_repo: Optional[FakeUsageLedgerRepository] = None,
    rate_limiter=None,
    failure_policy: Optional[dict[str, FailurePolicy]] = None,
) -> tuple[EntitlementFacade, FakeUserRepository, FakeUsageLedgerRepository, InMemoryRateLimiter]:
    """Build an EntitlementFacade over a real meter, gate and limiter backed by fakes."""
    clock = FakeClock(NOW)
    ur = user_repo or FakeUserRepository()
    lr = ledger_repo or FakeUsageLedgerRepository()
    rl = rate_limiter or InMemoryRateLimiter(TEST_POLICIES, clock=clock)
    gate = FeatureGate()
    meter = UsageMeter(
        user_repo=ur, ledger_repo=lr, clock=clock, tz=timezone.utc, feature_gate=gate
    )
    facade = EntitlementFacade(
        meter=meter,
        feature_gate=gate,
        rate_limiter=rl,
        failure_policy=failure_policy,
    )
    return facade, ur, lr, rl


@pytest.fixture
def db():
    """AsyncMock database session; fakes ignore it."""
    return AsyncMock()
