"""Usage domain test fixtures and helpers.

Follows the pattern from domains/billing/tests/.
"""

from datetime import datetime, timezone, tzinfo
from typing import Optional
from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from penwise.adapters.clock.fake import FakeClock
from penwise.domains.usage.fakes.repository import FakeUsageLedgerRepository
from penwise.domains.usage.ledger import UsageLedger
from penwise.domains.usage.meter import UsageMeter
from penwise.domains.users.fakes.repository import FakeUserRepository

DEFAULT_USER_ID = UUID("00000000-0000-0000-0000-000000000001")

# Mid-January; the current usage month starts 2024-01-01 00:00 UTC.
NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
THIS_MONTH = datetime(2024, 1, 3, 9, 30, tzinfo=timezone.utc)
LAST_MONTH = datetime(2023, 12, 31, 23, 59, tzinfo=timezone.utc)


def _make_meter(
    *,
    user_repo: Optional[FakeUserRepository] = None,
    ledger_repo: Optional[FakeUsageLedgerRepository] = None,
    clock: Optional[FakeClock] = None,
    tz: tzinfo = timezone.utc,
) -> tuple[UsageMeter, FakeUserRepository, FakeUsageLedgerRepository, FakeClock]:
    """Build a UsageMeter wired to fakes. Returns (meter, *fakes)."""
    ur = user_repo or FakeUserRepository()
    lr = ledger_repo or FakeUsageLedgerRepository()
    ck = clock or FakeClock(NOW)
    meter = UsageMeter(user_repo=ur, ledger_repo=lr, clock=ck, tz=tz)
    return meter, ur, lr, ck


def _make_ledger(
    *,
    ledger_repo: Optional[FakeUsageLedgerRepository] = None,
    clock: Optional[FakeClock] = None,
) -> tuple[UsageLedger, FakeUsageLedgerRepository, FakeClock]:
    """Build a UsageLedger wired to fakes. Returns (ledger, *fakes)."""
    lr = ledger_repo or FakeUsageLedgerRepository()
    ck = clock or FakeClock(NOW)
    return UsageLedger(ledger_repo=lr, clock=ck), lr, ck


@pytest.fixture
def db():
    """AsyncMock database session; fakes ignore it."""
    return AsyncMock()
