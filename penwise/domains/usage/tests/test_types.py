"""Unit tests for the pure usage helpers."""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from penwise.domains.plans.types import UNLIMITED
from penwise.domains.usage.types import (
    build_usage_check,
    resolve_timezone,
    round_half_up,
    start_of_month,
    start_of_next_month,
    usage_percentage,
)


@dataclass
class CheckCase:
    label: str
    current: int
    limit: int
    requested: int
    expected_allowed: bool
    expected_remaining: int
    expected_percentage: int


CHECK_CASES = [
    CheckCase("empty", 0, 10, 0, True, 10, 0),
    CheckCase("one_left", 9, 10, 0, True, 1, 90),
    CheckCase("at_limit", 10, 10, 0, False, 0, 100),
    CheckCase("over_limit_clamps", 12, 10, 0, False, 0, 100),
    CheckCase("zero_limit", 0, 0, 0, False, 0, 100),
    CheckCase("requested_fits_exactly", 90, 100, 10, True, 10, 90),
    CheckCase("requested_overflows", 90, 100, 11, False, 10, 90),
    CheckCase("half_rounds_up", 1, 8, 0, True, 7, 13),
    CheckCase("two_thirds", 2, 3, 0, True, 1, 67),
]


@pytest.mark.parametrize("case", CHECK_CASES, ids=lambda c: c.label)
def test_build_usage_check(case: CheckCase):
    check = build_usage_check(case.current, case.limit, requested=case.requested)

    assert check.allowed is case.expected_allowed
    assert check.current == case.current
    assert check.limit == case.limit
    assert check.remaining == case.expected_remaining
    assert check.percentage == case.expected_percentage
    assert check.is_unlimited is False


def test_unlimited_limit_short_circuits():
    check = build_usage_check(10_000, UNLIMITED)

    assert check.allowed is True
    assert check.limit == "unlimited"
    assert check.remaining == "unlimited"
    assert check.current == 0
    assert check.percentage == 0
    assert check.is_unlimited is True


class TestRounding:
    def test_half_rounds_away_from_zero(self):
        assert round_half_up(Decimal("12.5")) == 13
        assert round_half_up(Decimal("12.49")) == 12

    def test_percentage_is_clamped(self):
        assert usage_percentage(0, 5) == 0
        assert usage_percentage(50, 5) == 100


class TestStartOfMonth:
    def test_utc(self):
        now = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

        assert start_of_month(now, timezone.utc) == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_local_month_differs_from_utc_month(self):
        tz = ZoneInfo("America/New_York")
        # 22:00 on Feb 29 in New York.
        now = datetime(2024, 3, 1, 3, 0, tzinfo=timezone.utc)

        start = start_of_month(now, tz)

        assert start == datetime(2024, 2, 1, tzinfo=tz)
        assert start.astimezone(timezone.utc) == datetime(2024, 2, 1, 5, 0, tzinfo=timezone.utc)


class TestStartOfNextMonth:
    def test_mid_year(self):
        now = datetime(2024, 1, 31, 23, 59, 59, tzinfo=timezone.utc)

        expected = datetime(2024, 2, 1, tzinfo=timezone.utc)
        assert start_of_next_month(now, timezone.utc) == expected

    def test_december_rolls_into_next_year(self):
        now = datetime(2023, 12, 15, tzinfo=timezone.utc)

        expected = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert start_of_next_month(now, timezone.utc) == expected

    def test_follows_local_offset(self):
        tz = ZoneInfo("America/New_York")
        now = datetime(2024, 3, 1, 3, 0, tzinfo=timezone.utc)

        # DST has started by April 1, so midnight is 04:00 UTC.
        expected = datetime(2024, 4, 1, 4, 0, tzinfo=timezone.utc)
        assert start_of_next_month(now, tz).astimezone(timezone.utc) == expected


class TestResolveTimezone:
    def test_utc_is_builtin(self):
        assert resolve_timezone("UTC") is timezone.utc
        assert resolve_timezone("utc") is timezone.utc

    def test_iana_name(self):
        assert resolve_timezone("Europe/Amsterdam") == ZoneInfo("Europe/Amsterdam")
