"""Tests for subscription schemas."""

from datetime import datetime, timezone

from penwise.domains.plans.types import Plan
from penwise.schemas.subscription import (
    ENTITLING_STATUSES,
    SubscriptionPatch,
    SubscriptionStatus,
)


class TestSubscriptionPatch:
    def test_empty_patch_writes_nothing(self):
        assert SubscriptionPatch().to_update_dict() == {}

    def test_explicit_none_clears_column(self):
        assert SubscriptionPatch(canceled_at=None).to_update_dict() == {"canceled_at": None}

    def test_enums_become_column_values(self):
        when = datetime(2024, 2, 1, tzinfo=timezone.utc)
        patch = SubscriptionPatch(status=SubscriptionStatus.PAST_DUE, current_period_end=when)

        assert patch.to_update_dict() == {"status": "PAST_DUE", "current_period_end": when}

    def test_assigned_plan_is_included(self):
        patch = SubscriptionPatch(status=SubscriptionStatus.ACTIVE)
        patch.plan = Plan.AGENCY

        assert patch.to_update_dict() == {"status": "ACTIVE", "plan": "AGENCY"}


def test_entitling_statuses():
    assert SubscriptionStatus.PAST_DUE in ENTITLING_STATUSES
    assert SubscriptionStatus.CANCELED not in ENTITLING_STATUSES
    assert SubscriptionStatus.INCOMPLETE not in ENTITLING_STATUSES
