"""Subscription schemas."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from penwise.domains.plans.types import Plan


class SubscriptionStatus(str, Enum):
    """Local subscription status."""

    ACTIVE = "ACTIVE"
    PAST_DUE = "PAST_DUE"
    CANCELED = "CANCELED"
    INCOMPLETE = "INCOMPLETE"
    TRIALING = "TRIALING"


# Statuses that still entitle the user to the subscription's plan.
ENTITLING_STATUSES: frozenset[SubscriptionStatus] = frozenset(
    {SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING, SubscriptionStatus.PAST_DUE}
)


class SubscriptionUpsert(BaseModel):
    """Full record written when a checkout completes.

    Keyed on ``external_customer_id``; a second upsert for the same customer
    overwrites every field below.
    """

    user_id: UUID
    plan: Plan
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    external_customer_id: str
    external_subscription_id: Optional[str] = None
    current_period_end: Optional[datetime] = None
    canceled_at: Optional[datetime] = None


class SubscriptionPatch(BaseModel):
    """Partial update. Only fields that were explicitly set are written.

    ``SubscriptionPatch(canceled_at=None)`` clears the column, while
    ``SubscriptionPatch()`` leaves it alone.
    """

    plan: Optional[Plan] = None
    status: Optional[SubscriptionStatus] = None
    external_subscription_id: Optional[str] = None
    current_period_end: Optional[datetime] = None
    canceled_at: Optional[datetime] = None

    def to_update_dict(self) -> dict:
        """Return the set fields as column values."""
        values = self.model_dump(exclude_unset=True)
        for key in ("plan", "status"):
            if values.get(key) is not None:
                values[key] = values[key].value
        return values


class Subscription(BaseModel):
    """Subscription returned to clients."""

    id: UUID
    user_id: UUID
    plan: Plan
    status: SubscriptionStatus
    external_customer_id: str
    external_subscription_id: Optional[str] = None
    current_period_end: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SubscriptionResponse(BaseModel):
    """Envelope for the current subscription; ``subscription`` is null when there is none."""

    subscription: Optional[Subscription] = Field(
        default=None, description="Most recent subscription for the user, if any"
    )
