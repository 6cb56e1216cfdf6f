"""Entitlement decision types and the enforcement failure policy."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from penwise.core.exceptions import RateLimitExceededException
from penwise.domains.entitlements.exceptions import FeatureNotEntitledError
from penwise.domains.plans.types import Plan
from penwise.domains.usage.exceptions import UsageLimitExceededError
from penwise.schemas.usage import UsageCheck

STORAGE = "storage"


class EntitlementReason(str, Enum):
    """Why a decision came out the way it did."""

    ALLOWED = "allowed"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    FEATURE_NOT_ENTITLED = "feature_not_entitled"
    USAGE_UNAVAILABLE = "usage_unavailable"


class FailurePolicy(str, Enum):
    """What to do when the usage meter itself fails."""

    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"


# Keyed by ResourceKind value, plus "storage" for the storage check.
ENFORCEMENT_FAILURE_POLICY: dict[str, FailurePolicy] = {
    "generation": FailurePolicy.FAIL_CLOSED,
    "document_create": FailurePolicy.FAIL_OPEN,
    STORAGE: FailurePolicy.FAIL_OPEN,
}


@dataclass
class EntitlementDecision:
    """Outcome of one entitlement evaluation."""

    allowed: bool
    reason: EntitlementReason
    plan: Optional[Plan] = None
    resource_kind: Optional[str] = None
    usage: Optional[UsageCheck] = None
    feature: Optional[str] = None
    required_plans: list[str] = field(default_factory=list)
    retry_after: Optional[float] = None
    rate_limit_error: Optional[RateLimitExceededException] = field(default=None, repr=False)

    def raise_for_denial(self) -> None:
        """Raise the matching domain error when the decision is a denial."""
        if self.allowed:
            return
        if self.reason == EntitlementReason.RATE_LIMITED and self.rate_limit_error is not None:
            raise self.rate_limit_error
        if self.reason == EntitlementReason.QUOTA_EXCEEDED and self.usage is not None:
            limit = self.usage.limit if isinstance(self.usage.limit, int) else 0
            raise UsageLimitExceededError(
                resource_kind=self.resource_kind or "",
                limit=limit,
                current_usage=self.usage.current,
                message=_quota_message(self.resource_kind, limit),
            )
        if self.reason == EntitlementReason.FEATURE_NOT_ENTITLED:
            raise FeatureNotEntitledError(
                feature=self.feature or "",
                user_plan=self.plan.value if self.plan else "",
                required_plans=self.required_plans,
            )
        raise RuntimeError(f"Unhandled entitlement denial: {self.reason}")


def _quota_message(resource_kind: Optional[str], limit: int) -> str:
    if resource_kind == "generation":
        return (
            f"You have reached your monthly limit of {limit} AI generations. "
            "Please upgrade your plan to continue."
        )
    if resource_kind == "document_create":
        return (
            f"You have reached your monthly limit of {limit} documents. "
            "Please upgrade your plan to create more."
        )
    return "You have reached your storage limit. Please upgrade your plan or delete some documents."
