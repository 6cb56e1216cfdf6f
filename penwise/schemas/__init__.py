"""Schemas for the application."""

from .billing import (
    CancelSubscriptionResponse,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    PortalSessionResponse,
)
from .generation import GenerateRequest, GenerateResponse
from .rate_limit import RateLimitResult
from .subscription import (
    ENTITLING_STATUSES,
    Subscription,
    SubscriptionPatch,
    SubscriptionResponse,
    SubscriptionStatus,
    SubscriptionUpsert,
)
from .usage import (
    ExportAccess,
    FeatureAccess,
    GenerationUsage,
    ModelUsage,
    PlanLimitsView,
    UsageCheck,
    UsageStats,
)
from .user import PlanOverrideRequest, UserPlan

__all__ = [
    "CancelSubscriptionResponse",
    "CheckoutSessionRequest",
    "CheckoutSessionResponse",
    "ENTITLING_STATUSES",
    "ExportAccess",
    "FeatureAccess",
    "GenerateRequest",
    "GenerateResponse",
    "GenerationUsage",
    "ModelUsage",
    "PlanLimitsView",
    "PlanOverrideRequest",
    "PortalSessionResponse",
    "RateLimitResult",
    "Subscription",
    "SubscriptionPatch",
    "SubscriptionResponse",
    "SubscriptionStatus",
    "SubscriptionUpsert",
    "UsageCheck",
    "UsageStats",
    "UserPlan",
]
