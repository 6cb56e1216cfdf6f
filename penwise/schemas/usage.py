"""Usage and entitlement read schemas."""

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from penwise.domains.plans.types import ExportFormat, Plan

Unlimited = Literal["unlimited"]


class UsageCheck(BaseModel):
    """Point-in-time quota answer for one metered resource."""

    allowed: bool
    current: int
    limit: Union[int, Unlimited]
    remaining: Union[int, Unlimited]
    percentage: int = Field(..., ge=0, le=100)

    @property
    def is_unlimited(self) -> bool:
        """Whether the plan puts no ceiling on this resource."""
        return self.limit == "unlimited"


class PlanLimitsView(BaseModel):
    """Plan limits as shown on the dashboard."""

    ai_generations_per_month: int
    documents_per_month: int
    storage_bytes_limit: int
    allowed_export_formats: list[ExportFormat]
    collaborator_limit: int
    brand_voice_limit: int


class UsageStats(BaseModel):
    """Dashboard summary for one user."""

    plan: Plan
    limits: PlanLimitsView
    ai_generations: UsageCheck
    documents: UsageCheck
    storage: UsageCheck
    allowed_export_formats: list[ExportFormat]
    features: dict[str, bool]


class FeatureAccess(BaseModel):
    """Answer to "may this plan use this feature"."""

    feature: str
    has_access: bool
    user_plan: Plan
    required_plans: list[str]
    needs_upgrade: bool


class ExportAccess(BaseModel):
    """Answer to "may this plan export in this format"."""

    format: ExportFormat
    allowed: bool
    user_plan: Plan
    allowed_formats: list[ExportFormat]
    required_plans: Optional[list[Plan]] = None


class ModelUsage(BaseModel):
    """Generation count and summed tokens for one model."""

    model: str
    count: int
    tokens: int


class GenerationUsage(BaseModel):
    """AI generation usage: this month against the quota, all-time total, per model."""

    plan: Plan
    usage: UsageCheck
    total: int
    by_model: list[ModelUsage]
