"""User schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from penwise.domains.plans.types import Plan


class PlanOverrideRequest(BaseModel):
    """Admin request to set a user's plan directly."""

    plan: Plan

    @field_validator("plan", mode="before")
    @classmethod
    def normalize_plan(cls, v):
        """Accept plan names in any case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


class UserPlan(BaseModel):
    """A user's id and current plan."""

    id: UUID
    plan: Plan

    model_config = ConfigDict(from_attributes=True)
