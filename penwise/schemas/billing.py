"""Billing API schemas."""

from pydantic import BaseModel, Field, field_validator

from penwise.core.config.enums import BillingPeriod
from penwise.domains.plans.types import Plan, is_paid_plan


class CheckoutSessionRequest(BaseModel):
    """Request to start a checkout for a paid plan."""

    plan: Plan = Field(..., description="Target plan: PRO, AGENCY or ENTERPRISE")
    billing_period: BillingPeriod = Field(
        default=BillingPeriod.MONTHLY, description="monthly or yearly"
    )

    @field_validator("plan", mode="before")
    @classmethod
    def normalize_plan(cls, v):
        """Accept plan names in any case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("plan")
    @classmethod
    def check_paid_plan(cls, v: Plan) -> Plan:
        """Reject plans that cannot be bought."""
        if not is_paid_plan(v):
            raise ValueError("Invalid plan. Must be PRO, AGENCY, or ENTERPRISE")
        return v


class CheckoutSessionResponse(BaseModel):
    """Checkout session created at the payment provider."""

    session_id: str
    url: str


class PortalSessionResponse(BaseModel):
    """Customer portal session URL."""

    url: str


class CancelSubscriptionResponse(BaseModel):
    """Acknowledgement of a cancellation request."""

    message: str
    cancel_at_period_end: bool = True
