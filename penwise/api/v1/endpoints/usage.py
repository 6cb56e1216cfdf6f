"""API endpoints for usage statistics and entitlement checks."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from penwise import schemas
from penwise.api import deps
from penwise.api.context import ApiContext
from penwise.api.deps import Inject
from penwise.domains.entitlements.feature_gate import FeatureGate
from penwise.domains.plans.types import ExportFormat
from penwise.domains.usage.protocols import UsageMeterProtocol

router = APIRouter()


@router.get("", response_model=schemas.UsageStats)
async def get_usage_stats(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    meter: UsageMeterProtocol = Inject(UsageMeterProtocol),
) -> schemas.UsageStats:
    """Get the user's plan, limits, this month's usage and feature flags."""
    return await meter.get_stats(db, ctx.user_id, plan=ctx.plan)


@router.get("/check/{feature}", response_model=schemas.FeatureAccess)
async def check_feature(
    feature: str,
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    meter: UsageMeterProtocol = Inject(UsageMeterProtocol),
    feature_gate: FeatureGate = Inject(FeatureGate),
) -> schemas.FeatureAccess:
    """Check whether the user's plan includes *feature*.

    Unknown feature names are open to every plan.
    """
    plan = await meter.resolve_plan(db, ctx.user_id, ctx.plan)
    return feature_gate.check_feature_access(plan, feature)


@router.get(
    "/export/{export_format}",
    response_model=schemas.ExportAccess,
    responses={403: {"model": schemas.ExportAccess}},
)
async def check_export(
    export_format: str,
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    meter: UsageMeterProtocol = Inject(UsageMeterProtocol),
    feature_gate: FeatureGate = Inject(FeatureGate),
):
    """Check whether the user's plan may export in *export_format*.

    Denials answer 403 with the formats the plan does allow.
    """
    try:
        fmt = ExportFormat(export_format.strip().upper())
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unsupported export format: {export_format}")

    plan = await meter.resolve_plan(db, ctx.user_id, ctx.plan)
    access = feature_gate.check_export(plan, fmt)
    if not access.allowed:
        ctx.logger.info(f"Export to {fmt.value} denied on {plan.value} plan")
        return JSONResponse(
            status_code=403,
            content={
                "detail": f"{fmt.value} export is not available on your {plan.value} plan.",
                **access.model_dump(mode="json"),
            },
        )
    return access
