"""Administrative endpoints, guarded by the X-Admin-Key header."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from penwise import schemas
from penwise.api import deps
from penwise.api.deps import Inject
from penwise.domains.billing.protocols import BillingServiceProtocol

router = APIRouter(dependencies=[Depends(deps.require_admin)])


@router.put("/users/{user_id}/plan", response_model=schemas.UserPlan)
async def set_user_plan(
    user_id: UUID,
    request: schemas.PlanOverrideRequest,
    db: AsyncSession = Depends(deps.get_db),
    billing: BillingServiceProtocol = Inject(BillingServiceProtocol),
) -> schemas.UserPlan:
    """Set a user's plan directly, bypassing the payment provider.

    The override lasts until the next subscription webhook for the user.
    """
    plan = await billing.set_plan(db, user_id=user_id, plan=request.plan)
    return schemas.UserPlan(id=user_id, plan=plan)
