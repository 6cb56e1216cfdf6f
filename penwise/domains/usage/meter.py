"""Usage meter: read-only quota evaluation over the usage ledger.

Monthly quotas count ledger entries from midnight on the first day of the
current calendar month in the configured timezone. Storage is the all-time
sum of document sizes. The meter never writes and takes no lock.
"""

from datetime import datetime, tzinfo
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from penwise.core.protocols.clock import Clock
from penwise.domains.entitlements.feature_gate import FeatureGate
from penwise.domains.plans.types import Plan, get_plan_limits, is_unlimited, sorted_formats
from penwise.domains.usage.exceptions import UserNotFoundError
from penwise.domains.usage.protocols import UsageMeterProtocol
from penwise.domains.usage.repository import UsageLedgerRepositoryProtocol
from penwise.domains.usage.types import (
    ResourceKind,
    build_usage_check,
    monthly_limit,
    start_of_month,
    start_of_next_month,
    unlimited_check,
)
from penwise.domains.users.repository import UserRepositoryProtocol
from penwise.schemas.usage import GenerationUsage, PlanLimitsView, UsageCheck, UsageStats


class UsageMeter(UsageMeterProtocol):
    """Calendar-month quota checks and the dashboard summary."""

    def __init__(
        self,
        user_repo: UserRepositoryProtocol,
        ledger_repo: UsageLedgerRepositoryProtocol,
        clock: Clock,
        tz: tzinfo,
        feature_gate: Optional[FeatureGate] = None,
    ) -> None:
        """Initialize with repositories, clock and the timezone that bounds months."""
        self._user_repo = user_repo
        self._ledger_repo = ledger_repo
        self._clock = clock
        self._tz = tz
        self._feature_gate = feature_gate or FeatureGate()

    async def resolve_plan(
        self, db: AsyncSession, user_id: UUID, plan: Optional[Plan] = None
    ) -> Plan:
        """Return *plan* when given, else the user's cached plan."""
        if plan is not None:
            return plan
        user = await self._user_repo.get(db, user_id=user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return Plan(user.plan)

    def _month_window(self) -> tuple[datetime, datetime]:
        now = self._clock.now()
        return start_of_month(now, self._tz), start_of_next_month(now, self._tz)

    async def _count_this_month(
        self, db: AsyncSession, user_id: UUID, resource_kind: ResourceKind
    ) -> int:
        since, until = self._month_window()
        return await self._ledger_repo.count_since(
            db, user_id=user_id, resource_kind=resource_kind, since=since, until=until
        )

    async def check(
        self,
        db: AsyncSession,
        user_id: UUID,
        resource_kind: ResourceKind,
        plan: Optional[Plan] = None,
    ) -> UsageCheck:
        """Evaluate the calendar-month quota for *resource_kind*."""
        resolved = await self.resolve_plan(db, user_id, plan)
        limit = monthly_limit(get_plan_limits(resolved), resource_kind)
        if is_unlimited(limit):
            return unlimited_check()

        current = await self._count_this_month(db, user_id, resource_kind)
        return build_usage_check(current, limit)

    async def check_storage(
        self,
        db: AsyncSession,
        user_id: UUID,
        additional_bytes: int = 0,
        plan: Optional[Plan] = None,
    ) -> UsageCheck:
        """Evaluate the all-time storage quota.

        Document sizes are raw text lengths, an approximation of bytes.
        """
        resolved = await self.resolve_plan(db, user_id, plan)
        limit = get_plan_limits(resolved).storage_bytes_limit
        if is_unlimited(limit):
            return unlimited_check()

        used = await self._ledger_repo.sum_size(
            db, user_id=user_id, resource_kind=ResourceKind.DOCUMENT_CREATE
        )
        return build_usage_check(used, limit, requested=max(0, additional_bytes))

    async def get_stats(
        self, db: AsyncSession, user_id: UUID, plan: Optional[Plan] = None
    ) -> UsageStats:
        """Build the dashboard usage summary."""
        resolved = await self.resolve_plan(db, user_id, plan)
        limits = get_plan_limits(resolved)
        formats = sorted_formats(limits.allowed_export_formats)

        return UsageStats(
            plan=resolved,
            limits=PlanLimitsView(
                ai_generations_per_month=limits.ai_generations_per_month,
                documents_per_month=limits.documents_per_month,
                storage_bytes_limit=limits.storage_bytes_limit,
                allowed_export_formats=formats,
                collaborator_limit=limits.collaborator_limit,
                brand_voice_limit=limits.brand_voice_limit,
            ),
            ai_generations=await self.check(db, user_id, ResourceKind.GENERATION, resolved),
            documents=await self.check(db, user_id, ResourceKind.DOCUMENT_CREATE, resolved),
            storage=await self.check_storage(db, user_id, plan=resolved),
            allowed_export_formats=formats,
            features=self._feature_gate.feature_flags(resolved),
        )

    async def get_generation_usage(
        self, db: AsyncSession, user_id: UUID, plan: Optional[Plan] = None
    ) -> GenerationUsage:
        """AI generation usage: this month against the quota, all-time total, per model."""
        resolved = await self.resolve_plan(db, user_id, plan)
        limit = get_plan_limits(resolved).ai_generations_per_month
        kind = ResourceKind.GENERATION

        monthly = await self._count_this_month(db, user_id, kind)
        since, until = self._month_window()
        by_model = await self._ledger_repo.usage_by_model(
            db, user_id=user_id, resource_kind=kind, since=since, until=until
        )
        total = await self._ledger_repo.count_all(db, user_id=user_id, resource_kind=kind)

        if is_unlimited(limit):
            usage = unlimited_check(monthly)
        else:
            usage = build_usage_check(monthly, limit)
        return GenerationUsage(plan=resolved, usage=usage, total=total, by_model=by_model)
