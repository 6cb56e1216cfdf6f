"""Usage domain protocols, split into read (meter) and write (ledger) concerns.

UsageMeter: answers "may this user consume one more unit" for the current
calendar month. Never writes.
UsageLedger: appends one entry per completed metered action.
"""

from typing import Any, Optional, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from penwise.domains.plans.types import Plan
from penwise.domains.usage.types import ResourceKind
from penwise.models import UsageLedgerEntry
from penwise.schemas.usage import GenerationUsage, UsageCheck, UsageStats


@runtime_checkable
class UsageMeterProtocol(Protocol):
    """Read-only quota evaluation."""

    async def resolve_plan(
        self, db: AsyncSession, user_id: UUID, plan: Optional[Plan] = None
    ) -> Plan:
        """Return *plan* when given, else the user's cached plan.

        Raises UserNotFoundError when the plan must be looked up and the
        user does not exist.
        """
        ...

    async def check(
        self,
        db: AsyncSession,
        user_id: UUID,
        resource_kind: ResourceKind,
        plan: Optional[Plan] = None,
    ) -> UsageCheck:
        """Evaluate the calendar-month quota for *resource_kind*."""
        ...

    async def check_storage(
        self,
        db: AsyncSession,
        user_id: UUID,
        additional_bytes: int = 0,
        plan: Optional[Plan] = None,
    ) -> UsageCheck:
        """Evaluate the all-time storage quota."""
        ...

    async def get_stats(
        self, db: AsyncSession, user_id: UUID, plan: Optional[Plan] = None
    ) -> UsageStats:
        """Build the dashboard usage summary."""
        ...

    async def get_generation_usage(
        self, db: AsyncSession, user_id: UUID, plan: Optional[Plan] = None
    ) -> GenerationUsage:
        """AI generation usage: this month against the quota, all-time total, per model."""
        ...


@runtime_checkable
class UsageLedgerProtocol(Protocol):
    """Append-only record of completed metered actions."""

    async def record(
        self,
        db: AsyncSession,
        user_id: UUID,
        resource_kind: ResourceKind,
        *,
        cost: Optional[float] = None,
        size: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> UsageLedgerEntry:
        """Append one entry stamped with the current time and commit it."""
        ...
