"""Usage ledger: one committed row per completed metered action.

Callers record after the action succeeded, never before. Two requests that
both passed the meter may both record, so a user can end the month slightly
over quota; the meter takes no lock.
"""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from penwise.core.logging import logger
from penwise.core.protocols.clock import Clock
from penwise.db.unit_of_work import UnitOfWork
from penwise.domains.usage.protocols import UsageLedgerProtocol
from penwise.domains.usage.repository import UsageLedgerRepositoryProtocol
from penwise.domains.usage.types import ResourceKind
from penwise.models import UsageLedgerEntry


class UsageLedger(UsageLedgerProtocol):
    """Appends ledger entries stamped by the injected clock."""

    def __init__(self, ledger_repo: UsageLedgerRepositoryProtocol, clock: Clock) -> None:
        """Initialize with the repository and clock."""
        self._ledger_repo = ledger_repo
        self._clock = clock

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
        """Append one entry and commit it."""
        async with UnitOfWork(db) as uow:
            entry = await self._ledger_repo.create(
                db,
                user_id=user_id,
                resource_kind=resource_kind,
                created_at=self._clock.now(),
                cost=cost,
                size=size,
                details=details,
            )
            await uow.commit()

        logger.debug(f"Recorded {resource_kind.value} usage for user {user_id}")
        return entry
