"""Usage ledger repository and protocol.

The ledger is append-only: there is deliberately no update or delete here.
"""

from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from penwise.domains.usage.types import ResourceKind
from penwise.models import UsageLedgerEntry
from penwise.schemas.usage import ModelUsage

UNKNOWN_MODEL = "unknown"


@runtime_checkable
class UsageLedgerRepositoryProtocol(Protocol):
    """Append and aggregate ledger entries."""

    async def create(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        resource_kind: ResourceKind,
        created_at: datetime,
        cost: Optional[float] = None,
        size: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> UsageLedgerEntry:
        """Append one entry. Flushed, not committed."""
        ...

    async def count_since(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        resource_kind: ResourceKind,
        since: datetime,
        until: Optional[datetime] = None,
    ) -> int:
        """Count entries of *resource_kind* in ``[since, until)``; no upper bound when None."""
        ...

    async def sum_size(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        resource_kind: ResourceKind,
    ) -> int:
        """Sum ``size`` over every entry of *resource_kind* (all time)."""
        ...

    async def count_all(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        resource_kind: ResourceKind,
    ) -> int:
        """Count every entry of *resource_kind* (all time)."""
        ...

    async def usage_by_model(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        resource_kind: ResourceKind,
        since: datetime,
        until: Optional[datetime] = None,
    ) -> list[ModelUsage]:
        """Group entries in ``[since, until)`` by ``details.model``, summing ``details.tokens``."""
        ...


class UsageLedgerRepository(UsageLedgerRepositoryProtocol):
    """SQLAlchemy implementation of UsageLedgerRepositoryProtocol."""

    async def create(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        resource_kind: ResourceKind,
        created_at: datetime,
        cost: Optional[float] = None,
        size: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> UsageLedgerEntry:
        """Append one entry. Flushed, not committed."""
        entry = UsageLedgerEntry(
            user_id=user_id,
            resource_kind=resource_kind.value,
            created_at=created_at,
            modified_at=created_at,
            cost=cost,
            size=size,
            details=details,
        )
        db.add(entry)
        await db.flush()
        return entry

    @staticmethod
    def _window(
        user_id: UUID,
        resource_kind: ResourceKind,
        since: datetime,
        until: Optional[datetime],
    ) -> list:
        clauses = [
            UsageLedgerEntry.user_id == user_id,
            UsageLedgerEntry.resource_kind == resource_kind.value,
            UsageLedgerEntry.created_at >= since,
        ]
        if until is not None:
            clauses.append(UsageLedgerEntry.created_at < until)
        return clauses

    async def count_since(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        resource_kind: ResourceKind,
        since: datetime,
        until: Optional[datetime] = None,
    ) -> int:
        """Count entries of *resource_kind* in ``[since, until)``."""
        result = await db.execute(
            select(func.count(UsageLedgerEntry.id)).where(
                *self._window(user_id, resource_kind, since, until)
            )
        )
        return int(result.scalar_one() or 0)

    async def sum_size(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        resource_kind: ResourceKind,
    ) -> int:
        """Sum ``size`` over every entry of *resource_kind* (all time)."""
        result = await db.execute(
            select(func.coalesce(func.sum(UsageLedgerEntry.size), 0)).where(
                UsageLedgerEntry.user_id == user_id,
                UsageLedgerEntry.resource_kind == resource_kind.value,
            )
        )
        return int(result.scalar_one() or 0)

    async def count_all(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        resource_kind: ResourceKind,
    ) -> int:
        """Count every entry of *resource_kind* (all time)."""
        result = await db.execute(
            select(func.count(UsageLedgerEntry.id)).where(
                UsageLedgerEntry.user_id == user_id,
                UsageLedgerEntry.resource_kind == resource_kind.value,
            )
        )
        return int(result.scalar_one() or 0)

    async def usage_by_model(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        resource_kind: ResourceKind,
        since: datetime,
        until: Optional[datetime] = None,
    ) -> list[ModelUsage]:
        """Group entries in the window by ``details.model``, summing ``details.tokens``."""
        # Extract the JSON fields in a subquery so GROUP BY sees a plain column.
        rows = (
            select(
                UsageLedgerEntry.details["model"].as_string().label("model"),
                UsageLedgerEntry.details["tokens"].as_integer().label("tokens"),
            )
            .where(*self._window(user_id, resource_kind, since, until))
            .subquery()
        )
        result = await db.execute(
            select(
                rows.c.model,
                func.count().label("entries"),
                func.coalesce(func.sum(rows.c.tokens), 0).label("tokens"),
            )
            .group_by(rows.c.model)
            .order_by(rows.c.model)
        )
        return [
            ModelUsage(model=row.model or UNKNOWN_MODEL, count=row.entries, tokens=row.tokens)
            for row in result.all()
        ]
