"""Fake usage ledger repository for testing."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from penwise.domains.usage.repository import UNKNOWN_MODEL
from penwise.domains.usage.types import ResourceKind
from penwise.models import UsageLedgerEntry
from penwise.schemas.usage import ModelUsage


class FakeUsageLedgerRepository:
    """In-memory fake for UsageLedgerRepositoryProtocol."""

    def __init__(self, should_raise: Optional[Exception] = None) -> None:
        """Initialize with an empty ledger."""
        self.entries: list[UsageLedgerEntry] = []
        self._calls: list[tuple] = []
        self._should_raise = should_raise

    def seed(
        self,
        user_id: UUID,
        resource_kind: ResourceKind,
        created_at: datetime,
        count: int = 1,
        size: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """Append *count* entries directly."""
        for _ in range(count):
            self.entries.append(
                UsageLedgerEntry(
                    id=uuid4(),
                    user_id=user_id,
                    resource_kind=resource_kind.value,
                    created_at=created_at,
                    modified_at=created_at,
                    size=size,
                    details=details,
                )
            )

    def call_count(self, method: str) -> int:
        """Return the number of times a method was called."""
        return sum(1 for name, *_ in self._calls if name == method)

    def _maybe_raise(self) -> None:
        if self._should_raise:
            raise self._should_raise

    def _in_window(
        self,
        user_id: UUID,
        resource_kind: ResourceKind,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[UsageLedgerEntry]:
        return [
            e
            for e in self.entries
            if e.user_id == user_id
            and e.resource_kind == resource_kind.value
            and (since is None or e.created_at >= since)
            and (until is None or e.created_at < until)
        ]

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
        """Append an entry in memory."""
        self._calls.append(("create", db, user_id, resource_kind))
        self._maybe_raise()
        entry = UsageLedgerEntry(
            id=uuid4(),
            user_id=user_id,
            resource_kind=resource_kind.value,
            created_at=created_at,
            modified_at=created_at,
            cost=cost,
            size=size,
            details=details,
        )
        self.entries.append(entry)
        return entry

    async def count_since(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        resource_kind: ResourceKind,
        since: datetime,
        until: Optional[datetime] = None,
    ) -> int:
        """Count matching in-memory entries."""
        self._calls.append(("count_since", db, user_id, resource_kind, since))
        self._maybe_raise()
        return len(self._in_window(user_id, resource_kind, since, until))

    async def sum_size(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        resource_kind: ResourceKind,
    ) -> int:
        """Sum sizes of matching in-memory entries."""
        self._calls.append(("sum_size", db, user_id, resource_kind))
        self._maybe_raise()
        return sum(
            e.size or 0
            for e in self.entries
            if e.user_id == user_id and e.resource_kind == resource_kind.value
        )

    async def count_all(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        resource_kind: ResourceKind,
    ) -> int:
        """Count every matching in-memory entry."""
        self._calls.append(("count_all", db, user_id, resource_kind))
        self._maybe_raise()
        return len(self._in_window(user_id, resource_kind))

    async def usage_by_model(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        resource_kind: ResourceKind,
        since: datetime,
        until: Optional[datetime] = None,
    ) -> list[ModelUsage]:
        """Group matching in-memory entries by model."""
        self._calls.append(("usage_by_model", db, user_id, resource_kind, since))
        self._maybe_raise()
        grouped: dict[str, ModelUsage] = {}
        for e in self._in_window(user_id, resource_kind, since, until):
            details = e.details or {}
            model = details.get("model") or UNKNOWN_MODEL
            row = grouped.setdefault(model, ModelUsage(model=model, count=0, tokens=0))
            row.count += 1
            row.tokens += int(details.get("tokens") or 0)
        return [grouped[model] for model in sorted(grouped)]
