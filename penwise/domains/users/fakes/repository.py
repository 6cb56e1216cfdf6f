"""Fake user repository for testing."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from penwise.domains.plans.types import Plan
from penwise.models import User


class FakeUserRepository:
    """In-memory fake for UserRepositoryProtocol."""

    def __init__(self, should_raise: Optional[Exception] = None) -> None:
        """Initialize with empty store and call log."""
        self._store: dict[UUID, User] = {}
        self._calls: list[tuple] = []
        self._should_raise = should_raise

    def seed(self, user_id: Optional[UUID] = None, plan: Plan = Plan.FREE) -> User:
        """Add a user with *plan* and return it."""
        now = datetime.now(timezone.utc)
        user = User(id=user_id or uuid4(), plan=plan.value, created_at=now, modified_at=now)
        self._store[user.id] = user
        return user

    def call_count(self, method: str) -> int:
        """Return the number of times a method was called."""
        return sum(1 for name, *_ in self._calls if name == method)

    async def get(self, db: AsyncSession, *, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        self._calls.append(("get", db, user_id))
        if self._should_raise:
            raise self._should_raise
        return self._store.get(user_id)

    async def set_plan(self, db: AsyncSession, *, user_id: UUID, plan: Plan) -> Optional[User]:
        """Set the cached plan in memory."""
        self._calls.append(("set_plan", db, user_id, plan))
        user = self._store.get(user_id)
        if user is None:
            return None
        user.plan = plan.value
        return user
