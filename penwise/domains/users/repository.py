"""User repository and protocol."""

from typing import Optional, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from penwise.domains.plans.types import Plan
from penwise.models import User


@runtime_checkable
class UserRepositoryProtocol(Protocol):
    """Access to user rows. Writes are flushed, never committed."""

    async def get(self, db: AsyncSession, *, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        ...

    async def set_plan(self, db: AsyncSession, *, user_id: UUID, plan: Plan) -> Optional[User]:
        """Set the cached plan. Returns None when the user does not exist."""
        ...


class UserRepository(UserRepositoryProtocol):
    """SQLAlchemy implementation of UserRepositoryProtocol."""

    async def get(self, db: AsyncSession, *, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def set_plan(self, db: AsyncSession, *, user_id: UUID, plan: Plan) -> Optional[User]:
        """Set the cached plan. Returns None when the user does not exist."""
        result = await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(plan=plan.value)
            .returning(User)
            .execution_options(synchronize_session=False)
        )
        user = result.scalar_one_or_none()
        await db.flush()
        return user
