"""Unit of work: one transaction around a group of repository writes.

Usage::

    async with UnitOfWork(db) as uow:
        await repo.upsert(db, ...)
        await user_repo.set_plan(db, ...)
        await uow.commit()

Leaving the block without ``commit()`` (or through an exception) rolls back.
"""

from types import TracebackType
from typing import Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession


class UnitOfWork:
    """Async context manager that commits explicitly and rolls back otherwise."""

    def __init__(self, session: AsyncSession) -> None:
        """Wrap *session*."""
        self.session = session
        self._committed = False

    async def __aenter__(self) -> "UnitOfWork":
        self._committed = False
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        if exc_type is not None or not self._committed:
            await self.rollback()

    async def commit(self) -> None:
        """Commit the transaction."""
        await self.session.commit()
        self._committed = True

    async def rollback(self) -> None:
        """Roll back the transaction."""
        await self.session.rollback()
