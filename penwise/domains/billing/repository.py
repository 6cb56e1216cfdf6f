"""Subscription repository and protocol.

Subscriptions are keyed by the payment provider's customer id: at most one
row per ``external_customer_id``, written with INSERT .. ON CONFLICT.
Writes are flushed, never committed; the caller owns the transaction.
"""

from typing import Optional, Protocol, runtime_checkable
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from penwise.models import Subscription
from penwise.schemas.subscription import (
    ENTITLING_STATUSES,
    SubscriptionPatch,
    SubscriptionUpsert,
)


@runtime_checkable
class SubscriptionRepositoryProtocol(Protocol):
    """Access to subscription records."""

    async def get_by_customer_id(
        self, db: AsyncSession, *, external_customer_id: str
    ) -> Optional[Subscription]:
        """Get the subscription for a payment-provider customer."""
        ...

    async def get_latest_for_user(
        self, db: AsyncSession, *, user_id: UUID
    ) -> Optional[Subscription]:
        """Get the user's most recently created subscription, any status."""
        ...

    async def get_latest_entitling_for_user(
        self, db: AsyncSession, *, user_id: UUID
    ) -> Optional[Subscription]:
        """Get the user's most recent ACTIVE, TRIALING or PAST_DUE subscription."""
        ...

    async def upsert(self, db: AsyncSession, *, obj_in: SubscriptionUpsert) -> Subscription:
        """Insert or fully overwrite the row for ``obj_in.external_customer_id``."""
        ...

    async def update(
        self, db: AsyncSession, *, db_obj: Subscription, obj_in: SubscriptionPatch
    ) -> Subscription:
        """Write only the fields set on *obj_in*."""
        ...


class SubscriptionRepository(SubscriptionRepositoryProtocol):
    """SQLAlchemy implementation of SubscriptionRepositoryProtocol."""

    async def get_by_customer_id(
        self, db: AsyncSession, *, external_customer_id: str
    ) -> Optional[Subscription]:
        """Get the subscription for a payment-provider customer."""
        result = await db.execute(
            select(Subscription).where(Subscription.external_customer_id == external_customer_id)
        )
        return result.scalar_one_or_none()

    async def get_latest_for_user(
        self, db: AsyncSession, *, user_id: UUID
    ) -> Optional[Subscription]:
        """Get the user's most recently created subscription, any status."""
        result = await db.execute(
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .order_by(Subscription.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_latest_entitling_for_user(
        self, db: AsyncSession, *, user_id: UUID
    ) -> Optional[Subscription]:
        """Get the user's most recent ACTIVE, TRIALING or PAST_DUE subscription."""
        result = await db.execute(
            select(Subscription)
            .where(
                Subscription.user_id == user_id,
                Subscription.status.in_([s.value for s in ENTITLING_STATUSES]),
            )
            .order_by(Subscription.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def upsert(self, db: AsyncSession, *, obj_in: SubscriptionUpsert) -> Subscription:
        """Insert or fully overwrite the row for ``obj_in.external_customer_id``."""
        values = {
            "user_id": obj_in.user_id,
            "plan": obj_in.plan.value,
            "status": obj_in.status.value,
            "external_customer_id": obj_in.external_customer_id,
            "external_subscription_id": obj_in.external_subscription_id,
            "current_period_end": obj_in.current_period_end,
            "canceled_at": obj_in.canceled_at,
        }
        stmt = insert(Subscription).values(id=uuid4(), **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Subscription.external_customer_id],
            set_={**values, "modified_at": func.now()},
        ).returning(Subscription)
        result = await db.execute(stmt, execution_options={"populate_existing": True})
        subscription = result.scalar_one()
        await db.flush()
        return subscription

    async def update(
        self, db: AsyncSession, *, db_obj: Subscription, obj_in: SubscriptionPatch
    ) -> Subscription:
        """Write only the fields set on *obj_in*."""
        values = obj_in.to_update_dict()
        if not values:
            return db_obj
        for key, value in values.items():
            setattr(db_obj, key, value)
        await db.flush()
        return db_obj
