"""Fake subscription repository for testing."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from penwise.models import Subscription
from penwise.schemas.subscription import (
    ENTITLING_STATUSES,
    SubscriptionPatch,
    SubscriptionUpsert,
)


class FakeSubscriptionRepository:
    """In-memory fake for SubscriptionRepositoryProtocol, keyed by customer id."""

    def __init__(self) -> None:
        """Initialize with empty store and call log."""
        self._store: dict[str, Subscription] = {}
        self._calls: list[tuple] = []

    def seed(self, obj: Subscription) -> None:
        """Populate store with test data."""
        self._store[obj.external_customer_id] = obj

    def all(self) -> list[Subscription]:
        """Every stored subscription."""
        return list(self._store.values())

    def call_count(self, method: str) -> int:
        """Return the number of times a method was called."""
        return sum(1 for name, *_ in self._calls if name == method)

    async def get_by_customer_id(
        self, db: AsyncSession, *, external_customer_id: str
    ) -> Optional[Subscription]:
        """Get the subscription for a payment-provider customer."""
        self._calls.append(("get_by_customer_id", db, external_customer_id))
        return self._store.get(external_customer_id)

    def _for_user(self, user_id: UUID) -> list[Subscription]:
        subs = [s for s in self._store.values() if s.user_id == user_id]
        return sorted(subs, key=lambda s: s.created_at, reverse=True)

    async def get_latest_for_user(
        self, db: AsyncSession, *, user_id: UUID
    ) -> Optional[Subscription]:
        """Get the user's most recently created subscription."""
        self._calls.append(("get_latest_for_user", db, user_id))
        subs = self._for_user(user_id)
        return subs[0] if subs else None

    async def get_latest_entitling_for_user(
        self, db: AsyncSession, *, user_id: UUID
    ) -> Optional[Subscription]:
        """Get the user's most recent entitling subscription."""
        self._calls.append(("get_latest_entitling_for_user", db, user_id))
        entitling = {s.value for s in ENTITLING_STATUSES}
        for sub in self._for_user(user_id):
            if sub.status in entitling:
                return sub
        return None

    async def upsert(self, db: AsyncSession, *, obj_in: SubscriptionUpsert) -> Subscription:
        """Insert or overwrite in memory."""
        self._calls.append(("upsert", db, obj_in))
        now = datetime.now(timezone.utc)
        existing = self._store.get(obj_in.external_customer_id)
        values = dict(
            user_id=obj_in.user_id,
            plan=obj_in.plan.value,
            status=obj_in.status.value,
            external_customer_id=obj_in.external_customer_id,
            external_subscription_id=obj_in.external_subscription_id,
            current_period_end=obj_in.current_period_end,
            canceled_at=obj_in.canceled_at,
        )
        if existing is None:
            existing = Subscription(id=uuid4(), created_at=now, modified_at=now, **values)
            self._store[obj_in.external_customer_id] = existing
        else:
            for key, value in values.items():
                setattr(existing, key, value)
            existing.modified_at = now
        return existing

    async def update(
        self, db: AsyncSession, *, db_obj: Subscription, obj_in: SubscriptionPatch
    ) -> Subscription:
        """Apply set fields in memory."""
        self._calls.append(("update", db, db_obj, obj_in))
        for key, value in obj_in.to_update_dict().items():
            setattr(db_obj, key, value)
        return db_obj
