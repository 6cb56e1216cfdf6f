"""Entitlements domain protocols."""

from typing import Iterable, Optional, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from penwise.domains.entitlements.types import EntitlementDecision
from penwise.domains.plans.types import Plan
from penwise.domains.usage.types import ResourceKind


@runtime_checkable
class EntitlementFacadeProtocol(Protocol):
    """Single entry point for "may this user do this now"."""

    async def evaluate(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        client_address: str,
        resource_kind: ResourceKind,
        features: Iterable[str] = (),
        plan: Optional[Plan] = None,
        rate_limit_policy: Optional[str] = None,
        storage_bytes: Optional[int] = None,
    ) -> EntitlementDecision:
        """Evaluate rate limit, quota and feature access, in that order."""
        ...
