"""Entitlement facade.

Evaluation order is fixed: the rate limiter first (cheap rejection), then
the usage meter, then feature access for each implied feature. Feature
checks only run once the quota allows the request.

When the meter itself fails, ``ENFORCEMENT_FAILURE_POLICY`` decides per
resource whether the request goes through (fail open) or the error
propagates (fail closed).
"""

from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from penwise.core.exceptions import RateLimitExceededException
from penwise.core.logging import ContextualLogger, logger
from penwise.domains.entitlements.feature_gate import FeatureGate
from penwise.domains.entitlements.protocols import EntitlementFacadeProtocol
from penwise.domains.entitlements.types import (
    ENFORCEMENT_FAILURE_POLICY,
    STORAGE,
    EntitlementDecision,
    EntitlementReason,
    FailurePolicy,
)
from penwise.domains.plans.types import Plan
from penwise.domains.rate_limits.exceptions import UnknownRateLimitPolicyError
from penwise.domains.rate_limits.protocols import RateLimiter
from penwise.domains.usage.exceptions import UserNotFoundError
from penwise.domains.usage.protocols import UsageMeterProtocol
from penwise.domains.usage.types import ResourceKind


class EntitlementFacade(EntitlementFacadeProtocol):
    """Combines RateLimiter, UsageMeter and FeatureGate into one decision."""

    def __init__(
        self,
        meter: UsageMeterProtocol,
        feature_gate: FeatureGate,
        rate_limiter: RateLimiter,
        failure_policy: Optional[dict[str, FailurePolicy]] = None,
    ) -> None:
        """Initialize with collaborators and the enforcement failure policy."""
        self._meter = meter
        self._feature_gate = feature_gate
        self._rate_limiter = rate_limiter
        self._failure_policy = failure_policy or ENFORCEMENT_FAILURE_POLICY

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
        log = logger.with_context(user_id=str(user_id), resource_kind=resource_kind.value)

        if rate_limit_policy is not None:
            try:
                await self._rate_limiter.hit(rate_limit_policy, client_address)
            except RateLimitExceededException as e:
                return EntitlementDecision(
                    allowed=False,
                    reason=EntitlementReason.RATE_LIMITED,
                    plan=plan,
                    resource_kind=resource_kind.value,
                    retry_after=e.retry_after,
                    rate_limit_error=e,
                )
            except UnknownRateLimitPolicyError:
                raise
            except Exception as e:
                log.error(f"Rate limit check failed: {e}. Allowing request.")

        degraded = False

        try:
            resolved_plan = await self._meter.resolve_plan(db, user_id, plan)
            usage = await self._meter.check(db, user_id, resource_kind, plan=resolved_plan)
        except UserNotFoundError:
            raise
        except Exception as e:
            self._handle_meter_failure(resource_kind.value, e, log)
            return EntitlementDecision(
                allowed=True,
                reason=EntitlementReason.USAGE_UNAVAILABLE,
                plan=plan,
                resource_kind=resource_kind.value,
            )

        if not usage.allowed:
            log.info(f"Quota exceeded: {usage.current}/{usage.limit}")
            return EntitlementDecision(
                allowed=False,
                reason=EntitlementReason.QUOTA_EXCEEDED,
                plan=resolved_plan,
                resource_kind=resource_kind.value,
                usage=usage,
            )

        if storage_bytes is not None:
            try:
                storage = await self._meter.check_storage(
                    db, user_id, additional_bytes=storage_bytes, plan=resolved_plan
                )
            except Exception as e:
                self._handle_meter_failure(STORAGE, e, log)
                degraded = True
            else:
                if not storage.allowed:
                    log.info(f"Storage quota exceeded: {storage.current}/{storage.limit}")
                    return EntitlementDecision(
                        allowed=False,
                        reason=EntitlementReason.QUOTA_EXCEEDED,
                        plan=resolved_plan,
                        resource_kind=STORAGE,
                        usage=storage,
                    )

        for feature in features:
            if not self._feature_gate.has_access(resolved_plan, feature):
                return EntitlementDecision(
                    allowed=False,
                    reason=EntitlementReason.FEATURE_NOT_ENTITLED,
                    plan=resolved_plan,
                    resource_kind=resource_kind.value,
                    usage=usage,
                    feature=feature,
                    required_plans=[
                        p.value for p in self._feature_gate.required_plans(feature) or []
                    ],
                )

        return EntitlementDecision(
            allowed=True,
            reason=EntitlementReason.USAGE_UNAVAILABLE if degraded else EntitlementReason.ALLOWED,
            plan=resolved_plan,
            resource_kind=resource_kind.value,
            usage=usage,
        )

    def _handle_meter_failure(self, resource: str, error: Exception, log: ContextualLogger) -> None:
        """Re-raise for fail-closed resources; log and swallow for fail-open ones."""
        policy = self._failure_policy.get(resource, FailurePolicy.FAIL_CLOSED)
        if policy == FailurePolicy.FAIL_CLOSED:
            log.error(f"Usage check failed for {resource}; denying: {error}", exc_info=True)
            raise error
        log.warning(f"Usage check failed for {resource}; allowing request: {error}")
