"""In-memory fixed-window rate limiter.

Windows live in a dict keyed by ``(policy_name, client_address)``. Suitable
for single-process deployments; state is lost on restart and is not shared
between replicas.

Safe for concurrent coroutines within a single event loop via asyncio.Lock.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from penwise.core.exceptions import RateLimitExceededException
from penwise.core.logging import logger
from penwise.core.protocols.clock import Clock
from penwise.domains.rate_limits.exceptions import UnknownRateLimitPolicyError
from penwise.domains.rate_limits.types import RateLimitPolicy
from penwise.schemas.rate_limit import RateLimitResult

_PRUNE_THRESHOLD = 10_000


class _Window:
    """Request count for one policy and client address."""

    __slots__ = ("count", "started_at")

    def __init__(self, started_at: float) -> None:
        self.count = 0
        self.started_at = started_at


class InMemoryRateLimiter:
    """In-memory implementation of the RateLimiter protocol.

    The window opens on the first request and resets once
    ``window_seconds`` have elapsed since it opened. The request that
    would exceed ``max_requests`` is rejected and not counted.

    Attributes:
        enabled: When False every hit is allowed (local development).
    """

    def __init__(
        self,
        policies: dict[str, RateLimitPolicy],
        clock: Clock,
        enabled: bool = True,
    ) -> None:
        """Initialize the limiter.

        Args:
            policies: Policies keyed by name.
            clock: Source of monotonic time.
            enabled: Enforce budgets. Disabled limiters still validate names.
        """
        self._policies = dict(policies)
        self._clock = clock
        self.enabled = enabled
        self._windows: dict[tuple[str, str], _Window] = {}
        self._lock = asyncio.Lock()

    def get_policy(self, policy_name: str) -> RateLimitPolicy:
        """Return the named policy."""
        policy = self._policies.get(policy_name)
        if policy is None:
            raise UnknownRateLimitPolicyError(policy_name)
        return policy

    async def hit(self, policy_name: str, client_address: str) -> RateLimitResult:
        """Count one request; raise RateLimitExceededException when over budget."""
        policy = self.get_policy(policy_name)
        if not self.enabled:
            return RateLimitResult(
                allowed=True,
                retry_after=0.0,
                limit=policy.max_requests,
                remaining=policy.max_requests,
            )

        async with self._lock:
            now = self._clock.monotonic()
            window = self._current_window(policy, client_address, now)
            retry_after = max(0.0, policy.window_seconds - (now - window.started_at))

            if window.count >= policy.max_requests:
                logger.with_context(rate_limit_policy=policy.name).warning(
                    f"Rate limit exceeded for {client_address} on policy {policy.name}"
                )
                raise RateLimitExceededException(
                    retry_after=retry_after,
                    limit=policy.max_requests,
                    remaining=0,
                    policy=policy.name,
                    message=policy.message,
                )

            window.count += 1
            return RateLimitResult(
                allowed=True,
                retry_after=retry_after,
                limit=policy.max_requests,
                remaining=policy.max_requests - window.count,
            )

    async def record_success(self, policy_name: str, client_address: str) -> None:
        """Refund one hit for failures-only policies; no-op otherwise.

        Called by the external auth service after a successful login so that
        only failed attempts use up the ``auth`` budget.
        """
        policy = self.get_policy(policy_name)
        if not self.enabled or not policy.count_failures_only:
            return

        async with self._lock:
            window = self._windows.get((policy.name, client_address))
            if window is not None and window.count > 0:
                window.count -= 1

    def _current_window(self, policy: RateLimitPolicy, client_address: str, now: float) -> _Window:
        """Return the live window, opening a new one when absent or expired. Caller holds lock."""
        key = (policy.name, client_address)
        window: Optional[_Window] = self._windows.get(key)
        if window is None or now - window.started_at >= policy.window_seconds:
            if len(self._windows) >= _PRUNE_THRESHOLD:
                self._prune(now)
            window = _Window(started_at=now)
            self._windows[key] = window
        return window

    def _prune(self, now: float) -> None:
        """Drop expired windows. Caller holds lock."""
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at >= self._policies[key[0]].window_seconds
        ]
        for key in expired:
            del self._windows[key]
