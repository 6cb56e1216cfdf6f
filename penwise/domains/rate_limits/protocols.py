"""RateLimiter protocol.

Usage:
    result = await rate_limiter.hit("generation", client_address)
    # raises RateLimitExceededException when the window is exhausted

    # Failures-only policies (login attempts) refund successful requests:
    await rate_limiter.hit("auth", client_address)
    if login_ok:
        await rate_limiter.record_success("auth", client_address)
"""

from typing import Protocol, runtime_checkable

from penwise.schemas.rate_limit import RateLimitResult


@runtime_checkable
class RateLimiter(Protocol):
    """Protocol for named, per-client-address request budgets."""

    async def hit(self, policy_name: str, client_address: str) -> RateLimitResult:
        """Count one request against *policy_name* for *client_address*.

        Raises:
            RateLimitExceededException: If the window's budget is exhausted.
            UnknownRateLimitPolicyError: If *policy_name* is not configured.
        """
        ...

    async def record_success(self, policy_name: str, client_address: str) -> None:
        """Refund the last hit when the policy only counts failures."""
        ...
