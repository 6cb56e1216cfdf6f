"""Unit tests for InMemoryRateLimiter."""

import asyncio

import pytest

from penwise.adapters.clock.fake import FakeClock
from penwise.core.exceptions import RateLimitExceededException
from penwise.domains.rate_limits import limiter as limiter_module
from penwise.domains.rate_limits.exceptions import UnknownRateLimitPolicyError
from penwise.domains.rate_limits.limiter import InMemoryRateLimiter
from penwise.domains.rate_limits.types import RateLimitPolicy

CLIENT = "203.0.113.7"
OTHER_CLIENT = "198.51.100.2"

POLICIES = {
    "burst": RateLimitPolicy(name="burst", window_seconds=60, max_requests=3, message="Slow down."),
    "login": RateLimitPolicy(
        name="login", window_seconds=900, max_requests=2, count_failures_only=True
    ),
}


def _make_limiter(enabled: bool = True) -> tuple[InMemoryRateLimiter, FakeClock]:
    clock = FakeClock()
    return InMemoryRateLimiter(POLICIES, clock=clock, enabled=enabled), clock


class TestHit:
    @pytest.mark.asyncio
    async def test_allows_up_to_budget(self):
        limiter, _ = _make_limiter()

        results = [await limiter.hit("burst", CLIENT) for _ in range(3)]

        assert [r.remaining for r in results] == [2, 1, 0]
        assert all(r.allowed for r in results)
        assert results[0].limit == 3

    @pytest.mark.asyncio
    async def test_rejects_over_budget_with_retry_after(self):
        limiter, clock = _make_limiter()
        for _ in range(3):
            await limiter.hit("burst", CLIENT)
        clock.advance(seconds=20)

        with pytest.raises(RateLimitExceededException) as exc_info:
            await limiter.hit("burst", CLIENT)

        exc = exc_info.value
        assert exc.retry_after == pytest.approx(40.0)
        assert exc.limit == 3
        assert exc.remaining == 0
        assert exc.policy == "burst"
        assert exc.message == "Slow down."

    @pytest.mark.asyncio
    async def test_window_resets_after_expiry(self):
        limiter, clock = _make_limiter()
        for _ in range(3):
            await limiter.hit("burst", CLIENT)

        clock.advance(seconds=60)
        result = await limiter.hit("burst", CLIENT)

        assert result.allowed is True
        assert result.remaining == 2

    @pytest.mark.asyncio
    async def test_rejected_requests_are_not_counted(self):
        limiter, clock = _make_limiter()
        for _ in range(3):
            await limiter.hit("burst", CLIENT)
        for _ in range(5):
            with pytest.raises(RateLimitExceededException):
                await limiter.hit("burst", CLIENT)

        clock.advance(seconds=61)
        result = await limiter.hit("burst", CLIENT)

        assert result.remaining == 2

    @pytest.mark.asyncio
    async def test_clients_are_independent(self):
        limiter, _ = _make_limiter()
        for _ in range(3):
            await limiter.hit("burst", CLIENT)

        result = await limiter.hit("burst", OTHER_CLIENT)

        assert result.remaining == 2

    @pytest.mark.asyncio
    async def test_policies_are_independent(self):
        limiter, _ = _make_limiter()
        for _ in range(3):
            await limiter.hit("burst", CLIENT)

        result = await limiter.hit("login", CLIENT)

        assert result.remaining == 1

    @pytest.mark.asyncio
    async def test_unknown_policy_raises(self):
        limiter, _ = _make_limiter()

        with pytest.raises(UnknownRateLimitPolicyError):
            await limiter.hit("nope", CLIENT)

    @pytest.mark.asyncio
    async def test_concurrent_hits_never_exceed_budget(self):
        limiter, _ = _make_limiter()

        results = await asyncio.gather(
            *(limiter.hit("burst", CLIENT) for _ in range(10)), return_exceptions=True
        )

        allowed = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, RateLimitExceededException)]
        assert len(allowed) == 3
        assert len(rejected) == 7


class TestDisabled:
    @pytest.mark.asyncio
    async def test_every_hit_allowed(self):
        limiter, _ = _make_limiter(enabled=False)

        for _ in range(10):
            result = await limiter.hit("burst", CLIENT)

        assert result.allowed is True
        assert result.remaining == 3

    @pytest.mark.asyncio
    async def test_unknown_policy_still_raises(self):
        limiter, _ = _make_limiter(enabled=False)

        with pytest.raises(UnknownRateLimitPolicyError):
            await limiter.hit("nope", CLIENT)


class TestRecordSuccess:
    @pytest.mark.asyncio
    async def test_refunds_failures_only_policy(self):
        limiter, _ = _make_limiter()

        for _ in range(5):
            await limiter.hit("login", CLIENT)
            await limiter.record_success("login", CLIENT)

        result = await limiter.hit("login", CLIENT)
        assert result.remaining == 1

    @pytest.mark.asyncio
    async def test_failures_exhaust_budget(self):
        limiter, _ = _make_limiter()
        await limiter.hit("login", CLIENT)
        await limiter.hit("login", CLIENT)

        with pytest.raises(RateLimitExceededException):
            await limiter.hit("login", CLIENT)

    @pytest.mark.asyncio
    async def test_noop_for_regular_policy(self):
        limiter, _ = _make_limiter()
        await limiter.hit("burst", CLIENT)

        await limiter.record_success("burst", CLIENT)
        result = await limiter.hit("burst", CLIENT)

        assert result.remaining == 1

    @pytest.mark.asyncio
    async def test_without_prior_hit_is_harmless(self):
        limiter, _ = _make_limiter()

        await limiter.record_success("login", CLIENT)
        result = await limiter.hit("login", CLIENT)

        assert result.remaining == 1


class TestPrune:
    @pytest.mark.asyncio
    async def test_expired_windows_dropped_at_threshold(self, monkeypatch):
        monkeypatch.setattr(limiter_module, "_PRUNE_THRESHOLD", 2)
        limiter, clock = _make_limiter()
        await limiter.hit("burst", CLIENT)
        await limiter.hit("burst", OTHER_CLIENT)

        clock.advance(seconds=120)
        await limiter.hit("burst", "192.0.2.1")

        assert list(limiter._windows) == [("burst", "192.0.2.1")]
