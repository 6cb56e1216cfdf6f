"""Fake clock for testing.

Time only moves when the test says so.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


class FakeClock:
    """Test implementation of the Clock protocol.

    Usage::

        clock = FakeClock(datetime(2024, 3, 15, tzinfo=timezone.utc))
        limiter = InMemoryRateLimiter(policies, clock=clock)
        clock.advance(seconds=61)
    """

    def __init__(self, start: Optional[datetime] = None, monotonic_start: float = 1000.0) -> None:
        """Initialize at *start* (defaults to 2024-01-15 12:00 UTC)."""
        self._now = start or datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
        self._monotonic = monotonic_start

    def now(self) -> datetime:
        """Return the frozen wall-clock time."""
        return self._now

    def monotonic(self) -> float:
        """Return the frozen monotonic reading."""
        return self._monotonic

    # Test helpers

    def advance(self, seconds: float = 0, **kwargs: float) -> None:
        """Move both clocks forward.

        Accepts ``timedelta`` keyword arguments (``minutes=``, ``days=``...).
        """
        delta = timedelta(seconds=seconds, **kwargs)
        self._now += delta
        self._monotonic += delta.total_seconds()

    def set(self, when: datetime) -> None:
        """Jump the wall clock to *when*; the monotonic clock is left alone."""
        self._now = when
