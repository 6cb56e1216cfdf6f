"""Clock protocol.

Wall-clock and monotonic time behind one seam so that calendar windows,
webhook timestamps and rate-limit windows can be driven from tests.

Usage:
    start = clock.monotonic()
    stamped_at = clock.now()  # timezone-aware UTC
"""

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of current time."""

    def now(self) -> datetime:
        """Return the current wall-clock time as a timezone-aware UTC datetime."""
        ...

    def monotonic(self) -> float:
        """Return seconds from a monotonic clock.

        Only differences between two readings are meaningful.
        """
        ...
