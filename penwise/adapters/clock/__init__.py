"""Clock adapters."""

from penwise.adapters.clock.fake import FakeClock
from penwise.adapters.clock.system import SystemClock

__all__ = ["FakeClock", "SystemClock"]
