"""System clock backed by the host's real time sources."""

import time
from datetime import datetime, timezone


class SystemClock:
    """Production implementation of the Clock protocol."""

    def now(self) -> datetime:
        """Return the current UTC time."""
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        """Return ``time.monotonic()``."""
        return time.monotonic()
