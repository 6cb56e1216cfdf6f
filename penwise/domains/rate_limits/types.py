"""Rate limit policy types."""

from dataclasses import dataclass

API = "api"
AUTH = "auth"
PASSWORD_RESET = "password_reset"
GENERATION = "generation"
DOCUMENT_CREATE = "document_create"


@dataclass(frozen=True)
class RateLimitPolicy:
    """A fixed-window budget.

    Attributes:
        name: Policy name used by callers.
        window_seconds: Window length.
        max_requests: Requests allowed per window per client address.
        count_failures_only: Successful requests are refunded via
            ``record_success`` (authentication attempts).
        message: Body message returned with the 429.
    """

    name: str
    window_seconds: int
    max_requests: int
    count_failures_only: bool = False
    message: str = "Too many requests from this IP, please try again later."
