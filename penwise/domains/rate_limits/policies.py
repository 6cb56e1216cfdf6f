"""Default rate limit policies.

The generic ``api`` budget can be overridden through settings; the others
are fixed. ``auth`` and ``password_reset`` have no route in this service:
they are served to the external login and password reset service, which
calls ``hit`` and, on a successful login, ``record_success``.
"""

from penwise.core.config import Settings
from penwise.domains.rate_limits.types import (
    API,
    AUTH,
    DOCUMENT_CREATE,
    GENERATION,
    PASSWORD_RESET,
    RateLimitPolicy,
)


def build_policies(settings: Settings) -> dict[str, RateLimitPolicy]:
    """Return the named policies keyed by name."""
    policies = [
        RateLimitPolicy(
            name=API,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        ),
        RateLimitPolicy(
            name=AUTH,
            window_seconds=15 * 60,
            max_requests=5,
            count_failures_only=True,
            message="Too many authentication attempts, please try again after 15 minutes.",
        ),
        RateLimitPolicy(
            name=PASSWORD_RESET,
            window_seconds=60 * 60,
            max_requests=3,
            message="Too many password reset requests, please try again after an hour.",
        ),
        RateLimitPolicy(
            name=GENERATION,
            window_seconds=60,
            max_requests=10,
            message="Too many AI requests, please slow down.",
        ),
        RateLimitPolicy(
            name=DOCUMENT_CREATE,
            window_seconds=60,
            max_requests=20,
            message="Too many documents created, please slow down.",
        ),
    ]
    return {policy.name: policy for policy in policies}
