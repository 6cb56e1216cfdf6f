"""HTTP API request context.

Carries the trusted identity handed over by the upstream auth layer, the
client address used for rate limiting, and a logger pre-bound with both.
Only the API layer creates these via deps.get_context().
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from penwise.core.logging import ContextualLogger
from penwise.domains.plans.types import Plan


@dataclass
class ApiContext:
    """Per-request context injected into endpoints via Depends()."""

    request_id: str
    user_id: UUID
    client_address: str
    logger: ContextualLogger

    # Plan asserted by the identity layer; None means "read user.plan"
    plan: Optional[Plan] = None
