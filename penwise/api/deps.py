"""Dependencies that are used in the API endpoints."""

import hmac
import uuid
from typing import AsyncContextManager, Callable, Optional, get_type_hints

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from penwise.api.context import ApiContext
from penwise.core import container as container_mod
from penwise.core.config import settings
from penwise.core.container import Container
from penwise.core.exceptions import (
    PermissionException,
    RateLimitExceededException,
    UnauthenticatedException,
)
from penwise.core.logging import logger
from penwise.db.session import get_db, get_db_context
from penwise.domains.plans.types import parse_plan
from penwise.domains.rate_limits.protocols import RateLimiter
from penwise.domains.rate_limits.types import API
from penwise.schemas.rate_limit import RateLimitResult

__all__ = [
    "Inject",
    "get_container",
    "get_context",
    "get_db",
    "get_session_factory",
    "require_admin",
]


def _extract_client_ip(request: Request) -> str:
    """Extract client IP from request headers.

    Checks X-Forwarded-For header first (for proxied requests),
    then falls back to direct client IP.

    Args:
    ----
        request (Request): FastAPI request object

    Returns:
    -------
        str: Client IP address or "unknown" if not available

    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can be a comma-separated list, take the first one (original client)
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    return request.client.host if request.client else "unknown"


# ---------------------------------------------------------------------------
# DI Container
# ---------------------------------------------------------------------------


def get_container() -> Container:
    """Get the DI container. Initialized at startup."""
    c = container_mod.container
    if c is None:
        raise RuntimeError("Container not initialized. Call initialize_container() first.")
    return c


# ---------------------------------------------------------------------------
# Protocol Injection
# ---------------------------------------------------------------------------

# Cache of protocol_type → Container field name, built once at first call.
_INJECT_CACHE: dict[type, str] = {}


def _resolve_field_name(protocol_type: type) -> str:
    """Find which Container field matches the given protocol type.

    Uses get_type_hints() to introspect the Container dataclass.
    Result is cached so the lookup happens at most once per protocol type.
    """
    if not _INJECT_CACHE:
        for name, hint in get_type_hints(Container).items():
            _INJECT_CACHE[hint] = name

    field_name = _INJECT_CACHE.get(protocol_type)
    if field_name is None:
        available = list(_INJECT_CACHE.values())
        raise TypeError(
            f"No binding for {protocol_type.__name__} in Container. Available fields: {available}"
        )
    return field_name


def Inject(protocol_type: type):  # noqa: N802 (uppercase to match FastAPI convention)
    """Resolve a protocol implementation from the DI container.

    Works like ``Depends()`` but looks up the implementation by protocol type
    instead of requiring the caller to know about the Container internals.

    Usage in FastAPI endpoints::

        from penwise.api.deps import Inject
        from penwise.domains.usage.protocols import UsageMeterProtocol


        @router.get("")
        async def stats(meter: UsageMeterProtocol = Inject(UsageMeterProtocol)):
            ...
    """
    field_name = _resolve_field_name(protocol_type)

    def _resolve(c: Container = Depends(get_container)):
        return getattr(c, field_name)

    return Depends(_resolve)


def get_session_factory() -> Callable[[], AsyncContextManager[AsyncSession]]:
    """Session factory for work that outlives the request scope.

    Streamed responses keep running after the request's own session has
    been closed, so they open a fresh one from here.
    """
    return get_db_context


# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------


async def _check_and_enforce_rate_limit(
    request: Request,
    ctx: ApiContext,
    rate_limiter: RateLimiter,
) -> None:
    """Count the request against the generic ``api`` policy.

    Stores RateLimitResult in request.state for middleware to add headers.

    Raises:
    ------
        RateLimitExceededException: If rate limit is exceeded.
    """
    try:
        result = await rate_limiter.hit(API, ctx.client_address)
        request.state.rate_limit_result = result

    except RateLimitExceededException:
        raise
    except Exception as e:
        ctx.logger.error(f"Rate limit check failed: {e}. Allowing request.")

        request.state.rate_limit_result = RateLimitResult(
            allowed=True,
            retry_after=0.0,
            limit=0,
            remaining=9999,
        )


async def get_context(
    request: Request,
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_plan: Optional[str] = Header(None, alias="X-User-Plan"),
    rate_limiter: RateLimiter = Inject(RateLimiter),
) -> ApiContext:
    """Create the API context from the trusted identity headers.

    The upstream identity layer has already verified the caller; this service
    only reads the user id it forwards (and optionally the plan it asserts).

    Raises:
    ------
        UnauthenticatedException: If no usable user id is present.
        RateLimitExceededException: If the ``api`` budget is exhausted.
    """
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))

    if not x_user_id:
        raise UnauthenticatedException()
    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise UnauthenticatedException() from None

    client_address = _extract_client_ip(request)
    ctx = ApiContext(
        request_id=request_id,
        user_id=user_id,
        client_address=client_address,
        plan=parse_plan(x_user_plan),
        logger=logger.with_context(
            request_id=request_id,
            user_id=str(user_id),
            client_address=client_address,
        ),
    )

    request.state.api_context = ctx

    await _check_and_enforce_rate_limit(request, ctx, rate_limiter)
    return ctx


async def require_admin(
    x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key"),
) -> None:
    """Guard for admin endpoints.

    Raises:
    ------
        PermissionException: If admin access is disabled or the key does not match.
    """
    if not settings.ADMIN_API_KEY:
        raise PermissionException("Admin API is disabled")
    if not x_admin_key or not hmac.compare_digest(x_admin_key, settings.ADMIN_API_KEY):
        raise PermissionException("Invalid admin key")
