"""Middleware and exception handlers for the FastAPI application."""

import time
import traceback
import uuid

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from penwise.core.config import settings
from penwise.core.exceptions import (
    ExternalServiceError,
    InvalidStateError,
    NotFoundException,
    PermissionException,
    RateLimitExceededException,
    UnauthenticatedException,
    unpack_validation_error,
)
from penwise.core.logging import logger
from penwise.domains.entitlements.exceptions import FeatureNotEntitledError
from penwise.domains.usage.exceptions import UsageLimitExceededError


async def add_request_id(request: Request, call_next: callable) -> Response:
    """Middleware to generate and add a request ID to the request for tracing."""
    request.state.request_id = str(uuid.uuid4())
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


async def log_requests(request: Request, call_next: callable) -> Response:
    """Middleware to log incoming requests.

    Args:
    ----
        request (Request): The incoming request.
        call_next (callable): The next middleware in the chain.

    Returns:
    -------
        Response: The response to the incoming request.

    """
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time
    logger.with_context(request_id=getattr(request.state, "request_id", None)).info(
        f"Handled request {request.method} {request.url.path} in {duration:.2f} seconds. "
        f"Response code: {response.status_code}"
    )
    return response


async def exception_logging_middleware(request: Request, call_next: callable) -> Response:
    """Middleware to log unhandled exceptions.

    The traceback is logged; the client only gets a generic message.
    """
    try:
        response = await call_next(request)
        return response
    except Exception as exc:
        logger.error(f"Unhandled exception: {exc}\n{traceback.format_exc()}")

        response_content = {"detail": "Internal Server Error"}
        if settings.DEBUG:
            response_content["trace"] = traceback.format_exc()

        return JSONResponse(status_code=500, content=response_content)


async def rate_limit_headers_middleware(request: Request, call_next: callable) -> Response:
    """Middleware to add rate limit headers to responses.

    Follows standards defined in RFC 6585.
    """
    response = await call_next(request)

    rate_limit_result = getattr(request.state, "rate_limit_result", None)
    if rate_limit_result:
        response.headers["RateLimit-Limit"] = str(rate_limit_result.limit)
        response.headers["RateLimit-Remaining"] = str(rate_limit_result.remaining)
        response.headers["RateLimit-Reset"] = str(int(time.time() + rate_limit_result.retry_after))

    return response


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


async def validation_exception_handler(
    request: Request, exc: RequestValidationError | ValidationError
) -> JSONResponse:
    """Exception handler for validation errors that occur during request processing.

    Returns:
    -------
        JSONResponse: A 422 Unprocessable Entity status response that details the validation
            errors. Each error message is a dictionary where the key is the location
            of the validation error in the request, and the value is the associated error message.

    Example of JSON output:
        {
            "errors": [
                {"body.plan": "Value error, Invalid plan. Must be PRO, AGENCY, or ENTERPRISE"}
            ]
        }

    """
    error_messages = unpack_validation_error(exc)
    logger.warning(f"Validation error: {error_messages}")
    return JSONResponse(status_code=422, content=error_messages)


async def unauthenticated_exception_handler(
    request: Request, exc: UnauthenticatedException
) -> JSONResponse:
    """Exception handler for UnauthenticatedException (401)."""
    return JSONResponse(status_code=401, content={"detail": "Authentication required"})


async def permission_exception_handler(request: Request, exc: PermissionException) -> JSONResponse:
    """Exception handler for PermissionException.

    Returns:
    -------
        JSONResponse: A 403 Forbidden status response that details the error message.

    """
    return JSONResponse(status_code=403, content={"detail": str(exc)})


async def feature_not_entitled_exception_handler(
    request: Request, exc: FeatureNotEntitledError
) -> JSONResponse:
    """Exception handler for FeatureNotEntitledError: 403 with the plans that would unlock it."""
    return JSONResponse(
        status_code=403,
        content={
            "detail": str(exc),
            "feature": exc.feature,
            "user_plan": exc.user_plan,
            "required_plans": exc.required_plans,
        },
    )


async def not_found_exception_handler(request: Request, exc: NotFoundException) -> JSONResponse:
    """Exception handler for NotFoundException.

    Returns:
    -------
        JSONResponse: A 404 Not Found status response that details the error message.

    """
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def invalid_state_exception_handler(request: Request, exc: InvalidStateError) -> JSONResponse:
    """Exception handler for InvalidStateError.

    Returns:
    -------
        JSONResponse: A 400 Bad Request status response that details the error message.

    """
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def usage_limit_exceeded_exception_handler(
    request: Request, exc: UsageLimitExceededError
) -> JSONResponse:
    """Exception handler for UsageLimitExceededError: 429 with the current usage."""
    return JSONResponse(
        status_code=429,
        content={
            "detail": str(exc),
            "resource_kind": exc.resource_kind,
            "limit": exc.limit,
            "current_usage": exc.current_usage,
        },
    )


async def rate_limit_exception_handler(
    request: Request, exc: RateLimitExceededException
) -> JSONResponse:
    """Exception handler for RateLimitExceededException.

    Returns:
    -------
        JSONResponse: A 429 Too Many Requests status response with rate limit headers.

    """
    reset_timestamp = int(time.time() + exc.retry_after)

    return JSONResponse(
        status_code=429,
        content={"detail": str(exc), "retry_after": exc.retry_after},
        headers={
            "Retry-After": str(int(exc.retry_after) + 1),
            "RateLimit-Limit": str(exc.limit),
            "RateLimit-Remaining": str(exc.remaining),
            "RateLimit-Reset": str(reset_timestamp),
        },
    )


async def external_service_exception_handler(
    request: Request, exc: ExternalServiceError
) -> JSONResponse:
    """Exception handler for ExternalServiceError.

    Passes through the provider's own 429/400 when it gave one; anything else
    is reported as 503 with a generic message.
    """
    logger.error(f"External service failure: {exc}")
    if exc.status_code in (400, 429):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
    return JSONResponse(
        status_code=503,
        content={"detail": f"{exc.service_name} is temporarily unavailable"},
    )
