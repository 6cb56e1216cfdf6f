"""Main module of the FastAPI application.

This module sets up the FastAPI application, the middleware that logs
incoming requests and unhandled exceptions, and the exception handlers that
map domain errors onto HTTP responses.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from penwise.api.middleware import (
    add_request_id,
    exception_logging_middleware,
    external_service_exception_handler,
    feature_not_entitled_exception_handler,
    invalid_state_exception_handler,
    log_requests,
    not_found_exception_handler,
    permission_exception_handler,
    rate_limit_exception_handler,
    rate_limit_headers_middleware,
    unauthenticated_exception_handler,
    usage_limit_exceeded_exception_handler,
    validation_exception_handler,
)
from penwise.api.v1.api import api_router
from penwise.core.config import settings
from penwise.core.exceptions import (
    ExternalServiceError,
    InvalidStateError,
    NotFoundException,
    PermissionException,
    RateLimitExceededException,
    UnauthenticatedException,
)
from penwise.core.logging import logger
from penwise.domains.entitlements.exceptions import FeatureNotEntitledError
from penwise.domains.usage.exceptions import UsageLimitExceededError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events.

    Initializes the DI container (fail fast if wiring is broken).
    """
    from penwise.core import container as container_mod
    from penwise.core.container import initialize_container

    if container_mod.container is None:
        logger.info("Initializing dependency injection container...")
        initialize_container(settings)
        logger.info("Container initialized successfully")

    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

# Register middleware directly in the correct order
# Order matters: last registered = outermost middleware
app.middleware("http")(exception_logging_middleware)
app.middleware("http")(log_requests)
app.middleware("http")(rate_limit_headers_middleware)
app.middleware("http")(add_request_id)

# Register exception handlers
app.exception_handler(RequestValidationError)(validation_exception_handler)
app.exception_handler(ValidationError)(validation_exception_handler)
app.exception_handler(UnauthenticatedException)(unauthenticated_exception_handler)
app.exception_handler(FeatureNotEntitledError)(feature_not_entitled_exception_handler)
app.exception_handler(PermissionException)(permission_exception_handler)
app.exception_handler(NotFoundException)(not_found_exception_handler)
app.exception_handler(UsageLimitExceededError)(usage_limit_exceeded_exception_handler)
app.exception_handler(RateLimitExceededException)(rate_limit_exception_handler)
app.exception_handler(InvalidStateError)(invalid_state_exception_handler)
app.exception_handler(ExternalServiceError)(external_service_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
