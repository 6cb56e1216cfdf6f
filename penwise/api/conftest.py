"""API test fixtures.

Provides an async HTTP client wired to the FastAPI app with the DI container
overridden to use fakes. Available to all colocated API tests under api/.

Pattern:
    1. Override get_container -> returns test_container (fakes underneath)
    2. Override get_context  -> returns a minimal fake ApiContext
    3. Override get_db       -> returns an AsyncMock session (also used for
                                streamed responses via get_session_factory)
    4. Test hits the endpoint, asserts on HTTP response + fake state
"""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from penwise.api.context import ApiContext
from penwise.api.deps import get_container, get_context, get_db, get_session_factory
from penwise.core.logging import logger

TEST_USER_ID = UUID("00000000-0000-0000-0000-0000000000aa")
TEST_REQUEST_ID = "test-request-00000000"
TEST_CLIENT_ADDRESS = "127.0.0.1"
ADMIN_HEADERS = {"X-Admin-Key": "test-admin-key"}


def _make_fake_context(plan=None) -> ApiContext:
    """Build a minimal ApiContext for API tests."""
    return ApiContext(
        request_id=TEST_REQUEST_ID,
        user_id=TEST_USER_ID,
        client_address=TEST_CLIENT_ADDRESS,
        plan=plan,
        logger=logger.with_context(request_id=TEST_REQUEST_ID),
    )


def _make_session_factory(db):
    """Session factory that hands out the given session."""

    @asynccontextmanager
    async def _factory():
        yield db

    return _factory


@pytest.fixture
def fake_db():
    """AsyncMock session handed to endpoints in place of a real one."""
    return AsyncMock()


@pytest_asyncio.fixture
async def client(test_container, fake_db):
    """Async HTTP client with faked DI container, database and auth context."""
    from penwise.main import app

    fake_ctx = _make_fake_context()

    app.dependency_overrides[get_container] = lambda: test_container
    app.dependency_overrides[get_context] = lambda: fake_ctx
    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_session_factory] = lambda: _make_session_factory(fake_db)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def header_client(test_container, fake_db):
    """Async HTTP client that builds the context from request headers.

    Only the container and database are faked, so identity headers and the
    generic ``api`` rate limit go through the real dependency.
    """
    from penwise.main import app

    app.dependency_overrides[get_container] = lambda: test_container
    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_session_factory] = lambda: _make_session_factory(fake_db)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
