"""Pytest configuration and fixtures."""
import os
import tempfile
from pathlib import Path

# Set test env BEFORE any imports that use config
_tmp = Path(tempfile.mkdtemp(prefix="webapp-test-"))
os.environ["WEBAPP_ENV"] = "test"
os.environ["DB_URL"] = f"sqlite+aiosqlite:///{_tmp / 'test.db'}"

import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from db.base import async_session_factory, engine
from db.migrations import init_db
from db.support import db_transaction
from db.users import create_user
from web.api.main import app


@pytest.fixture(autouse=True)
async def _init_db():
    """Ensure the schema exists before each test (ASGI lifespan doesn't run with httpx)."""
    await init_db()
    yield
    # Pooled connections must not outlive this test's event loop
    await engine.dispose()


@pytest.fixture
async def client():
    """Async HTTP client for testing the app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
async def db_tx():
    """Session inside a transaction that is always rolled back."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()


@pytest.fixture
def unique_email():
    return f"user-{uuid.uuid4().hex[:12]}@example.com"


@pytest.fixture
async def committed_user(unique_email):
    """A user committed to the database. Returns (id, email, password)."""
    password = "correct horse battery"
    async with db_transaction() as session:
        user_id = await create_user(session, unique_email, "Test User", password, tos_accepted=True)
    return user_id, unique_email, password
