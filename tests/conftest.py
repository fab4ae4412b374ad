"""
Shared fixtures.

The database URL is pointed at a throwaway SQLite file before qr_service is
imported, because settings and the engine are created at import time.
Every test gets freshly created tables.
"""

import os
import tempfile

_TEST_DB_DIR = tempfile.mkdtemp(prefix="qr_service_tests_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["BASE_URL"] = "https://qr.test"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient

from qr_service.core.task_tracker import BackgroundTaskTracker
from qr_service.db.models import User
from qr_service.db.session import async_session_maker, create_tables, drop_tables


@pytest.fixture(autouse=True)
async def database():
    await create_tables()
    yield
    await drop_tables()


@pytest.fixture
async def session(database):
    async with async_session_maker() as session:
        yield session


async def make_user(email: str) -> str:
    async with async_session_maker() as s:
        user = User(email=email, password_hash="not-a-real-hash")
        s.add(user)
        await s.commit()
        return user.id


@pytest.fixture
async def owner(database) -> str:
    return await make_user("owner@example.com")


@pytest.fixture
async def other_owner(database) -> str:
    return await make_user("someone-else@example.com")


@pytest.fixture
async def tracker():
    tracker = BackgroundTaskTracker()
    yield tracker
    await tracker.drain(timeout=5)


@pytest.fixture
async def client(database):
    from qr_service.main import app

    app.state.task_tracker = BackgroundTaskTracker()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    await app.state.task_tracker.drain(timeout=5)


@pytest.fixture
async def auth_headers(client) -> dict:
    response = await client.post(
        "/auth/signup",
        json={"email": "dashboard@example.com", "password": "secret123", "full_name": "Ana Souza"}
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
