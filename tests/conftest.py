"""Shared fixtures for Diary Bridge backend tests.

Uses SQLite (aiosqlite) by default, so no PostgreSQL is required.
Set TEST_DATABASE_URL to override (e.g. for CI with real PostgreSQL).
"""

import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

# Ensure settings can be loaded without .env
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-unit-tests")
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)

from diary_bridge.database import Base, make_engine  # noqa: E402
from diary_bridge.enums import FamilyRole  # noqa: E402

requires_pg = pytest.mark.skipif(
    not TEST_DATABASE_URL.startswith("postgresql"),
    reason="needs PostgreSQL (set TEST_DATABASE_URL)",
)


class FakeNotifier:
    """Records every send; can be told to fail."""

    def __init__(self, result: bool = True, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.sent: list[tuple] = []

    async def send(self, invitee_email, inviter_name, inviter_role, invitation_code):
        self.sent.append((invitee_email, inviter_name, inviter_role, invitation_code))
        if self.error is not None:
            raise self.error
        return self.result


# ---------------------------------------------------------------------------
# Engine: fresh in-memory database per test (StaticPool shares the connection)
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture()
async def engine():
    import diary_bridge.models  # noqa: F401  populate Base.metadata

    test_engine = make_engine(TEST_DATABASE_URL)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


# ---------------------------------------------------------------------------
# Reset rate-limiter counters before every test
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _reset_rate_limits():
    """Clear in-memory rate-limit counters so tests never block each other."""
    from diary_bridge.core.rate_limit import limiter

    storage = getattr(limiter, "_storage", None)
    if storage is not None and hasattr(storage, "reset"):
        storage.reset()


# ---------------------------------------------------------------------------
# Per-test session with rollback
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture()
async def db_session(engine):
    session_factory = async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


# ---------------------------------------------------------------------------
# HTTP test client
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture()
async def client(db_session: AsyncSession, notifier: FakeNotifier):
    from diary_bridge.database import get_db
    from diary_bridge.main import app
    from diary_bridge.services.notification_service import get_notifier

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@pytest.fixture()
def make_user(db_session: AsyncSession):
    """Factory inserting a user row directly. Returns the ``User``."""
    from diary_bridge.core.security import get_password_hash
    from diary_bridge.models.user import User

    password_hash = get_password_hash("testpassword123")

    async def _make(
        email: str | None = None,
        user_type: FamilyRole = FamilyRole.PARENT,
        full_name: str = "Test User",
    ) -> User:
        user = User(
            email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
            full_name=full_name,
            user_type=user_type,
            password_hash=password_hash,
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


@pytest.fixture()
def register_user(client: AsyncClient):
    """Factory registering an account over HTTP.

    Returns a dict with keys: headers, user_id, email, tokens.
    """
    from diary_bridge.core.security import decode_token

    async def _register(
        email: str | None = None,
        user_type: str = "parent",
        full_name: str = "Test User",
    ) -> dict:
        email = email or f"{user_type}-{uuid.uuid4().hex[:8]}@example.com"
        resp = await client.post("/api/v1/auth/register", json={
            "email": email,
            "password": "testpassword123",
            "full_name": full_name,
            "user_type": user_type,
        })
        assert resp.status_code == 200, resp.text
        tokens = resp.json()
        payload = decode_token(tokens["access_token"])
        return {
            "headers": {"Authorization": f"Bearer {tokens['access_token']}"},
            "user_id": payload["sub"],
            "email": email,
            "tokens": tokens,
        }

    return _register
