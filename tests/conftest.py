"""Test fixtures — a fresh schema per test and an app wired to it.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own engine with the schema created from the models.
   By default this is an in-memory SQLite database (aiosqlite) held on a
   single StaticPool connection; set TEST_DATABASE_URL to run the same
   tests against PostgreSQL.
2. The app is built with create_app(Settings(...)) — test secret, cheap
   bcrypt rounds, and a tmp upload directory — and get_db is overridden
   so every request opens its own session on the test engine.
3. Auth is NOT mocked: tests register real users and send real tokens.
"""

import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from trailsync.config import Settings
from trailsync.db.engine import get_db
from trailsync.db.models import Base
from trailsync.main import create_app

TEST_DB_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")


@pytest_asyncio.fixture()
async def engine():
    """Per-test engine with all tables created (and dropped afterwards)."""
    if make_url(TEST_DB_URL).get_backend_name() == "sqlite":
        eng = create_async_engine(
            TEST_DB_URL,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        eng = create_async_engine(TEST_DB_URL)

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """A session for service-level tests and for inspecting stored rows."""
    async with session_factory() as session:
        yield session


@pytest.fixture()
def test_settings(tmp_path):
    return Settings(
        database_url=TEST_DB_URL,
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        upload_dir=str(tmp_path / "uploads"),
        max_file_size=1024,
    )


@pytest.fixture()
def app(test_settings, session_factory):
    application = create_app(test_settings)
    # ASGITransport does not run the lifespan that creates these
    application.state.photos.ensure_dirs()

    async def override_get_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def signup(client):
    """Register a user and return their tokens, id, and auth header.

    Learn: Registration only returns a token pair, so the helper asks
    /auth/me for the new account's id.
    """

    async def _signup(email=None, password="hunter2-trail", username="traveller"):
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        r = await client.post(
            "/auth/register",
            json={"email": email, "password": password, "username": username},
        )
        assert r.status_code == 201, r.text
        tokens = r.json()
        headers = {"Authorization": f"Bearer {tokens['token']}"}
        me = await client.get("/auth/me", headers=headers)
        assert me.status_code == 200, me.text
        return {
            "id": me.json()["id"],
            "email": email,
            "password": password,
            "token": tokens["token"],
            "refresh_token": tokens["refreshToken"],
            "headers": headers,
        }

    return _signup


@pytest.fixture()
def make_post(client):
    """Create a post as the given user and return its JSON."""

    async def _make_post(user, /, **overrides):
        body = {
            "title": "Two weeks in Hokkaido",
            "mapLink": "https://maps.example.com/hokkaido",
            "price": 1800,
            "numberOfDays": 14,
            "location": {"city": "Sapporo", "country": "Japan"},
            "description": "Hot springs, ramen, and a lot of snow.",
        }
        body.update(overrides)
        r = await client.post("/post", json=body, headers=user["headers"])
        assert r.status_code == 201, r.text
        return r.json()

    return _make_post
