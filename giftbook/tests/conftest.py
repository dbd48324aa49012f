"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from giftbook.app.main import app
from giftbook.app.db.session import get_db, Base
from giftbook.app.core.jwt import issue_owner_token
from giftbook.app.models.user import User

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """Fresh in-memory database per test, tables created up front."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def client(session_factory):
    """Async client for testing, wired to the per-test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides = {}


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


async def _create_owner(session_factory, username: str, is_active: bool = True) -> User:
    async with session_factory() as session:
        owner = User(email=f"{username}@test.com", username=username, is_active=is_active)
        session.add(owner)
        await session.commit()
        return owner


def _auth_headers(owner_id: int, username: str = "owner") -> dict:
    token = issue_owner_token(owner_id, username)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    """Build bearer headers for any owner id."""
    return _auth_headers


@pytest.fixture
async def owner(session_factory):
    return await _create_owner(session_factory, "owner1")


@pytest.fixture
async def other_owner(session_factory):
    return await _create_owner(session_factory, "owner2")


@pytest.fixture
async def inactive_owner(session_factory):
    return await _create_owner(session_factory, "dormant", is_active=False)


@pytest.fixture
def owner_headers(owner):
    return _auth_headers(owner.id, owner.username)


@pytest.fixture
def other_owner_headers(other_owner):
    return _auth_headers(other_owner.id, other_owner.username)
