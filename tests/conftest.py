"""
Shared fixtures: an in-memory SQLite database per test, a session on it,
seeded users, and an HTTP client bound to the FastAPI app.
"""

import os

# Must be set before the application modules build their engine
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from review_tracker.core import get_session
from review_tracker.main import app
from review_tracker.models import Base, User


ALICE_ID = "alice"
BOB_ID = "bob"


# =============================================================================
# DATABASE
# =============================================================================


@pytest.fixture
async def engine():
    """A fresh in-memory database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def alice(session: AsyncSession) -> User:
    user = User(id=ALICE_ID, name="Alice", avatar_url="https://i.pravatar.cc/150?u=alice")
    session.add(user)
    await session.flush()
    return user


@pytest.fixture
async def bob(session: AsyncSession) -> User:
    user = User(id=BOB_ID, name="Bob", avatar_url="https://i.pravatar.cc/150?u=bob")
    session.add(user)
    await session.flush()
    return user


# =============================================================================
# HTTP CLIENT
# =============================================================================


@pytest.fixture
async def seeded_users(session_factory) -> None:
    """Commit Alice and Bob so API requests (separate sessions) can see them."""
    async with session_factory() as session:
        session.add_all([
            User(id=ALICE_ID, name="Alice", avatar_url="https://i.pravatar.cc/150?u=alice"),
            User(id=BOB_ID, name="Bob", avatar_url="https://i.pravatar.cc/150?u=bob"),
        ])
        await session.commit()


@pytest.fixture
async def client(session_factory) -> AsyncClient:
    """HTTP client whose requests run against the test database."""

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


def as_user(user_id: str) -> dict[str, str]:
    """Request headers that identify the acting user."""
    return {"X-User-Id": user_id}
