"""
Pytest configuration and fixtures for tests.
Provides reusable test fixtures for database, users, and data setup.
"""
import os

# Settings are read at import time, so the test environment must be in place
# before anything under ``app`` is imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_URL"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-at-least-32-characters")

import pytest
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import get_db
from app.core.security import create_access_token
from app.main import fastapi_app
from app.models.base import Base
from app.models.user import User


# In-memory SQLite shared by every connection of the test engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Modules holding a reference to the realtime connection manager
WEBSOCKET_CONSUMERS = (
    "app.services.message_service",
    "app.services.notification_service",
    "app.services.tweet_service",
    "app.services.community_service",
)


@pytest.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    TestSessionLocal = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


async def make_user(db_session: AsyncSession, username: str, **fields) -> User:
    user = User(
        username=username,
        display_name=fields.pop("display_name", username.capitalize()),
        **fields
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def alice(db_session: AsyncSession) -> User:
    return await make_user(db_session, "alice")


@pytest.fixture
async def bob(db_session: AsyncSession) -> User:
    return await make_user(db_session, "bob")


@pytest.fixture
async def carol(db_session: AsyncSession) -> User:
    return await make_user(db_session, "carol")


def auth_headers_for(user: User) -> dict:
    """Bearer header carrying a valid token for ``user``."""
    token = create_access_token(data={"sub": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice_headers(alice) -> dict:
    return auth_headers_for(alice)


@pytest.fixture
def bob_headers(bob) -> dict:
    return auth_headers_for(bob)


@pytest.fixture
def carol_headers(carol) -> dict:
    return auth_headers_for(carol)


@pytest.fixture
async def direct_conversation(db_session: AsyncSession, alice, bob):
    """Direct conversation between alice and bob."""
    from app.services.conversation_service import ConversationService

    return await ConversationService(db_session).resolve_direct_conversation(alice.id, bob.id)


@pytest.fixture
async def test_tweet(db_session: AsyncSession, alice):
    """A tweet posted by alice."""
    from app.models.tweet import Tweet

    tweet = Tweet(author_id=alice.id, content="hello world", media_json=[])
    alice.tweets_count = 1
    db_session.add(tweet)
    await db_session.commit()
    await db_session.refresh(tweet)
    return tweet


@pytest.fixture(autouse=True)
def mock_websocket_manager(mocker):
    """Mock WebSocket connection manager for all tests."""
    mock_manager = mocker.AsyncMock()
    mock_manager.broadcast_new_message = mocker.AsyncMock()
    mock_manager.broadcast_message_edited = mocker.AsyncMock()
    mock_manager.broadcast_message_deleted = mocker.AsyncMock()
    mock_manager.broadcast_message_reaction = mocker.AsyncMock()
    mock_manager.broadcast_community_tweet = mocker.AsyncMock()
    mock_manager.notify_community_member_joined = mocker.AsyncMock()
    mock_manager.notify_user = mocker.AsyncMock()

    for module in WEBSOCKET_CONSUMERS:
        mocker.patch(f"{module}.connection_manager", mock_manager)

    return mock_manager


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client bound to the test database session."""

    async def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac

    fastapi_app.dependency_overrides.clear()
