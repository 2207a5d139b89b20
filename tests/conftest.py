"""
Pytest configuration and fixtures for tests.
Provides reusable test fixtures for database, users, and data setup.
"""
import io
import os
import tempfile

# Must be set before the app settings are loaded
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("PHOTO_STORAGE", "local")
os.environ.setdefault("PHOTO_LOCAL_DIR", tempfile.mkdtemp(prefix="matchchat-photos-"))

import pytest  # noqa: E402
from typing import AsyncGenerator, Dict, Optional, Sequence  # noqa: E402
from datetime import date  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.main import fastapi_app  # noqa: E402
from app.core.database import get_db  # noqa: E402
from app.core.security import create_access_token, hash_password  # noqa: E402
from app.models.base import Base  # noqa: E402
from app.models.user import Gender, Interest, User, UserRole  # noqa: E402
from app.utils.datetime_utils import utc_today, years_before  # noqa: E402


# Test database URL (in-memory SQLite shared through a static pool)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "SecurePassword123"


@pytest.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
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


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client bound to the test session; auth uses real tokens."""

    async def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac

    # Clear overrides after test
    fastapi_app.dependency_overrides.clear()


# ============================================================================
# Data factories
# ============================================================================

@pytest.fixture
async def interests(db_session: AsyncSession) -> Sequence[Interest]:
    """A small interest catalogue."""
    catalogue = [
        Interest(name="Hiking", category="outdoors"),
        Interest(name="Coffee", category="food"),
        Interest(name="Jazz", category="music"),
        Interest(name="Movies", category="entertainment"),
    ]
    db_session.add_all(catalogue)
    await db_session.commit()
    return catalogue


@pytest.fixture
def make_user(db_session: AsyncSession):
    """
    Factory creating persisted users.

    Example:
        ```python
        carol = await make_user("carol", age=30, location=(25.03, 121.56))
        ```
    """
    async def _make_user(
        name: str,
        age: int = 25,
        gender: Gender = Gender.FEMALE,
        location: Optional[tuple] = None,
        interests: Sequence[Interest] = (),
        role: UserRole = UserRole.USER,
        is_active: bool = True,
        birth_date: Optional[date] = None,
        **fields
    ) -> User:
        latitude, longitude = location if location else (None, None)
        user = User(
            email=f"{name}@example.com",
            password_hash=hash_password(TEST_PASSWORD),
            display_name=name.capitalize(),
            birth_date=birth_date or years_before(utc_today(), age),
            gender=gender,
            latitude=latitude,
            longitude=longitude,
            role=role,
            is_active=is_active,
            interests=list(interests),
            **fields
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
async def alice(make_user) -> User:
    return await make_user("alice", age=27, location=(25.0330, 121.5654))


@pytest.fixture
async def bob(make_user) -> User:
    return await make_user("bob", age=29, gender=Gender.MALE, location=(25.0478, 121.5170))


@pytest.fixture
async def admin(make_user) -> User:
    return await make_user("admin", age=40, role=UserRole.ADMIN)


@pytest.fixture
async def match(db_session: AsyncSession, alice: User, bob: User):
    """A mutual match between alice and bob."""
    from app.models.match import Like, Match

    db_session.add_all([
        Like(from_user_id=alice.id, to_user_id=bob.id),
        Like(from_user_id=bob.id, to_user_id=alice.id),
    ])
    low, high = sorted((alice.id, bob.id))
    match = Match(user_a_id=low, user_b_id=high)
    db_session.add(match)
    await db_session.commit()
    await db_session.refresh(match)
    return match


@pytest.fixture
def auth_headers():
    """Create authentication headers for a user."""
    def _headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}
    return _headers


@pytest.fixture
def png_bytes() -> bytes:
    """Tiny valid PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (8, 6), color=(200, 80, 40)).save(buffer, format="PNG")
    return buffer.getvalue()


# ============================================================================
# Collaborator mocks
# ============================================================================

@pytest.fixture(autouse=True)
def mock_presence_hub(mocker):
    """Mock the presence hub in every service module for all tests."""
    mock_hub = mocker.AsyncMock()
    mock_hub.publish = mocker.AsyncMock(return_value=1)
    mock_hub.is_user_online = mocker.AsyncMock(return_value=False)

    mocker.patch("app.services.matching_service.presence_hub", mock_hub)
    mocker.patch("app.services.chat_service.presence_hub", mock_hub)
    mocker.patch("app.services.notification_service.presence_hub", mock_hub)

    return mock_hub


@pytest.fixture
def published(mock_presence_hub):
    """(event, recipients) pairs published with the given type."""
    def _published(event_type: str):
        return [
            (call.args[0], list(call.args[1]))
            for call in mock_presence_hub.publish.await_args_list
            if call.args[0].type == event_type
        ]
    return _published
