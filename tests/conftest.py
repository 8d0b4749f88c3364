"""
Pytest configuration and fixtures for testing.

This module provides:
- A temporary SQLite database shared by seeding helpers and the app
- Test client configuration with the session dependency overridden
- Mocks for the Redis token blocklist
- User and stream factories plus auth header helpers
"""

import os
import tempfile
from datetime import datetime

_TEST_DB_DIR = tempfile.mkdtemp(prefix="livestreams-tests-")
TEST_DB_PATH = os.path.join(_TEST_DB_DIR, "test.db")

# Settings are read at import time, so the environment must be ready first
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

from types import SimpleNamespace  # noqa: E402
from typing import AsyncGenerator, Callable, Dict, Generator, Optional  # noqa: E402
from unittest.mock import AsyncMock, patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine, select  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from helpers import make_access_token  # noqa: E402
from livestreams.core.security import get_password_hash  # noqa: E402
from livestreams.db.session import get_session  # noqa: E402
from livestreams.enums.streams import Visibility  # noqa: E402
from livestreams.main import app  # noqa: E402
from livestreams.models.streams import Stream  # noqa: E402
from livestreams.models.users import User  # noqa: E402

DEFAULT_PASSWORD = "SecurePassword123!"

# Plain sqlite for create_all and seeding, aiosqlite for the app.
# NullPool: every request may run on a different event loop.
sync_engine = create_engine(f"sqlite:///{TEST_DB_PATH}")
test_async_engine = create_async_engine(
    f"sqlite+aiosqlite:///{TEST_DB_PATH}", poolclass=NullPool
)
test_session_maker = async_sessionmaker(
    bind=test_async_engine, class_=AsyncSession, expire_on_commit=False
)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_database() -> Generator[None, None, None]:
    """Give every test empty tables."""
    SQLModel.metadata.drop_all(sync_engine)
    SQLModel.metadata.create_all(sync_engine)
    yield


@pytest.fixture
async def session() -> AsyncGenerator[AsyncSession, None]:
    """Async session for tests that call services or CRUD directly."""
    async with test_session_maker() as ses:
        yield ses


# ============================================================================
# Test Data Fixtures
# ============================================================================


@pytest.fixture
def test_user_data() -> Dict[str, str]:
    return {
        "name": "Test User",
        "email": "test@example.com",
        "password": DEFAULT_PASSWORD,
    }


@pytest.fixture
def user_factory() -> Callable[..., User]:
    def make_user(
        name: Optional[str] = "Alice",
        email: str = "alice@example.com",
        password: Optional[str] = DEFAULT_PASSWORD,
    ) -> User:
        with Session(sync_engine) as ses:
            user = User(
                name=name,
                email=email,
                password_hash=get_password_hash(password) if password else None,
            )
            ses.add(user)
            ses.commit()
            ses.refresh(user)
            return user

    return make_user


@pytest.fixture
def stream_factory() -> Callable[..., Stream]:
    def make_stream(
        owner: User,
        slug: str,
        title: Optional[str] = None,
        visibility: Visibility = Visibility.PUBLIC,
        is_live: bool = False,
        description: Optional[str] = None,
        updated_at: Optional[datetime] = None,
    ) -> Stream:
        extra = {"updated_at": updated_at} if updated_at else {}
        with Session(sync_engine) as ses:
            stream = Stream(
                user_id=owner.id,
                slug=slug,
                title=title or slug.replace("-", " ").title(),
                visibility=visibility,
                is_live=is_live,
                description=description,
                **extra,
            )
            ses.add(stream)
            ses.commit()
            ses.refresh(stream)
            return stream

    return make_stream


@pytest.fixture
def find_user() -> Callable[[str], Optional[User]]:
    def lookup(email: str) -> Optional[User]:
        with Session(sync_engine) as ses:
            return ses.exec(select(User).where(User.email == email)).first()

    return lookup


@pytest.fixture
def created_user(user_factory) -> User:
    return user_factory()


@pytest.fixture
def other_user(user_factory) -> User:
    return user_factory(name="Bob", email="bob@example.com")


@pytest.fixture
def access_token(created_user) -> str:
    return make_access_token(created_user)


# ============================================================================
# FastAPI Client Fixture
# ============================================================================


@pytest.fixture
def redis_mocks() -> Generator[SimpleNamespace, None, None]:
    """Patch the blocklist helpers where they are used."""
    with (
        patch(
            "livestreams.core.deps.token_in_blocklist", new_callable=AsyncMock
        ) as mock_token_check,
        patch(
            "livestreams.api.v1.https.auth.add_jti_to_blocklist",
            new_callable=AsyncMock,
        ) as mock_blocklist,
    ):
        mock_token_check.return_value = False  # Token not in blocklist
        mock_blocklist.return_value = None
        yield SimpleNamespace(
            token_in_blocklist=mock_token_check,
            add_jti_to_blocklist=mock_blocklist,
        )


@pytest.fixture
def client(redis_mocks) -> Generator[TestClient, None, None]:
    """
    Create a test client with mocked dependencies.

    The client is not entered as a context manager, so the lifespan (Redis
    ping) does not run.
    """

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        async with test_session_maker() as ses:
            yield ses

    app.dependency_overrides[get_session] = get_session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")
