"""Shared fixtures.

Every test gets a fresh in-memory SQLite database (aiosqlite, StaticPool so
all sessions share the one connection), explicit Settings, and mock email
and WebAuthn collaborators.
"""

from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from taskboard_auth.core.config import Settings, load_settings
from taskboard_auth.core.passwords import hash_password
from taskboard_auth.models import Account, Base
from taskboard_auth.providers.email.mock_adapter import MockEmailSender
from taskboard_auth.providers.webauthn.mock_adapter import MockWebAuthnProvider
from taskboard_auth.repositories.account_repository import AccountRepository
from taskboard_auth.services.session_manager import SessionManager

# Security: This is a test-only secret. Production uses a real secret from env.
TEST_AUTH_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow

TEST_ORIGIN = "http://localhost:5173"
TEST_PASSWORD = "correct-horse-battery"  # nosec B105


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the developer's environment and .env file."""
    return load_settings(
        _env_file=None,
        environment="test",
        auth_secret=TEST_AUTH_SECRET,
        app_base_url=TEST_ORIGIN,
        database_url="sqlite+aiosqlite:///:memory:",
        auth_cookie_secure=False,
        google_client_id="test-client-id",
        google_client_secret="test-client-secret",  # nosec B106
        resend_api_key="",
        webauthn_rp_id="",
    )


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mailer() -> MockEmailSender:
    return MockEmailSender()


@pytest.fixture
def webauthn() -> MockWebAuthnProvider:
    return MockWebAuthnProvider()


@pytest.fixture
def session_manager(settings: Settings) -> SessionManager:
    return SessionManager(settings)


async def make_account(
    db: AsyncSession,
    email: str = "user@example.com",
    *,
    password: str | None = TEST_PASSWORD,
    verified: bool = True,
    google_id: str | None = None,
    provider: str = "password",
) -> Account:
    """Insert and commit an account for a test."""
    account = await AccountRepository.create(
        db,
        email=email,
        password_hash=hash_password(password) if password is not None else None,
        google_id=google_id,
        email_verified=verified,
        provider=provider,
    )
    await db.commit()
    return account


@pytest_asyncio.fixture
async def verified_account(db_session: AsyncSession) -> Account:
    """Verified password account ``user@example.com``."""
    return await make_account(db_session)


@pytest.fixture
def app(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    mailer: MockEmailSender,
    webauthn: MockWebAuthnProvider,
) -> Generator[FastAPI, None, None]:
    """Application wired to the test database and mock collaborators."""
    from taskboard_auth.core.database import get_db
    from taskboard_auth.main import create_app

    app = create_app(
        settings,
        email_sender=mailer,
        webauthn=webauthn,
        create_tables=False,
    )

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the test app (ASGI transport, no network)."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Origin": TEST_ORIGIN},
    ) as ac:
        yield ac
