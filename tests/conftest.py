import os
import uuid
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncEngine

from rizon.core.config import settings
from rizon.core.database import (
    SessionFactory,
    create_engine,
    create_session_factory,
)
from rizon.core.email import ResendEmailSender
from rizon.models import Base, User

# Security: This is a test-only secret. Production uses a real secret from env.
TEST_AUTH_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow

TEST_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
TEST_USER_EMAIL = "test@example.com"


class RecordingNotifier:
    """Notifier double that keeps every published message."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    async def publish(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture(autouse=True)
def test_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Deterministic settings for every test.

    Per-IP throttling and the purge loop are off; the signing secret is
    the test secret; links are built from the request host.
    """
    monkeypatch.setattr(settings, "auth_secret", SecretStr(TEST_AUTH_SECRET))
    monkeypatch.setattr(settings, "rate_limit_enabled", False)
    monkeypatch.setattr(settings, "token_purge_enabled", False)
    monkeypatch.setattr(settings, "public_base_url", "")
    monkeypatch.setattr(settings, "resend_api_key", SecretStr(""))
    monkeypatch.setattr(settings, "slack_webhook_url", SecretStr(""))
    monkeypatch.setattr(settings, "environment", "test")


@pytest.fixture
def database_url(tmp_path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Per-test database URL.

    TEST_DATABASE_URL selects a real server (e.g. PostgreSQL); otherwise
    a fresh SQLite file under the test's tmp_path.
    """
    url = os.environ.get("TEST_DATABASE_URL") or (
        f"sqlite+aiosqlite:///{tmp_path / 'rizon_test.db'}"
    )
    monkeypatch.setattr(settings, "database_dsn", url)
    return url


@pytest_asyncio.fixture
async def db_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:  # noqa: ARG001
    """Create test database engine with a fresh schema."""
    engine = create_engine(settings)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> SessionFactory:
    """Session factory bound to the test engine."""
    return create_session_factory(db_engine)


@pytest_asyncio.fixture
async def test_user(session_factory: SessionFactory) -> User:
    """Create a test user in the database."""
    async with session_factory() as db:
        user = User(id=TEST_USER_ID, email=TEST_USER_EMAIL)
        db.add(user)
        await db.commit()
        await db.refresh(user)
    return user


# =============================================================================
# API Test Fixtures
# =============================================================================


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Feedback notification sink that records messages."""
    return RecordingNotifier()


@pytest.fixture
def email_sender() -> AsyncMock:
    """Email sender double; send_login_link is an AsyncMock."""
    return AsyncMock(spec=ResendEmailSender)


@pytest_asyncio.fixture
async def app(
    db_engine: AsyncEngine,  # noqa: ARG001 - ensures schema exists
    notifier: RecordingNotifier,
    email_sender: AsyncMock,
) -> AsyncGenerator[FastAPI, None]:
    """Application wired to the test database and test doubles.

    ASGITransport does not run the lifespan, so the notification drain
    and engine dispose happen here.
    """
    from rizon.main import create_app

    application = create_app(notifier=notifier, email_sender=email_sender)
    yield application

    await application.state.services.dispatcher.aclose()
    await application.state.engine.dispose()


@pytest_asyncio.fixture
async def unauthenticated_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client without a bearer credential."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers(app: FastAPI, test_user: User) -> dict[str, str]:
    """Authorization header carrying a valid credential for test_user."""
    issued = app.state.services.session_issuer.issue_session(test_user)
    return {"Authorization": f"Bearer {issued.token}"}


@pytest_asyncio.fixture
async def client(
    app: FastAPI,
    auth_headers: dict[str, str],
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client authenticated as test_user."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers=auth_headers,
    ) as ac:
        yield ac
