"""
Pytest configuration for SiteLedger backend tests.

Every test gets a fresh SQLite database (foreign keys enforced), an HTTP
client bound to the app with the database and bootstrap dependencies
overridden, and recorded instead of queued emails.
"""

import os

os.environ.setdefault("IDENTITY_TOKEN_KEY", "test-identity-token-key-0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_bootstrap_service
from app.core.locks import LocalKeyedLock
from app.main import app
from app.models import Base
from app.services.bootstrap_service import BootstrapService


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'siteledger.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def bootstrap_locks() -> LocalKeyedLock:
    return LocalKeyedLock()


@pytest.fixture
def bootstrap(session_factory, bootstrap_locks) -> BootstrapService:
    return BootstrapService(session_factory, bootstrap_locks)


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest.fixture
async def client(session_factory, bootstrap):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_bootstrap_service] = lambda: bootstrap

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Emails
# ---------------------------------------------------------------------------

class RecordingTask:
    """Stands in for a Celery task; remembers every .delay() call."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    def delay(self, *args: Any, **kwargs: Any) -> None:
        self.calls.append(kwargs)


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch) -> dict[str, RecordingTask]:
    tasks = {
        "send_invitation_email": RecordingTask(),
        "send_contact_invite_email": RecordingTask(),
    }
    for name, task in tasks.items():
        monkeypatch.setattr(f"app.workers.email_tasks.{name}", task)
    return tasks


# ---------------------------------------------------------------------------
# Identity tokens
# ---------------------------------------------------------------------------

def make_token(
    external_id: str,
    email: str,
    first_name: str | None = "Test",
    last_name: str | None = None,
    expires_in: timedelta = timedelta(minutes=5),
    key: str | None = None,
) -> str:
    """Session token as the identity provider would issue it."""
    claims = {
        "sub": external_id,
        "email": email,
        "first_name": first_name,
        "last_name": last_name,
        "exp": datetime.now(UTC) + expires_in,
    }
    return jwt.encode(
        claims,
        key or settings.IDENTITY_TOKEN_KEY,
        algorithm=settings.IDENTITY_TOKEN_ALGORITHM,
    )


def auth(external_id: str, email: str, **kwargs: Any) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(external_id, email, **kwargs)}"}
