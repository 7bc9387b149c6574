"""
SnipBin Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every app-level test builds its own application from explicit
       settings with an in-memory SQLite database (aiosqlite + StaticPool),
       so tests never touch a real server database and never share data.

Fixtures:
    settings          Settings with id_length=6 and two reserved ids
    app               application built from `settings`, tables created
    test_client       HTTPX AsyncClient talking to `app` over ASGITransport
    seed              coroutine inserting a document directly
    mock_db_session   AsyncMock standing in for AsyncSession
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timezone  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from snipbin.config import Settings  # noqa: E402
from snipbin.database import create_tables  # noqa: E402
from snipbin.main import create_app  # noqa: E402
from snipbin.models.document import Document  # noqa: E402

ANALYTICS = "<script data-test-analytics></script>"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite://",
        id_length=6,
        documents="about,faq",
        max_size=1000,
        analytics=ANALYTICS,
        ratelimiter="1000x60",
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def app(settings):
    application = create_app(settings)
    await create_tables(application.state.engine)
    yield application
    await application.state.engine.dispose()


@pytest_asyncio.fixture
async def test_client(app):
    """
    Async HTTP client routed straight into the ASGI app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def seed(app):
    """Returns `await seed(id, content)` for inserting documents directly."""

    async def _seed(document_id: str, content: str) -> Document:
        document = Document(
            id=document_id,
            content=content,
            created_at=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
            updated_at=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
        )
        async with app.state.session_factory() as session:
            session.add(document)
            await session.commit()
        return document

    return _seed


@pytest.fixture
def mock_db_session():
    """
    A mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = doc
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


def multipart_body(fields: dict, boundary: str = "snipbinboundary") -> tuple:
    """Encode `fields` as multipart/form-data; returns (body, content_type)."""
    lines = []
    for name, value in fields.items():
        lines.append(f"--{boundary}")
        lines.append(f'Content-Disposition: form-data; name="{name}"')
        lines.append("")
        lines.append(value)
    lines.append(f"--{boundary}--")
    lines.append("")
    body = "\r\n".join(lines).encode("utf-8")
    return body, f"multipart/form-data; boundary={boundary}"
