"""
Notes API — Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (SQLite storage, repositories,
       users, API client) so each test file only states its scenario.

Fixture Hierarchy (all function-scoped, fresh for each test):
    engine            in-memory SQLite (aiosqlite) with the full schema
    ├── session       one AsyncSession, as a request would have
    │   ├── note_repo / user_repo   relational repositories
    │   └── owner / other_owner     two registered user ids
    └── test_client   HTTPX AsyncClient whose repositories use `engine`
    mock_mongo_db     MagicMock database with `notes` / `users` collections
    fake_embedder     deterministic EmbeddingService (no network)
"""

import os

# Override settings for testing BEFORE any notesapi imports
os.environ["STORAGE_BACKEND"] = "relational"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["GEMINI_API_KEY"] = ""
os.environ["EMBED_ON_WRITE"] = "false"
os.environ["ENABLE_UNSCOPED_ROUTES"] = "true"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import List  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from notesapi.database import Base, configure_sqlite_connection, json_serializer  # noqa: E402
from notesapi.models import note, user  # noqa: E402,F401
from notesapi.repositories.sql import SqlNoteRepository, SqlUserRepository  # noqa: E402
from notesapi.services.embedding_base import EmbeddingService  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Relational storage
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    """
    In-memory SQLite shared by every session of one test.

    StaticPool keeps the single connection (and so the database) alive;
    foreign keys and JSON serialization match the production engine.
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        json_serializer=json_serializer,
    )
    event.listen(test_engine.sync_engine, "connect", configure_sqlite_connection)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def note_repo(session):
    return SqlNoteRepository(session)


@pytest.fixture
def user_repo(session):
    return SqlUserRepository(session)


@pytest_asyncio.fixture
async def owner(user_repo) -> str:
    """Id of a registered user."""
    record = await user_repo.insert("Ada Lovelace", "ada@example.com", "not-a-real-hash")
    return record.id


@pytest_asyncio.fixture
async def other_owner(user_repo) -> str:
    record = await user_repo.insert("Grace Hopper", "grace@example.com", "not-a-real-hash")
    return record.id


# ══════════════════════════════════════════════════════════════════════════
# Document storage
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_mongo_db():
    """
    A MagicMock AsyncDatabase: db["notes"] and db["users"] are distinct
    MagicMock collections whose async methods tests replace with AsyncMocks.
    """
    collections = {"notes": MagicMock(name="notes"), "users": MagicMock(name="users")}
    db = MagicMock(name="db")
    db.__getitem__.side_effect = lambda name: collections[name]
    return db


# ══════════════════════════════════════════════════════════════════════════
# Embeddings
# ══════════════════════════════════════════════════════════════════════════

class FakeEmbedder(EmbeddingService):
    """
    Two-dimensional vectors: texts mentioning cats point one way,
    everything else points the other.
    """

    def __init__(self, enabled: bool = True):
        self._enabled = enabled
        self.calls: List[str] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        return [1.0, 0.0] if "cat" in text.lower() else [0.0, 1.0]


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    The repository dependencies are overridden to use the test engine,
    with the same commit-on-success / rollback-on-error unit of work as
    `database.session_scope`.
    """
    from notesapi.dependencies import get_note_repository, get_user_repository
    from notesapi.main import app

    async def override_note_repository():
        async with session_factory() as s:
            try:
                yield SqlNoteRepository(s)
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    async def override_user_repository():
        async with session_factory() as s:
            try:
                yield SqlUserRepository(s)
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_note_repository] = override_note_repository
    app.dependency_overrides[get_user_repository] = override_user_repository

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
