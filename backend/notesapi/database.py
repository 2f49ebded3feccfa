"""
Notes API — Relational Database Session Management
===================================================

What:  Async SQLAlchemy engine, session factory, and session scope.
Why:   Centralizes all relational connection logic in one place.
How:   Creates an async engine with connection pooling and a session scope
       that commits on success and rolls back on error.
Who:   Used by the relational repositories via FastAPI dependencies.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling Strategy:
    pool_size=20:     Persistent connections for normal load
    max_overflow=10:  Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:    Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour

    SQLite URLs (local development and tests) skip the pool arguments since
    the SQLite dialects manage their own pools. Every SQLite connection
    switches on foreign key enforcement (PRAGMA foreign_keys=ON), which
    SQLite leaves off by default, and overrides the built-in lower(), which
    only folds ASCII letters, so text search is case-insensitive for all of
    Unicode as on PostgreSQL.

JSON columns:
    Values are serialized with ensure_ascii=False so non-ASCII text (tags
    like "café") is stored as written and substring search can match it.
"""

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from notesapi.config import settings


def json_serializer(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _unicode_lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    """Enforce foreign keys and replace the ASCII-only lower() with str.lower."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    dbapi_connection.create_function("lower", 1, _unicode_lower)


def build_engine(url: str) -> AsyncEngine:
    """Create an async engine with pool settings appropriate for the URL's dialect."""
    kwargs: Dict[str, Any] = {
        "echo": settings.log_level == "DEBUG",
        "json_serializer": json_serializer,
    }
    if not url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    new_engine = create_async_engine(url, **kwargs)
    if url.startswith("sqlite"):
        event.listen(new_engine.sync_engine, "connect", configure_sqlite_connection)
    return new_engine


# ── Engine Configuration ──────────────────────────────────────────────────
engine = build_engine(settings.database_url)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: Prevents lazy-loading issues after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object that Alembic reads for migrations.
    """
    pass


# ── Session Scope ─────────────────────────────────────────────────────────
@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """
    Provide a transactional session for one unit of work.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the caller (repositories flush their writes)
        3. On success: commits the transaction
        4. On error: rolls back and re-raises
        5. Always: closes the session (returns connection to pool)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_tables() -> None:
    """
    What:  Creates missing tables directly from the ORM metadata.
    When:  Startup on SQLite deployments, where Alembic is usually not run.
    """
    # Registers the models on Base.metadata
    from notesapi.models import note, user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
