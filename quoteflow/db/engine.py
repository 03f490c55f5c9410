"""Async database engine, session factory, and lifespan management.

Uses SQLAlchemy 2.0 async with asyncpg driver for PostgreSQL.
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncGenerator, Awaitable, Callable

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from quoteflow.config import settings

# ── Async PostgreSQL engine ──────────────────────────────────────────

engine: AsyncEngine = create_async_engine(
    settings.db.database_url,
    echo=settings.log_level == "DEBUG",
    pool_size=settings.db.pool_size,
    max_overflow=20,
    pool_pre_ping=True,
    pool_recycle=3600,
)

# ── Session factory ──────────────────────────────────────────────────

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# Session.info key holding callbacks to run once the request transaction commits.
AFTER_COMMIT_KEY = "after_commit"


def on_commit(session: AsyncSession, callback: Callable[[], Awaitable[None]]) -> None:
    """Run ``callback`` after ``get_session`` commits this session; dropped on rollback."""
    session.info.setdefault(AFTER_COMMIT_KEY, []).append(callback)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for FastAPI: yields an async DB session.

    Commits when the request handler returns, rolls back if it raises.
    Callbacks registered with ``on_commit`` run only after a successful commit.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        for callback in session.info.pop(AFTER_COMMIT_KEY, []):
            await callback()


# ── Lifespan helpers ─────────────────────────────────────────────────


async def init_db() -> None:
    """Verify connectivity; in development also create missing tables.

    In production, tables are created via Alembic migrations.
    """
    async with engine.begin() as conn:
        # Import here to ensure all models are registered with Base.metadata
        from quoteflow.models import Base

        if not settings.is_production:
            await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose the connection pool. Called during FastAPI lifespan shutdown."""
    await engine.dispose()


@contextlib.asynccontextmanager
async def db_lifespan() -> AsyncGenerator[None, None]:
    """Context manager for database lifecycle.

    Usage in FastAPI lifespan:
        @asynccontextmanager
        async def lifespan(app: FastAPI):
            async with db_lifespan():
                yield
    """
    await init_db()
    try:
        yield
    finally:
        await close_db()
