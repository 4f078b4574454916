"""
Database engine and session management.

Flow:
  1. The caller opens a unit of work with ``session_scope()``.
  2. The session runs inside one transaction (``session.begin()``).
  3. On normal exit the transaction commits; on any exception it rolls
     back, so a failed upload never leaves a partial document behind.

The engine is created lazily from settings on first use so importing this
module never opens a connection.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from docintel.core.config import settings
from docintel.models.documents import Base

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    options: dict = {"echo": settings.db_echo_sql}
    if not settings.database_url.startswith("sqlite"):
        options.update(
            pool_pre_ping=True,     # detect stale connections before use
            pool_recycle=3600,      # recycle connections every hour
        )
    return create_async_engine(settings.database_url, **options)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps ORM objects usable after commit
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# ---------------------------------------------------------------------------
# Unit of work
# ---------------------------------------------------------------------------

@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a transactional session.

    Usage:
        async with session_scope() as session:
            service = DocumentService(session, identity, generator, embedder)
            await service.upload(name, data)
    """
    factory = factory or make_session_factory(get_engine())
    async with factory() as session:
        async with session.begin():
            yield session
            # Transaction commits automatically on context exit (begin() block)


async def init_models(engine: AsyncEngine | None = None) -> None:
    """Create tables that do not exist yet (dev / tests; prod uses migrations)."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured | url=%s", engine.url.render_as_string(hide_password=True))


# ---------------------------------------------------------------------------
# Health check helper
# ---------------------------------------------------------------------------

async def check_db_health(engine: AsyncEngine | None = None) -> dict:
    """Ping the database."""
    engine = engine or get_engine()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as exc:
        logger.error("DB health check failed: %s", exc)
        return {"status": "error", "detail": str(exc)}
