"""Async SQLAlchemy engine, session factory and migrations for the conversation store.

Uses aiosqlite as the driver (sqlite+aiosqlite:// connection strings).
expire_on_commit=False prevents lazy-load errors after a commit closes the session.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from alembic import command as alembic_command
from alembic.config import Config as AlembicConfig
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

logger = logging.getLogger(__name__)

# Module-level engine and session factory, initialized once at startup.
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def initialize_engine(database_url: str) -> async_sessionmaker[AsyncSession]:
    """Create the async engine and session factory from a connection URL."""
    global _engine, _session_factory

    _engine = create_async_engine(database_url, echo=False)
    _session_factory = async_sessionmaker(
        bind=_engine,
        expire_on_commit=False,
        class_=AsyncSession,
    )
    logger.info("Conversation store engine initialized")
    return _session_factory


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Engine not initialized. Call initialize_engine() first.")
    return _session_factory


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Async context manager yielding a database session with automatic rollback."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
        except BaseException:
            await session.rollback()
            raise


async def dispose_engine() -> None:
    """Close all pooled connections. Called during shutdown."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def run_migrations(database_url: str) -> None:
    """Apply any pending Alembic migrations (upgrade to head).

    The migration environment calls asyncio.run(), so from async code run
    this in a thread: `await asyncio.to_thread(run_migrations, url)`.
    """
    migrations_dir = Path(__file__).parent / "migrations"
    alembic_cfg = AlembicConfig()
    alembic_cfg.set_main_option("script_location", str(migrations_dir))
    # ConfigParser interpolation treats "%" specially.
    alembic_cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    alembic_command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations applied successfully")
