"""Shared test configuration.

Settings are read from the environment when opencode_bridge.config is first
imported, so anything that could leak in from the developer's shell is pinned
here before any test module imports the package.
"""

import os

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["HISTORY_LIMIT"] = "50"

from opencode_bridge.db.models import Base  # noqa: E402


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'conversations.db'}"


@pytest_asyncio.fixture
async def session_factory(sqlite_url):
    """Session factory bound to a fresh on-disk SQLite database with all tables."""
    engine = create_async_engine(sqlite_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    await engine.dispose()
