"""Shared fixtures. Points the app at a throwaway SQLite file before anything imports it."""

import os
import tempfile
from collections.abc import AsyncGenerator

_db_dir = tempfile.mkdtemp(prefix="flashdeck-tests-")
os.environ["FLASHDECK_DATABASE_URL"] = f"sqlite+aiosqlite:///{_db_dir}/test.db"
os.environ["FLASHDECK_ANTHROPIC_API_KEY"] = ""
os.environ["FLASHDECK_STUDY_AUTO_ADVANCE_SECONDS"] = "0"

import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from backend.cache import view_cache  # noqa: E402
from backend.database import async_session, engine  # noqa: E402
from backend.models import Base  # noqa: E402
from backend.study.store import study_sessions  # noqa: E402


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """Fresh tables and a session for each test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    async with async_session() as session:
        yield session
    view_cache.clear()
    study_sessions.clear()
    await engine.dispose()