"""
Shared test fixtures
"""

import os

os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:test-token")

import pytest
import pytest_asyncio
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from database.models import Base
from services.database_service import DatabaseService


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with the ledger tables"""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def repository(session_factory):
    return DatabaseService(session_factory=session_factory)


@pytest.fixture
def fixed_now():
    """2025-08-29 11:30 in Jakarta"""
    return datetime(2025, 8, 29, 4, 30, tzinfo=timezone.utc)
