"""Database-backed fixtures.

Each test gets its own file-backed SQLite database so that separate
sessions (one per representative during generation) see each other's
commits.
"""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from commission_ledger.api.app import create_app
from commission_ledger.database import create_schema, get_engine, make_session_factory
from commission_ledger.ledger import CommissionLedger


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine with the schema applied."""
    engine = get_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session for direct reads and setup writes."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def ledger(session_factory, directory, statistics) -> CommissionLedger:
    return CommissionLedger(session_factory, directory, statistics, max_retries=1)


@pytest.fixture
async def client(ledger) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an app wired to the test ledger."""
    app = create_app(ledger)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
