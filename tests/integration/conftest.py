"""Integration-test fixtures.

Each test gets a fresh in-memory SQLite database (StaticPool keeps the single
connection alive across sessions) and a fresh engine wired into the app via
dependency overrides. Block time is a settable clock instead of the wall clock.
"""

from collections.abc import AsyncGenerator, Callable

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.main import app
from src.mp_collection.infrastructure.in_memory import InMemoryContractDirectory
from src.mp_common.database import create_tables, get_db_session
from src.mp_gateway.auth.dependencies import get_block_time
from src.mp_matching.application.service import get_contracts, get_marketplace
from src.mp_matching.engine.engine import MatchingEngine
from tests.constants import Clock


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(eng)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def clock() -> Clock:
    return Clock()


def _override_db_and_clock(
    session_factory: async_sessionmaker[AsyncSession], clock: Clock
) -> dict[Callable, Callable]:
    async def _session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    async def _now() -> int:
        return clock.now

    return {get_db_session: _session, get_block_time: _now}


@pytest_asyncio.fixture
async def client(
    market: MatchingEngine,
    contracts: InMemoryContractDirectory,
    session_factory: async_sessionmaker[AsyncSession],
    clock: Clock,
) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides.update(_override_db_and_clock(session_factory, clock))
    app.dependency_overrides[get_marketplace] = lambda: market
    app.dependency_overrides[get_contracts] = lambda: contracts
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def live_client(
    session_factory: async_sessionmaker[AsyncSession], clock: Clock
) -> AsyncGenerator[AsyncClient, None]:
    """The app with its own engine and collections; only storage and time are swapped."""
    app.dependency_overrides.update(_override_db_and_clock(session_factory, clock))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
