"""Async SQLAlchemy plumbing for the marketplace state store.

The store holds one engine snapshot (see mp_marketplace.infrastructure). The
default driver is aiosqlite; any async SQLAlchemy URL works.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    """Declarative base for the state tables."""


def _connect_args(url: str) -> dict[str, object]:
    # aiosqlite runs the connection in a worker thread
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    connect_args=_connect_args(settings.DATABASE_URL),
)

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(bind: AsyncEngine) -> None:
    """Create missing state tables. No migrations: every save rewrites the snapshot."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; routes commit through the marketplace service."""
    async with async_session_factory() as session:
        yield session
