"""Async engine and session factory. Repositories issue raw text() SQL; there
are no ORM-mapped classes.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings

engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@asynccontextmanager
async def open_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an AsyncSession for one logical request, auto-closed on exit."""
    async with async_session_factory() as session:
        yield session
