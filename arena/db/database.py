"""
Database engine and sessions.

One async engine per process (asyncpg in deployment). Sessions never
expire on commit: the trade cycle keeps reading trader rows after its
per-trader commit, and lazy refreshes are not available under asyncio.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..core.config import get_settings
from .models import Base

settings = get_settings()

engine = create_async_engine(
    str(settings.database_url),
    echo=settings.db_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_pool_max_overflow,
    pool_timeout=settings.db_pool_timeout,
    pool_recycle=settings.db_pool_recycle,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def unit_of_work() -> AsyncGenerator[AsyncSession, None]:
    """
    Session that commits on success and rolls back on any error.

    Usage:
        async with unit_of_work() as session:
            await seed_traders(session)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one unit of work per request."""
    async with unit_of_work() as session:
        yield session


async def init_db() -> None:
    """
    Create missing tables.

    Development only; deployments run `alembic upgrade head`.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose the connection pool"""
    await engine.dispose()
