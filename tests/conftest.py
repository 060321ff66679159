"""
Pytest configuration and fixtures for arena tests.
"""

import random
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from arena.db.models import Base, PositionDB, TraderDB
from arena.models.market import MarketData, MarketQuote


# Use an in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a test database engine shared by every session of one test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory configured like the application's."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


async def _create_trader(
    session: AsyncSession,
    name: str = "Test Trader",
    balance: float = 250.0,
    model_name: str = "openai/gpt-4-turbo",
    risk_tolerance: str = "moderate",
) -> TraderDB:
    trader = TraderDB(
        name=name,
        model_name=model_name,
        personality="A careful test trader.",
        risk_tolerance=risk_tolerance,
        initial_balance=250.0,
        current_balance=balance,
        total_trades=0,
        profit_loss_percentage=0.0,
    )
    session.add(trader)
    await session.commit()
    await session.refresh(trader)
    return trader


async def _create_position(
    session: AsyncSession,
    trader: TraderDB,
    asset: str,
    quantity: float,
    average_buy_price: float,
) -> PositionDB:
    position = PositionDB(
        trader_id=trader.id,
        asset=asset,
        quantity=quantity,
        average_buy_price=average_buy_price,
    )
    session.add(position)
    await session.commit()
    await session.refresh(position)
    return position


@pytest_asyncio.fixture
async def test_trader(db_session: AsyncSession) -> TraderDB:
    """Active trader with the default $250 balance."""
    return await _create_trader(db_session)


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for reproducible slippage and panic draws."""
    return random.Random(42)


@pytest.fixture
def market() -> MarketData:
    """Small market snapshot."""
    return {
        "BTC": MarketQuote(price=100.0, change_24h=2.5, volume_24h=25_000_000_000),
        "ETH": MarketQuote(price=20.0, change_24h=-1.0, volume_24h=12_000_000_000),
        "SOL": MarketQuote(price=5.0, change_24h=0.5, volume_24h=2_500_000_000),
    }


@pytest.fixture
def mock_redis():
    """In-memory stand-in for the SET NX / GET / DEL calls of the cycle lock."""
    store: dict[str, str] = {}
    redis = AsyncMock()

    async def _set(key, value, nx=False, ex=None):
        if nx and key in store:
            return None
        store[key] = value
        return True

    async def _get(key):
        return store.get(key)

    async def _delete(key):
        return 1 if store.pop(key, None) is not None else 0

    redis.set.side_effect = _set
    redis.get.side_effect = _get
    redis.delete.side_effect = _delete
    redis.store = store
    return redis


@pytest.fixture
def trader_factory(db_session: AsyncSession):
    """Create committed traders: await trader_factory(name=..., balance=...)."""

    async def _make(**kwargs) -> TraderDB:
        return await _create_trader(db_session, **kwargs)

    return _make


@pytest.fixture
def position_factory(db_session: AsyncSession):
    """Create committed positions: await position_factory(trader, "BTC", 1.0, 100.0)."""

    async def _make(trader: TraderDB, asset: str, quantity: float, average_buy_price: float) -> PositionDB:
        return await _create_position(db_session, trader, asset, quantity, average_buy_price)

    return _make
