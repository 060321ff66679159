"""Trader repository for database operations

Read access to traders, their open positions and their trade log.
Ledger mutations live in LedgerService and LeaderboardService.
"""

import uuid
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import TRADER_ACTIVE, PositionDB, TradeDB, TraderDB


class TraderRepository:
    """Repository for Trader CRUD operations"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        name: str,
        model_name: str,
        starting_balance: float,
        personality: str = "",
        risk_tolerance: str = "moderate",
    ) -> TraderDB:
        """Create a new active trader with an untouched balance."""
        trader = TraderDB(
            name=name,
            model_name=model_name,
            personality=personality,
            risk_tolerance=risk_tolerance,
            initial_balance=starting_balance,
            current_balance=starting_balance,
            total_trades=0,
            profit_loss_percentage=0.0,
            status=TRADER_ACTIVE,
        )
        self.session.add(trader)
        await self.session.flush()
        await self.session.refresh(trader)
        return trader

    async def get_by_id(self, trader_id: uuid.UUID) -> Optional[TraderDB]:
        result = await self.session.execute(
            select(TraderDB).where(TraderDB.id == trader_id)
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Optional[TraderDB]:
        result = await self.session.execute(
            select(TraderDB).where(TraderDB.name == name)
        )
        return result.scalar_one_or_none()

    async def get_active(self) -> list[TraderDB]:
        """Active traders in a stable order (creation time, then id)."""
        result = await self.session.execute(
            select(TraderDB)
            .where(TraderDB.status == TRADER_ACTIVE)
            .order_by(TraderDB.created_at, TraderDB.id)
        )
        return list(result.scalars().all())

    async def get_all(self) -> list[TraderDB]:
        result = await self.session.execute(
            select(TraderDB).order_by(TraderDB.created_at, TraderDB.id)
        )
        return list(result.scalars().all())

    async def get_positions(self, trader_id: uuid.UUID) -> list[PositionDB]:
        """Open positions of a trader ordered by asset symbol."""
        result = await self.session.execute(
            select(PositionDB)
            .where(PositionDB.trader_id == trader_id)
            .order_by(PositionDB.asset)
        )
        return list(result.scalars().all())

    async def get_position(
        self, trader_id: uuid.UUID, asset: str
    ) -> Optional[PositionDB]:
        result = await self.session.execute(
            select(PositionDB).where(
                PositionDB.trader_id == trader_id,
                PositionDB.asset == asset,
            )
        )
        return result.scalar_one_or_none()

    async def delete_positions(self, trader_id: uuid.UUID) -> int:
        """Delete every open position of a trader. Returns rows removed."""
        result = await self.session.execute(
            delete(PositionDB).where(PositionDB.trader_id == trader_id)
        )
        return result.rowcount or 0

    async def get_trades(
        self,
        trader_id: uuid.UUID,
        limit: int = 50,
    ) -> list[TradeDB]:
        """Most recent trades of a trader, newest first."""
        result = await self.session.execute(
            select(TradeDB)
            .where(TradeDB.trader_id == trader_id)
            .order_by(TradeDB.timestamp.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
