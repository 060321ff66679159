"""Leaderboard and trader history (read-only)"""

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.errors import TraderNotFoundError, app_error_to_http
from ...db.database import get_db
from ...db.repositories.trader import TraderRepository
from ...models.cycle import LeaderboardEntry
from ...services.leaderboard_service import LeaderboardService

router = APIRouter(tags=["Leaderboard"])

DbDep = Annotated[AsyncSession, Depends(get_db)]


class PositionResponse(BaseModel):
    asset: str
    quantity: float
    average_buy_price: float


class TradeResponse(BaseModel):
    id: uuid.UUID
    asset: str
    action: str
    amount: float
    price: float
    slippage: float
    transaction_hash: str
    reasoning: str
    timestamp: datetime


class TraderDetailResponse(BaseModel):
    id: uuid.UUID
    name: str
    model_name: str
    personality: str
    status: str
    initial_balance: float
    current_balance: float
    profit_loss_percentage: float
    total_trades: int
    positions: list[PositionResponse]
    recent_trades: list[TradeResponse]


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def get_leaderboard(db: DbDep) -> list[LeaderboardEntry]:
    """All traders ranked by portfolio value as of the last cycle."""
    return await LeaderboardService(db).get_standings()


@router.get("/traders/{trader_id}", response_model=TraderDetailResponse)
async def get_trader(
    trader_id: uuid.UUID,
    db: DbDep,
    limit: int = Query(default=20, ge=1, le=200),
) -> TraderDetailResponse:
    repo = TraderRepository(db)
    trader = await repo.get_by_id(trader_id)
    if trader is None:
        raise app_error_to_http(TraderNotFoundError(trader_id))

    positions = await repo.get_positions(trader.id)
    trades = await repo.get_trades(trader.id, limit=limit)
    return TraderDetailResponse(
        id=trader.id,
        name=trader.name,
        model_name=trader.model_name,
        personality=trader.personality,
        status=trader.status,
        initial_balance=trader.initial_balance,
        current_balance=trader.current_balance,
        profit_loss_percentage=trader.profit_loss_percentage,
        total_trades=trader.total_trades,
        positions=[
            PositionResponse(
                asset=p.asset,
                quantity=p.quantity,
                average_buy_price=p.average_buy_price,
            )
            for p in positions
        ],
        recent_trades=[
            TradeResponse(
                id=t.id,
                asset=t.asset,
                action=t.action,
                amount=t.amount,
                price=t.price,
                slippage=t.slippage,
                transaction_hash=t.transaction_hash,
                reasoning=t.reasoning,
                timestamp=t.timestamp,
            )
            for t in trades
        ],
    )
