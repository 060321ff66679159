"""Trade cycle result models"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .market import MarketQuote


class OutcomeStatus(str, Enum):
    """What happened to one trader during a cycle"""
    SETTLED = "settled"    # Trade row written (including holds)
    SKIPPED = "skipped"    # Rejected before settlement, nothing mutated
    FAILED = "failed"      # Unexpected error, trader's changes rolled back
    DEFERRED = "deferred"  # Cycle deadline reached before this trader


class TraderOutcome(BaseModel):
    """Per-trader entry of the cycle summary"""
    trader_id: uuid.UUID
    trader: str
    status: OutcomeStatus
    action: Optional[str] = None
    asset: Optional[str] = None
    amount: Optional[float] = None
    price: Optional[float] = None
    trade_id: Optional[uuid.UUID] = None
    reason: Optional[str] = None
    fallback: bool = False
    panic_sell: bool = False

    @property
    def success(self) -> bool:
        return self.status == OutcomeStatus.SETTLED


class CycleSummary(BaseModel):
    """Result returned by one trade cycle"""
    success: bool = True
    status: str = "completed"  # completed | idle
    message: Optional[str] = None
    timestamp: datetime
    duration_ms: int = 0
    market_data: dict[str, MarketQuote] = Field(default_factory=dict)
    used_fallback_prices: bool = False
    results: list[TraderOutcome] = Field(default_factory=list)
    leaderboard_updated: bool = False
    liquidated: list[str] = Field(default_factory=list)

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for r in self.results if r.status == status)


class LeaderboardEntry(BaseModel):
    """One row of the ranked standings"""
    rank: int
    trader_id: uuid.UUID
    name: str
    model_name: str
    status: str
    initial_balance: float
    current_balance: float
    portfolio_value: float
    profit_loss_percentage: float
    total_trades: int
