"""
Leaderboard Service - mark-to-market, P/L and liquidation.

refresh() walks every active trader once per cycle:
- portfolio value = cash + sum(quantity x price); an unpriced asset
  contributes 0
- profit_loss_percentage = (value - initial) / initial x 100
- value below the liquidation threshold: status liquidated, cash 0,
  every position deleted (terminal)

The pass only depends on stored state and the price set, so running it
twice with the same prices changes nothing the second time.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..db.models import TRADER_LIQUIDATED, PositionDB, TraderDB
from ..db.repositories.trader import TraderRepository
from ..models.cycle import LeaderboardEntry
from ..models.market import MarketData

logger = logging.getLogger(__name__)


def calculate_portfolio_value(
    balance: float,
    positions: Iterable[PositionDB],
    market: MarketData,
) -> float:
    """Cash plus positions marked at market; missing prices count as 0."""
    value = balance
    for position in positions:
        quote = market.get(position.asset)
        if quote is not None:
            value += position.quantity * quote.price
    return value


def calculate_pnl_percentage(portfolio_value: float, initial_balance: float) -> float:
    if initial_balance <= 0:
        return 0.0
    return (portfolio_value - initial_balance) / initial_balance * 100


@dataclass
class RefreshResult:
    """Summary of one leaderboard pass"""

    updated: int = 0
    liquidated: list[str] = field(default_factory=list)
    portfolio_values: dict[str, float] = field(default_factory=dict)


class LeaderboardService:
    """Recomputes standings and liquidates insolvent traders"""

    def __init__(
        self,
        db: AsyncSession,
        liquidation_threshold: Optional[float] = None,
    ):
        self.db = db
        self.repo = TraderRepository(db)
        self.liquidation_threshold = (
            liquidation_threshold
            if liquidation_threshold is not None
            else get_settings().liquidation_threshold
        )

    async def refresh(self, market: MarketData) -> RefreshResult:
        """
        Update P/L for every active trader and liquidate the insolvent.

        Flushes but does not commit; the caller owns the transaction.
        """
        result = RefreshResult()
        traders = await self.repo.get_active()

        for trader in traders:
            positions = await self.repo.get_positions(trader.id)
            value = calculate_portfolio_value(trader.current_balance, positions, market)
            trader.profit_loss_percentage = calculate_pnl_percentage(
                value, trader.initial_balance
            )
            result.portfolio_values[trader.name] = value
            result.updated += 1

            if value < self.liquidation_threshold:
                await self._liquidate(trader, value)
                result.liquidated.append(trader.name)

        await self.db.flush()
        logger.info(
            f"Leaderboard refreshed: {result.updated} traders, "
            f"{len(result.liquidated)} liquidated"
        )
        return result

    async def _liquidate(self, trader: TraderDB, portfolio_value: float) -> None:
        removed = await self.repo.delete_positions(trader.id)
        trader.status = TRADER_LIQUIDATED
        trader.current_balance = 0.0
        trader.liquidated_at = datetime.now(UTC)
        logger.warning(
            f"LIQUIDATED {trader.name}: portfolio value ${portfolio_value:.2f} "
            f"below ${self.liquidation_threshold:.2f}, {removed} positions cleared"
        )

    async def get_standings(self, market: Optional[MarketData] = None) -> list[LeaderboardEntry]:
        """
        All traders ranked by portfolio value.

        Without a market snapshot the value is derived from the persisted
        P/L percentage, i.e. as of the last refresh. Liquidated traders hold
        nothing, so they are worth 0 either way.
        """
        rows = []
        for trader in await self.repo.get_all():
            if not trader.is_active:
                value = 0.0
                pnl = calculate_pnl_percentage(value, trader.initial_balance)
            elif market is not None:
                positions = await self.repo.get_positions(trader.id)
                value = calculate_portfolio_value(trader.current_balance, positions, market)
                pnl = calculate_pnl_percentage(value, trader.initial_balance)
            else:
                pnl = trader.profit_loss_percentage
                value = trader.initial_balance * (1 + pnl / 100)
            rows.append((trader, value, pnl))

        # Active traders first, then by value
        rows.sort(key=lambda r: (not r[0].is_active, -r[1], r[0].name))
        return [
            LeaderboardEntry(
                rank=i + 1,
                trader_id=trader.id,
                name=trader.name,
                model_name=trader.model_name,
                status=trader.status,
                initial_balance=trader.initial_balance,
                current_balance=trader.current_balance,
                portfolio_value=round(value, 2),
                profit_loss_percentage=round(pnl, 4),
                total_trades=trader.total_trades,
            )
            for i, (trader, value, pnl) in enumerate(rows)
        ]
