"""
Ledger Service - settles one decision against one trader's book.

Branch semantics:
- hold: trade row with amount 0 and no slippage; balance, positions and
  the trade counter are untouched
- buy:  amount is cash to spend; execution price is pushed up by the
  slippage draw; the position cost basis is re-averaged
- sell: amount is asset quantity; execution price is pushed down by the
  slippage draw; the average price of the remaining lot is unchanged

A rejected decision (insufficient cash, missing or short position,
unusable price) mutates nothing and returns no trade.

Transactions: the service only flushes. The balance update, position
upsert and trade insert of one settlement belong to the caller's unit of
work, which commits them together or rolls them all back.
"""

import logging
import math
import random
import secrets
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..db.models import PositionDB, TradeDB, TraderDB
from ..db.repositories.trader import TraderRepository
from ..models.decision import TradeAction, TradingDecision

logger = logging.getLogger(__name__)


@dataclass
class SettlementResult:
    """Outcome of one settlement attempt"""

    trade: Optional[TradeDB] = None
    rejection_reason: Optional[str] = None

    @property
    def settled(self) -> bool:
        return self.trade is not None


def new_transaction_hash() -> str:
    """Opaque unique identifier shaped like an EVM transaction hash."""
    return "0x" + secrets.token_hex(32)


class LedgerService:
    """
    Applies validated decisions to the ledger.

    Usage::

        ledger = LedgerService(session, rng=random.Random(42))
        trade = await ledger.settle(trader, decision, current_price=100.0)
        await session.commit()
    """

    def __init__(
        self,
        db: AsyncSession,
        rng: Optional[random.Random] = None,
        slippage_min: Optional[float] = None,
        slippage_max: Optional[float] = None,
        position_epsilon: Optional[float] = None,
    ):
        """
        Args:
            db: Session owning the unit of work
            rng: Random source for slippage draws (seed it for reproducible runs)
            slippage_min: Lower bound of the slippage fraction
            slippage_max: Upper bound of the slippage fraction
            position_epsilon: Positions below this quantity are deleted on sell
        """
        settings = get_settings()
        self.db = db
        self.rng = rng or random.Random()
        self.slippage_min = slippage_min if slippage_min is not None else settings.slippage_min
        self.slippage_max = slippage_max if slippage_max is not None else settings.slippage_max
        self.position_epsilon = (
            position_epsilon if position_epsilon is not None else settings.position_epsilon
        )
        self.repo = TraderRepository(db)

    async def settle(
        self,
        trader: TraderDB,
        decision: TradingDecision,
        current_price: float,
    ) -> Optional[TradeDB]:
        """
        Settle a decision.

        Returns:
            The appended trade, or None if the decision was rejected
        """
        result = await self.attempt(trader, decision, current_price)
        return result.trade

    async def attempt(
        self,
        trader: TraderDB,
        decision: TradingDecision,
        current_price: float,
    ) -> SettlementResult:
        """Settle a decision and report why it was rejected, if it was."""
        if not trader.is_active:
            return self._reject(trader, decision, f"trader is {trader.status}")
        if not math.isfinite(current_price) or current_price <= 0:
            return self._reject(trader, decision, f"unusable price {current_price!r}")

        if decision.action == TradeAction.HOLD:
            return await self._settle_hold(trader, decision, current_price)
        if decision.action == TradeAction.BUY:
            return await self._settle_buy(trader, decision, current_price)
        return await self._settle_sell(trader, decision, current_price)

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    async def _settle_hold(
        self,
        trader: TraderDB,
        decision: TradingDecision,
        current_price: float,
    ) -> SettlementResult:
        trade = await self._append_trade(
            trader,
            decision,
            amount=0.0,
            price=current_price,
            slippage=0.0,
        )
        return SettlementResult(trade=trade)

    async def _settle_buy(
        self,
        trader: TraderDB,
        decision: TradingDecision,
        current_price: float,
    ) -> SettlementResult:
        cash = decision.amount
        if cash <= 0:
            return self._reject(trader, decision, "buy amount must be positive")
        if cash > trader.current_balance:
            return self._reject(
                trader,
                decision,
                f"insufficient cash: wants ${cash:.2f}, has ${trader.current_balance:.2f}",
            )

        execution_price = current_price * (1 + self._draw_slippage())
        quantity = cash / execution_price

        trader.current_balance -= cash
        trader.total_trades += 1

        position = await self.repo.get_position(trader.id, decision.asset)
        if position is None:
            position = PositionDB(
                trader_id=trader.id,
                asset=decision.asset,
                quantity=quantity,
                average_buy_price=execution_price,
            )
            self.db.add(position)
        else:
            total_quantity = position.quantity + quantity
            position.average_buy_price = (
                position.quantity * position.average_buy_price
                + quantity * execution_price
            ) / total_quantity
            position.quantity = total_quantity

        trade = await self._append_trade(
            trader,
            decision,
            amount=quantity,
            price=execution_price,
            slippage=execution_price - current_price,
        )
        return SettlementResult(trade=trade)

    async def _settle_sell(
        self,
        trader: TraderDB,
        decision: TradingDecision,
        current_price: float,
    ) -> SettlementResult:
        quantity = decision.amount
        if quantity <= 0:
            return self._reject(trader, decision, "sell amount must be positive")

        position = await self.repo.get_position(trader.id, decision.asset)
        if position is None:
            return self._reject(trader, decision, f"no {decision.asset} position")
        if position.quantity < quantity:
            return self._reject(
                trader,
                decision,
                f"insufficient {decision.asset}: wants {quantity}, holds {position.quantity}",
            )

        execution_price = current_price * (1 - self._draw_slippage())
        proceeds = quantity * execution_price

        trader.current_balance += proceeds
        trader.total_trades += 1

        remaining = position.quantity - quantity
        if remaining < self.position_epsilon:
            await self.db.delete(position)
        else:
            position.quantity = remaining

        trade = await self._append_trade(
            trader,
            decision,
            amount=quantity,
            price=execution_price,
            slippage=current_price - execution_price,
        )
        return SettlementResult(trade=trade)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _draw_slippage(self) -> float:
        return self.rng.uniform(self.slippage_min, self.slippage_max)

    async def _append_trade(
        self,
        trader: TraderDB,
        decision: TradingDecision,
        amount: float,
        price: float,
        slippage: float,
    ) -> TradeDB:
        trade = TradeDB(
            id=uuid.uuid4(),
            trader_id=trader.id,
            asset=decision.asset,
            action=decision.action.value,
            amount=amount,
            price=price,
            slippage=slippage,
            transaction_hash=new_transaction_hash(),
            reasoning=decision.reasoning,
            timestamp=datetime.now(UTC),
        )
        self.db.add(trade)
        await self.db.flush()

        logger.info(
            f"Settled {trader.name}: {decision.action.value} {amount:.6f} "
            f"{decision.asset} @ {price:.4f} (slippage {slippage:.4f}), "
            f"cash ${trader.current_balance:.2f}"
        )
        return trade

    def _reject(
        self,
        trader: TraderDB,
        decision: TradingDecision,
        reason: str,
    ) -> SettlementResult:
        logger.info(
            f"Rejected {trader.name} {decision.action.value} {decision.amount} "
            f"{decision.asset}: {reason}"
        )
        return SettlementResult(rejection_reason=reason)
