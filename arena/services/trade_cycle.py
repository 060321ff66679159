"""
Trade Cycle - the periodic decide -> settle -> rank pipeline.

Coordinates:
- One market snapshot per cycle (cache with fallback)
- Market snapshot history rows
- Sequential per-trader processing, each in its own session/transaction
- The panic-sell override applied to buy decisions
- A cycle deadline after which remaining traders are deferred
- One leaderboard refresh with the cycle's price set

Nothing that goes wrong for one trader stops the others or the
leaderboard pass; the cycle always returns a summary.
"""

import logging
import random
import time
import uuid
from datetime import UTC, datetime
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.config import get_settings
from ..db.models import PositionDB
from ..db.repositories.market_snapshot import MarketSnapshotRepository
from ..db.repositories.trader import TraderRepository
from ..models.cycle import CycleSummary, OutcomeStatus, TraderOutcome
from ..models.decision import TradeAction, TradingDecision
from ..models.market import MarketData
from ..monitoring.metrics import get_metrics_collector
from .ai.roster import get_model_by_identifier
from .decision_service import DecisionService
from .leaderboard_service import LeaderboardService, calculate_portfolio_value
from .ledger_service import LedgerService
from .market_data_cache import MarketDataCache, get_market_data_cache
from .prompt_builder import headline_for

logger = logging.getLogger(__name__)

PANIC_SELL_REASONING = "PANIC SELL! Market feels too risky right now!"


class TradeCycleOrchestrator:
    """
    Runs one trade cycle across all active traders.

    Lifecycle:
    1. Fetch prices (never fails, may be fallback)
    2. Record market snapshots
    3. For each active trader with a roster model: decide -> panic-sell override -> settle -> commit
    4. Refresh leaderboard and liquidate insolvent traders
    5. Return CycleSummary

    The caller must make sure cycles do not overlap (see workers/cycle_lock.py).
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        market_cache: Optional[MarketDataCache] = None,
        decision_service: Optional[DecisionService] = None,
        rng: Optional[random.Random] = None,
        panic_sell_probability: Optional[float] = None,
        deadline_seconds: Optional[float] = None,
        clock=time.monotonic,
    ):
        """
        Args:
            session_factory: Creates one session per unit of work
            market_cache: Price source for the cycle
            decision_service: Produces one decision per trader
            rng: Random source for panic sells and slippage
            panic_sell_probability: Chance a buy becomes a forced sell
            deadline_seconds: Traders not started within this many seconds are deferred
            clock: Monotonic time source
        """
        settings = get_settings()
        if session_factory is None:
            from ..db.database import AsyncSessionLocal

            session_factory = AsyncSessionLocal

        self.session_factory = session_factory
        self.market_cache = market_cache or get_market_data_cache()
        self.decision_service = decision_service or DecisionService()
        self.rng = rng or random.Random()
        self.panic_sell_probability = (
            panic_sell_probability
            if panic_sell_probability is not None
            else settings.panic_sell_probability
        )
        self.panic_sell_fraction = settings.panic_sell_fraction
        self.deadline_seconds = (
            deadline_seconds if deadline_seconds is not None else settings.cycle_deadline_seconds
        )
        self.snapshot_assets = settings.get_snapshot_assets()
        self.interval_minutes = settings.cycle_interval_minutes
        self._clock = clock

    async def run_cycle(self) -> CycleSummary:
        """Execute one full cycle and return its summary."""
        started = self._clock()
        now = datetime.now(UTC)
        metrics = get_metrics_collector()

        logger.info("Trade cycle starting")
        market = await self.market_cache.get_prices()
        used_fallback = self.market_cache.last_used_fallback
        summary = CycleSummary(
            timestamp=now,
            market_data=market,
            used_fallback_prices=used_fallback,
        )

        await self._record_snapshots(market, now)

        async with self.session_factory() as session:
            traders = await TraderRepository(session).get_active()
            roster = [(t.id, t.name) for t in traders]

        if not roster:
            logger.info("No active traders, nothing to do")
            summary.status = "idle"
            summary.message = "No active traders"
            summary.duration_ms = int((self._clock() - started) * 1000)
            metrics.track_cycle("idle", self._clock() - started)
            return summary

        headline = headline_for(now, self.interval_minutes)

        for index, (trader_id, name) in enumerate(roster):
            if self._clock() - started >= self.deadline_seconds:
                deferred = roster[index:]
                logger.warning(
                    f"Cycle deadline of {self.deadline_seconds:.0f}s reached, "
                    f"deferring {len(deferred)} traders"
                )
                for deferred_id, deferred_name in deferred:
                    summary.results.append(
                        TraderOutcome(
                            trader_id=deferred_id,
                            trader=deferred_name,
                            status=OutcomeStatus.DEFERRED,
                            reason="cycle deadline reached",
                        )
                    )
                break

            outcome = await self._process_trader(trader_id, name, market, headline)
            summary.results.append(outcome)

        for outcome in summary.results:
            metrics.track_outcome(outcome.status.value)

        await self._refresh_leaderboard(market, summary)

        duration = self._clock() - started
        summary.duration_ms = int(duration * 1000)
        metrics.track_cycle("completed", duration)
        logger.info(
            f"Trade cycle finished in {summary.duration_ms}ms: "
            f"{summary.count(OutcomeStatus.SETTLED)} settled, "
            f"{summary.count(OutcomeStatus.SKIPPED)} skipped, "
            f"{summary.count(OutcomeStatus.FAILED)} failed, "
            f"{summary.count(OutcomeStatus.DEFERRED)} deferred"
        )
        return summary

    # ------------------------------------------------------------------
    # Per-trader processing
    # ------------------------------------------------------------------

    async def _process_trader(
        self,
        trader_id: uuid.UUID,
        name: str,
        market: MarketData,
        headline: str,
    ) -> TraderOutcome:
        """Decide and settle for one trader inside its own transaction."""
        async with self.session_factory() as session:
            try:
                repo = TraderRepository(session)
                trader = await repo.get_by_id(trader_id)
                if trader is None or not trader.is_active:
                    return TraderOutcome(
                        trader_id=trader_id,
                        trader=name,
                        status=OutcomeStatus.SKIPPED,
                        reason="trader no longer active",
                    )
                if get_model_by_identifier(trader.model_name) is None:
                    logger.warning(f"Skipping {name}: model {trader.model_name} is not in the roster")
                    return TraderOutcome(
                        trader_id=trader.id,
                        trader=name,
                        status=OutcomeStatus.SKIPPED,
                        reason=f"model {trader.model_name} not in roster",
                    )

                positions = await repo.get_positions(trader.id)
                portfolio_value = calculate_portfolio_value(
                    trader.current_balance, positions, market
                )

                decision = await self.decision_service.decide(
                    trader, market, portfolio_value, positions, headline
                )
                decision = self.apply_panic_sell(decision, positions)

                outcome = TraderOutcome(
                    trader_id=trader.id,
                    trader=trader.name,
                    status=OutcomeStatus.SKIPPED,
                    action=decision.action.value,
                    asset=decision.asset,
                    amount=decision.amount,
                    fallback=decision.is_fallback,
                    panic_sell=decision.is_panic_sell,
                )

                quote = market.get(decision.asset)
                if quote is None:
                    outcome.reason = f"no market price for {decision.asset}"
                    logger.info(f"Skipping {name}: {outcome.reason}")
                    await session.rollback()
                    return outcome

                ledger = LedgerService(session, rng=self.rng)
                result = await ledger.attempt(trader, decision, quote.price)
                if not result.settled:
                    await session.rollback()
                    outcome.reason = result.rejection_reason
                    return outcome

                outcome.status = OutcomeStatus.SETTLED
                outcome.trade_id = result.trade.id
                outcome.amount = result.trade.amount
                outcome.price = result.trade.price
                await session.commit()
                get_metrics_collector().track_trade(outcome.action)
                return outcome

            except Exception as e:
                await session.rollback()
                logger.error(f"Trader {name} failed this cycle: {e}", exc_info=True)
                return TraderOutcome(
                    trader_id=trader_id,
                    trader=name,
                    status=OutcomeStatus.FAILED,
                    reason=str(e) or type(e).__name__,
                )

    def apply_panic_sell(
        self,
        decision: TradingDecision,
        positions: Sequence[PositionDB],
    ) -> TradingDecision:
        """
        Occasionally replace a buy with a forced sell of part of a holding.

        Only buy decisions of traders that hold something are eligible.
        The resulting sell still goes through every ledger check.
        """
        if decision.action != TradeAction.BUY or not positions:
            return decision
        if self.rng.random() >= self.panic_sell_probability:
            return decision

        position = self.rng.choice(list(positions))
        get_metrics_collector().track_panic_sell()
        logger.info(
            f"Panic sell triggered: {decision.asset} buy replaced by "
            f"{self.panic_sell_fraction:.0%} sell of {position.asset}"
        )
        return TradingDecision(
            asset=position.asset,
            action=TradeAction.SELL,
            amount=position.quantity * self.panic_sell_fraction,
            reasoning=PANIC_SELL_REASONING,
            is_panic_sell=True,
        )

    # ------------------------------------------------------------------
    # Cycle-level steps
    # ------------------------------------------------------------------

    async def _record_snapshots(self, market: MarketData, moment: datetime) -> None:
        async with self.session_factory() as session:
            try:
                repo = MarketSnapshotRepository(session)
                for asset in self.snapshot_assets:
                    quote = market.get(asset)
                    if quote is None:
                        continue
                    await repo.record(
                        asset,
                        quote.price,
                        change_24h=quote.change_24h,
                        volume_24h=quote.volume_24h,
                        timestamp=moment,
                    )
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.warning(f"Failed to record market snapshots: {e}")

    async def _refresh_leaderboard(self, market: MarketData, summary: CycleSummary) -> None:
        async with self.session_factory() as session:
            try:
                result = await LeaderboardService(session).refresh(market)
                await session.commit()

                metrics = get_metrics_collector()
                for _ in result.liquidated:
                    metrics.track_liquidation()
                metrics.set_active_traders(result.updated - len(result.liquidated))

                summary.leaderboard_updated = True
                summary.liquidated = result.liquidated
            except Exception as e:
                await session.rollback()
                logger.error(f"Leaderboard refresh failed: {e}", exc_info=True)
                summary.leaderboard_updated = False
