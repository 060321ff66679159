"""
Tests for the leaderboard service: mark-to-market, P/L and liquidation.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from arena.db.models import TRADER_ACTIVE, TRADER_LIQUIDATED, TraderDB
from arena.db.repositories.trader import TraderRepository
from arena.models.market import MarketQuote
from arena.services.leaderboard_service import (
    LeaderboardService,
    calculate_pnl_percentage,
    calculate_portfolio_value,
)



class TestPortfolioValue:
    """Tests for the pure valuation helpers."""

    @pytest.mark.asyncio
    async def test_value_is_cash_plus_marked_positions(self, db_session: AsyncSession, market, trader_factory, position_factory):
        trader = await trader_factory(balance=200.0)
        await position_factory(trader, "BTC", 0.5, 90.0)
        await position_factory(trader, "SOL", 2.0, 4.0)
        positions = await TraderRepository(db_session).get_positions(trader.id)

        # 200 + 0.5 * 100 + 2 * 5
        assert calculate_portfolio_value(200.0, positions, market) == pytest.approx(260.0)

    @pytest.mark.asyncio
    async def test_unpriced_asset_counts_as_zero(self, db_session: AsyncSession, market, trader_factory, position_factory):
        trader = await trader_factory(balance=100.0)
        await position_factory(trader, "XYZ", 1000.0, 1.0)
        positions = await TraderRepository(db_session).get_positions(trader.id)

        assert calculate_portfolio_value(100.0, positions, market) == pytest.approx(100.0)

    def test_pnl_percentage(self):
        assert calculate_pnl_percentage(260.0, 250.0) == pytest.approx(4.0)
        assert calculate_pnl_percentage(200.0, 250.0) == pytest.approx(-20.0)
        assert calculate_pnl_percentage(100.0, 0.0) == 0.0


class TestRefresh:
    """Tests for LeaderboardService.refresh."""

    @pytest.mark.asyncio
    async def test_refresh_updates_pnl(self, db_session: AsyncSession, market, trader_factory, position_factory):
        trader = await trader_factory(balance=200.0)
        await position_factory(trader, "BTC", 0.5, 100.0)
        market["BTC"] = MarketQuote(price=120.0)

        result = await LeaderboardService(db_session).refresh(market)

        assert result.updated == 1
        assert result.liquidated == []
        assert result.portfolio_values[trader.name] == pytest.approx(260.0)
        assert trader.profit_loss_percentage == pytest.approx(4.0)
        assert trader.status == TRADER_ACTIVE

    @pytest.mark.asyncio
    async def test_value_below_threshold_liquidates(self, db_session: AsyncSession, market, trader_factory, position_factory):
        """Cash 5 + 0.01 BTC at 100 = 6 < 10."""
        trader = await trader_factory(balance=5.0)
        await position_factory(trader, "BTC", 0.01, 300.0)

        result = await LeaderboardService(db_session).refresh(market)

        assert result.liquidated == [trader.name]
        assert trader.status == TRADER_LIQUIDATED
        assert trader.current_balance == 0.0
        assert trader.liquidated_at is not None
        assert trader.profit_loss_percentage == pytest.approx((6.0 - 250.0) / 250.0 * 100)
        assert await TraderRepository(db_session).get_positions(trader.id) == []

    @pytest.mark.asyncio
    async def test_value_at_threshold_survives(self, db_session: AsyncSession, market, trader_factory, position_factory):
        trader = await trader_factory(balance=10.0)

        result = await LeaderboardService(db_session).refresh(market)

        assert result.liquidated == []
        assert trader.status == TRADER_ACTIVE

    @pytest.mark.asyncio
    async def test_refresh_is_idempotent(self, db_session: AsyncSession, market, trader_factory, position_factory):
        healthy = await trader_factory(name="Healthy", balance=150.0)
        await position_factory(healthy, "ETH", 3.0, 20.0)
        broke = await trader_factory(name="Broke", balance=8.0)
        service = LeaderboardService(db_session)

        first = await service.refresh(market)
        await db_session.commit()
        liquidated_at = broke.liquidated_at
        pnl = healthy.profit_loss_percentage

        second = await service.refresh(market)

        assert first.liquidated == ["Broke"]
        assert second.liquidated == []
        assert second.updated == 1
        assert broke.liquidated_at == liquidated_at
        assert healthy.profit_loss_percentage == pytest.approx(pnl)
        assert healthy.current_balance == 150.0

    @pytest.mark.asyncio
    async def test_refresh_ignores_liquidated_traders(self, db_session: AsyncSession, market, trader_factory, position_factory):
        trader = await trader_factory(balance=0.0)
        trader.status = TRADER_LIQUIDATED
        trader.profit_loss_percentage = -100.0
        await db_session.commit()

        result = await LeaderboardService(db_session).refresh(market)

        assert result.updated == 0
        assert trader.profit_loss_percentage == -100.0


class TestStandings:
    """Tests for LeaderboardService.get_standings."""

    @pytest.mark.asyncio
    async def test_ranked_by_value_active_first(self, db_session: AsyncSession, market, trader_factory, position_factory):
        leader = await trader_factory(name="Leader", balance=100.0)
        await position_factory(leader, "BTC", 2.0, 80.0)
        await trader_factory(name="Flat", balance=250.0)
        out = await trader_factory(name="Out", balance=0.0)
        out.status = TRADER_LIQUIDATED
        await db_session.commit()

        standings = await LeaderboardService(db_session).get_standings(market)

        assert [e.name for e in standings] == ["Leader", "Flat", "Out"]
        assert [e.rank for e in standings] == [1, 2, 3]
        assert standings[0].portfolio_value == pytest.approx(300.0)
        assert standings[0].profit_loss_percentage == pytest.approx(20.0)
        assert standings[2].status == TRADER_LIQUIDATED

    @pytest.mark.asyncio
    async def test_standings_without_market_use_persisted_pnl(self, db_session: AsyncSession, trader_factory, position_factory):
        trader = await trader_factory(name="Stored", balance=200.0)
        trader.profit_loss_percentage = 10.0
        await db_session.commit()

        standings = await LeaderboardService(db_session).get_standings()

        assert standings[0].portfolio_value == pytest.approx(275.0)
        assert standings[0].profit_loss_percentage == pytest.approx(10.0)

    @pytest.mark.asyncio
    async def test_liquidated_trader_is_worth_nothing(self, db_session: AsyncSession, market, trader_factory):
        broke = await trader_factory(name="Broke", balance=8.0)
        await trader_factory(name="Flat", balance=250.0)
        service = LeaderboardService(db_session)
        await service.refresh(market)
        await db_session.commit()

        for standings in (await service.get_standings(), await service.get_standings(market)):
            entry = next(e for e in standings if e.name == "Broke")
            assert entry.current_balance == 0.0
            assert entry.portfolio_value == 0.0
            assert entry.profit_loss_percentage == pytest.approx(-100.0)
            assert standings[-1].name == "Broke"

        # The persisted P/L still records the level at which the trader went bust
        assert broke.profit_loss_percentage == pytest.approx((8.0 - 250.0) / 250.0 * 100)
