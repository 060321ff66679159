"""
Arena bootstrap.

Creates one active trader per roster model with the configured starting
balance. --reset wipes the ledger first (trades, positions, snapshots,
traders) so the competition starts from zero.

Usage:
    python -m arena.db.seed
    python -m arena.db.seed --reset
"""

import argparse
import asyncio
import logging
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..services.ai.roster import AI_MODELS, RosterModel
from .models import MarketSnapshotDB, PositionDB, TradeDB, TraderDB
from .repositories.trader import TraderRepository

logger = logging.getLogger(__name__)


async def reset_arena(session: AsyncSession) -> None:
    """Delete all ledger data, children before parents."""
    for model in (TradeDB, PositionDB, MarketSnapshotDB, TraderDB):
        result = await session.execute(delete(model))
        logger.info(f"Cleared {result.rowcount} rows from {model.__tablename__}")
    await session.flush()


async def seed_traders(
    session: AsyncSession,
    models: Optional[list[RosterModel]] = None,
    starting_balance: Optional[float] = None,
) -> list[TraderDB]:
    """
    Create the roster traders that do not exist yet.

    Existing traders (matched by name) are left untouched, so running
    the seed twice does not reset anyone's balance.

    Returns:
        The traders created by this call
    """
    balance = starting_balance if starting_balance is not None else get_settings().starting_balance
    repo = TraderRepository(session)
    created = []

    for model in models if models is not None else AI_MODELS:
        if await repo.get_by_name(model.name) is not None:
            logger.info(f"Trader {model.name} already exists, skipping")
            continue
        trader = await repo.create(
            name=model.name,
            model_name=model.model_identifier,
            starting_balance=balance,
            personality=model.personality,
            risk_tolerance=model.risk_tolerance,
        )
        created.append(trader)
        logger.info(f"Created trader {trader.name} ({trader.model_name}) with ${balance:.2f}")

    return created


async def _main(reset: bool) -> None:
    from .database import close_db, init_db, unit_of_work

    await init_db()
    try:
        async with unit_of_work() as session:
            if reset:
                await reset_arena(session)
            created = await seed_traders(session)
        logger.info(f"Seed complete: {len(created)} trader(s) created")
    finally:
        await close_db()


def main() -> None:
    from ..core.logging_config import setup_logging

    parser = argparse.ArgumentParser(description="Seed the arena with the model roster")
    parser.add_argument(
        "--reset", action="store_true", help="Delete all traders, positions, trades and snapshots first"
    )
    args = parser.parse_args()

    setup_logging("seed")
    asyncio.run(_main(args.reset))


if __name__ == "__main__":
    main()
