"""Database module - SQLAlchemy models and database connection"""

from .models import (
    TRADER_ACTIVE,
    TRADER_LIQUIDATED,
    Base,
    MarketSnapshotDB,
    PositionDB,
    TradeDB,
    TraderDB,
)

__all__ = [
    "TRADER_ACTIVE",
    "TRADER_LIQUIDATED",
    "Base",
    "MarketSnapshotDB",
    "PositionDB",
    "TradeDB",
    "TraderDB",
]
