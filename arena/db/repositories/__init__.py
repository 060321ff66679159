"""Repository layer for database operations"""

from .market_snapshot import MarketSnapshotRepository
from .trader import TraderRepository

__all__ = [
    "MarketSnapshotRepository",
    "TraderRepository",
]
