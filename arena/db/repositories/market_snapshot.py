"""Market snapshot repository - append-only price history"""

from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import MarketSnapshotDB


class MarketSnapshotRepository:
    """Repository for MarketSnapshot writes and history reads"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        asset: str,
        price: float,
        change_24h: float = 0.0,
        volume_24h: float = 0.0,
        timestamp: Optional[datetime] = None,
    ) -> MarketSnapshotDB:
        snapshot = MarketSnapshotDB(
            asset=asset,
            price=price,
            snapshot_metadata={"change_24h": change_24h, "volume_24h": volume_24h},
            timestamp=timestamp or datetime.now(UTC),
        )
        self.session.add(snapshot)
        await self.session.flush()
        return snapshot

    async def get_history(self, asset: str, limit: int = 100) -> list[MarketSnapshotDB]:
        """Latest snapshots of an asset, newest first."""
        result = await self.session.execute(
            select(MarketSnapshotDB)
            .where(MarketSnapshotDB.asset == asset)
            .order_by(MarketSnapshotDB.timestamp.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
