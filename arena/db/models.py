"""
SQLAlchemy ORM Models

Database schema for the trading arena ledger.

- Trader: one AI participant with its own cash balance
- Position: per-trader holding in one asset (weighted-average cost basis)
- Trade: append-only log of settled decisions (buy / sell / hold)
- MarketSnapshot: prices recorded once per cycle for history
"""

import uuid
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


# Trader status values
TRADER_ACTIVE = "active"
TRADER_LIQUIDATED = "liquidated"


class TraderDB(Base):
    """
    AI trader participating in the arena.

    Created once at bootstrap from the model roster. Balance, trade
    counter and P/L are mutated only by the ledger and the leaderboard
    refresh. Liquidation is terminal: a liquidated trader never trades
    again and is never deleted by the engine.
    """
    __tablename__ = "ai_traders"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    personality: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Decision provider reference, e.g. "openai/gpt-4-turbo"
    model_name: Mapped[str] = mapped_column(String(100), nullable=False)
    risk_tolerance: Mapped[str] = mapped_column(
        String(20), nullable=False, default="moderate"
    )  # aggressive | moderate | conservative

    # Ledger state
    initial_balance: Mapped[float] = mapped_column(Float, nullable=False)
    current_balance: Mapped[float] = mapped_column(Float, nullable=False)
    total_trades: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    profit_loss_percentage: Mapped[float] = mapped_column(
        Float, default=0.0, nullable=False
    )

    # Status
    status: Mapped[str] = mapped_column(
        String(20), default=TRADER_ACTIVE, nullable=False, index=True
    )
    liquidated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    positions: Mapped[list["PositionDB"]] = relationship(
        back_populates="trader",
        cascade="all, delete-orphan"
    )
    trades: Mapped[list["TradeDB"]] = relationship(
        back_populates="trader",
        cascade="all, delete-orphan"
    )

    @property
    def is_active(self) -> bool:
        return self.status == TRADER_ACTIVE

    def __repr__(self) -> str:
        return f"<Trader {self.name} ({self.status})>"


class PositionDB(Base):
    """
    Open holding of one asset by one trader.

    Rules:
    - Exactly one row per (trader_id, asset) while quantity > 0.
    - average_buy_price is the quantity-weighted cost basis of all buys
      (slippage included); partial sells leave it unchanged.
    - The row is deleted when the quantity decays below the ledger
      epsilon or when the trader is liquidated.
    """
    __tablename__ = "positions"

    __table_args__ = (
        UniqueConstraint("trader_id", "asset", name="uq_positions_trader_asset"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    trader_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("ai_traders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    asset: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    average_buy_price: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    trader: Mapped["TraderDB"] = relationship(back_populates="positions")

    def __repr__(self) -> str:
        return f"<Position {self.asset} qty={self.quantity:.6f} @ {self.average_buy_price:.2f}>"


class TradeDB(Base):
    """
    Immutable record of one settled decision.

    amount is the asset quantity for buy/sell and 0 for hold; price is
    the post-slippage execution price; slippage is the (positive) cost
    impact in price units.
    """
    __tablename__ = "trades"

    __table_args__ = (
        Index("ix_trades_trader_timestamp", "trader_id", "timestamp"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    trader_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("ai_traders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    asset: Mapped[str] = mapped_column(String(20), nullable=False)
    action: Mapped[str] = mapped_column(String(10), nullable=False)  # buy | sell | hold
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    slippage: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    transaction_hash: Mapped[str] = mapped_column(String(66), nullable=False, unique=True)
    reasoning: Mapped[str] = mapped_column(Text, nullable=False, default="")
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True
    )

    trader: Mapped["TraderDB"] = relationship(back_populates="trades")

    def __repr__(self) -> str:
        return f"<Trade {self.action} {self.amount:.6f} {self.asset} @ {self.price:.2f}>"


class MarketSnapshotDB(Base):
    """Price of one asset recorded during a trade cycle"""
    __tablename__ = "market_snapshots"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    asset: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    # {"change_24h": float, "volume_24h": float}
    snapshot_metadata: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True
    )

    def __repr__(self) -> str:
        return f"<MarketSnapshot {self.asset} {self.price}>"
