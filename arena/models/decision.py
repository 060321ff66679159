"""
Decision models for AI trading decisions.

A decision is one proposed order per trader per cycle. Amount units
depend on the action: cash to spend for buy, asset quantity for sell,
zero for hold.
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class TradeAction(str, Enum):
    """Trading action types"""
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


FALLBACK_ASSET = "BTC"
FALLBACK_REASONING = "Unable to analyze market conditions at this time, holding position."


class TradingDecision(BaseModel):
    """Validated decision returned by a decision provider"""
    asset: str = Field(..., min_length=1, description="Asset symbol, uppercase")
    action: TradeAction
    amount: float = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        description="USD to spend (buy), quantity to sell (sell), 0 (hold)",
    )
    reasoning: str = Field(default="", description="Short explanation")

    # Set when the decision was substituted after a provider failure
    is_fallback: bool = False
    # Set when the orchestrator replaced a buy with a forced sell
    is_panic_sell: bool = False

    @field_validator("asset")
    @classmethod
    def normalize_asset(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("asset must be a non-empty symbol")
        return v


def fallback_decision() -> TradingDecision:
    """Deterministic hold used whenever a provider fails or misbehaves."""
    return TradingDecision(
        asset=FALLBACK_ASSET,
        action=TradeAction.HOLD,
        amount=0.0,
        reasoning=FALLBACK_REASONING,
        is_fallback=True,
    )
