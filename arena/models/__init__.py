"""Pydantic models shared by services and the API"""

from .cycle import CycleSummary, LeaderboardEntry, OutcomeStatus, TraderOutcome
from .decision import FALLBACK_REASONING, TradeAction, TradingDecision, fallback_decision
from .market import MarketData, MarketQuote

__all__ = [
    "CycleSummary",
    "FALLBACK_REASONING",
    "LeaderboardEntry",
    "MarketData",
    "MarketQuote",
    "OutcomeStatus",
    "TradeAction",
    "TraderOutcome",
    "TradingDecision",
    "fallback_decision",
]
