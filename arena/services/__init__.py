"""Services module - Business logic and external integrations"""

from .decision_parser import DecisionParseError, DecisionParser
from .decision_service import DecisionService
from .leaderboard_service import LeaderboardService, RefreshResult, calculate_portfolio_value
from .ledger_service import LedgerService, SettlementResult
from .market_data import CoinGeckoClient, HyperliquidClient, MarketDataError
from .market_data_cache import MarketDataCache, get_market_data_cache
from .prompt_builder import PromptBuilder
from .trade_cycle import TradeCycleOrchestrator

__all__ = [
    "CoinGeckoClient",
    "DecisionParseError",
    "DecisionParser",
    "DecisionService",
    "HyperliquidClient",
    "LeaderboardService",
    "LedgerService",
    "MarketDataCache",
    "MarketDataError",
    "PromptBuilder",
    "RefreshResult",
    "SettlementResult",
    "TradeCycleOrchestrator",
    "calculate_portfolio_value",
    "get_market_data_cache",
]
