"""
Market Data Cache - one price snapshot shared by every trader in a cycle.

Provides:
- TTL-based reuse of the last successful fetch (default 30s)
- Best-effort enrichment (24h change / volume) that never blocks prices
- A static fallback set when the primary provider is down

Flow:
    get_prices()
        |
        +-- snapshot fresh? -----------------> cached snapshot
        |
        +-- HyperliquidClient.get_all_mids()
        |       |
        |       +-- failure -----------------> FALLBACK_MARKET (not cached)
        |
        +-- CoinGeckoClient.get_market_changes()
        |       |
        |       +-- failure -----------------> change/volume = 0
        |
        +-- store snapshot + timestamp ------> fresh snapshot

The cache is not safe for concurrent refreshes; the cycle lock ensures a
single cycle runs at a time.
"""

import logging
import time
from typing import Callable, Optional

from ..core.config import get_settings
from ..models.market import MarketData, MarketQuote
from ..monitoring.metrics import get_metrics_collector
from .market_data import CoinGeckoClient, HyperliquidClient

logger = logging.getLogger(__name__)


# Minimum market used when the primary provider is unavailable
FALLBACK_MARKET: dict[str, dict[str, float]] = {
    "BTC": {"price": 68432.12, "change_24h": 2.5, "volume_24h": 25_000_000_000},
    "ETH": {"price": 2567.89, "change_24h": 1.8, "volume_24h": 12_000_000_000},
    "SOL": {"price": 142.56, "change_24h": -0.5, "volume_24h": 2_500_000_000},
}


def fallback_market() -> MarketData:
    """Fresh copy of the static fallback market."""
    return {symbol: MarketQuote(**quote) for symbol, quote in FALLBACK_MARKET.items()}


def get_top_assets(market: MarketData, limit: int) -> list[str]:
    """Symbols ranked by 24h volume (descending), symbol as tie-breaker."""
    ranked = sorted(market.items(), key=lambda item: (-item[1].volume_24h, item[0]))
    return [symbol for symbol, _ in ranked[:limit]]


class MarketDataCache:
    """
    Process-wide market snapshot with a freshness window.

    Providers and the clock are injectable so tests can drive the cache
    without network access or sleeping.
    """

    DEFAULT_TTL = 30.0

    def __init__(
        self,
        price_source: Optional[HyperliquidClient] = None,
        enrichment_source: Optional[CoinGeckoClient] = None,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            price_source: Provider of authoritative prices (get_all_mids)
            enrichment_source: Provider of 24h change/volume (get_market_changes)
            ttl: Freshness window in seconds (default: PRICE_CACHE_TTL_SECONDS)
            clock: Monotonic time source
        """
        self._price_source = price_source or HyperliquidClient()
        self._enrichment_source = enrichment_source or CoinGeckoClient()
        self._ttl = ttl if ttl is not None else get_settings().price_cache_ttl_seconds
        self._clock = clock

        self._snapshot: Optional[MarketData] = None
        self._fetched_at: float = 0.0

        # Set on every call: whether the last answer came from the fallback set
        self.last_used_fallback = False

        # Metrics
        self._hits = 0
        self._misses = 0
        self._fetches = 0
        self._fallbacks = 0
        self._enrichment_failures = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    def is_fresh(self) -> bool:
        return (
            self._snapshot is not None
            and (self._clock() - self._fetched_at) < self._ttl
        )

    async def get_prices(self) -> MarketData:
        """
        Get the current market snapshot.

        Never raises: a primary provider failure yields the fallback set.

        Returns:
            Symbol -> MarketQuote
        """
        if self.is_fresh():
            self._hits += 1
            self.last_used_fallback = False
            logger.debug("Market cache HIT")
            return dict(self._snapshot)

        self._misses += 1
        self._fetches += 1

        try:
            mids = await self._price_source.get_all_mids()
        except Exception as e:
            self._fallbacks += 1
            self.last_used_fallback = True
            get_metrics_collector().record_price_fallback()
            logger.warning(f"Price fetch failed, using fallback market: {e}")
            return fallback_market()

        try:
            changes = await self._enrichment_source.get_market_changes()
        except Exception as e:
            self._enrichment_failures += 1
            logger.warning(f"24h enrichment unavailable, using zeros: {e}")
            changes = {}

        snapshot: MarketData = {}
        for symbol, price in mids.items():
            change_24h, volume_24h = changes.get(symbol, (0.0, 0.0))
            snapshot[symbol] = MarketQuote(
                price=price,
                change_24h=change_24h,
                volume_24h=max(volume_24h, 0.0),
            )

        self._snapshot = snapshot
        self._fetched_at = self._clock()
        self.last_used_fallback = False
        logger.info(
            f"Market snapshot refreshed: {len(snapshot)} assets, "
            f"{len(changes)} enriched"
        )
        return dict(snapshot)

    def reset(self) -> None:
        """Drop the cached snapshot so the next call fetches."""
        self._snapshot = None
        self._fetched_at = 0.0
        self.last_used_fallback = False

    def get_stats(self) -> dict:
        """Get cache statistics."""
        total = self._hits + self._misses
        return {
            "assets": len(self._snapshot) if self._snapshot else 0,
            "fresh": self.is_fresh(),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / total if total > 0 else 0,
            "fetches": self._fetches,
            "fallbacks": self._fallbacks,
            "enrichment_failures": self._enrichment_failures,
        }


# =============================================================================
# Singleton Instance
# =============================================================================

_market_data_cache: Optional[MarketDataCache] = None


def get_market_data_cache() -> MarketDataCache:
    """Get the process-wide market data cache."""
    global _market_data_cache
    if _market_data_cache is None:
        _market_data_cache = MarketDataCache()
    return _market_data_cache


def reset_market_data_cache() -> None:
    """Discard the process-wide cache (for testing)."""
    global _market_data_cache
    _market_data_cache = None
