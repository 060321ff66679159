"""
Market data providers.

- HyperliquidClient: authoritative mid prices for every listed perp
- CoinGeckoClient: best-effort 24h change / volume for the majors

Both talk plain HTTP through httpx with a bounded timeout. Failures are
raised as MarketDataError; the cache decides how to degrade.
"""

import logging
import math
from typing import Optional

import httpx

from ..core.config import get_settings

logger = logging.getLogger(__name__)


class MarketDataError(Exception):
    """Raised when a market data provider cannot be reached or misbehaves"""

    def __init__(self, message: str, provider: str):
        self.provider = provider
        super().__init__(f"[{provider}] {message}")


# Symbol -> CoinGecko coin id for the assets we enrich
COINGECKO_IDS: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "AVAX": "avalanche-2",
    "BNB": "binancecoin",
    "MATIC": "matic-network",
    "ATOM": "cosmos",
    "DOGE": "dogecoin",
    "DOT": "polkadot",
    "UNI": "uniswap",
}


class _HTTPProvider:
    """Shared plumbing: optional injected client, otherwise one per request"""

    name = "http"

    def __init__(
        self,
        base_url: str,
        timeout: float,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _request(self, method: str, path: str, **kwargs) -> object:
        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                resp = await self._client.request(method, url, timeout=self.timeout, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.request(method, url, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise MarketDataError(
                f"HTTP {e.response.status_code} from {url}", self.name
            ) from e
        except httpx.HTTPError as e:
            raise MarketDataError(f"Request to {url} failed: {e}", self.name) from e
        except ValueError as e:
            raise MarketDataError(f"Invalid JSON from {url}", self.name) from e


class HyperliquidClient(_HTTPProvider):
    """Hyperliquid info API client (public, no auth)"""

    name = "hyperliquid"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        super().__init__(
            base_url or settings.hyperliquid_api_url,
            timeout or settings.market_data_timeout_seconds,
            client,
        )

    async def get_all_mids(self) -> dict[str, float]:
        """
        Fetch mid prices for every listed asset.

        Returns:
            Symbol -> mid price. Entries that are not finite positive numbers
            (and spot pairs such as "@107") are dropped.
        """
        data = await self._request("POST", "/info", json={"type": "allMids"})
        if not isinstance(data, dict):
            raise MarketDataError("Unexpected allMids payload", self.name)

        mids: dict[str, float] = {}
        for symbol, raw in data.items():
            if symbol.startswith("@"):
                continue
            try:
                price = float(raw)
            except (TypeError, ValueError):
                continue
            if math.isfinite(price) and price > 0:
                mids[symbol.upper()] = price

        if not mids:
            raise MarketDataError("allMids returned no usable prices", self.name)
        return mids


def _finite_or_zero(raw: object) -> float:
    try:
        value = float(raw or 0.0)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


class CoinGeckoClient(_HTTPProvider):
    """CoinGecko markets endpoint for 24h change and volume"""

    name = "coingecko"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        coin_ids: Optional[dict[str, str]] = None,
    ):
        settings = get_settings()
        super().__init__(
            base_url or settings.coingecko_api_url,
            timeout or settings.market_data_timeout_seconds,
            client,
        )
        self.coin_ids = coin_ids or COINGECKO_IDS

    async def get_market_changes(self) -> dict[str, tuple[float, float]]:
        """
        Fetch 24h change (percent) and 24h volume (USD).

        Returns:
            Symbol -> (change_24h, volume_24h)
        """
        by_id = {coin_id: symbol for symbol, coin_id in self.coin_ids.items()}
        data = await self._request(
            "GET",
            "/coins/markets",
            params={"vs_currency": "usd", "ids": ",".join(by_id)},
        )
        if not isinstance(data, list):
            raise MarketDataError("Unexpected markets payload", self.name)

        changes: dict[str, tuple[float, float]] = {}
        for coin in data:
            symbol = by_id.get(coin.get("id", ""))
            if not symbol:
                continue
            changes[symbol] = (
                _finite_or_zero(coin.get("price_change_percentage_24h")),
                _finite_or_zero(coin.get("total_volume")),
            )
        return changes
