"""
Tests for market data providers and the TTL cache.

Covers:
- TTL hit / miss behavior with an injected clock
- Fallback set on primary failure (and that it is not cached)
- Best-effort 24h enrichment
- HTTP payload handling through httpx.MockTransport
"""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from arena.services.market_data import CoinGeckoClient, HyperliquidClient, MarketDataError
from arena.services.market_data_cache import (
    FALLBACK_MARKET,
    MarketDataCache,
    fallback_market,
    get_market_data_cache,
    get_top_assets,
    reset_market_data_cache,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def make_cache(mids=None, changes=None, ttl=30.0):
    price_source = AsyncMock()
    price_source.get_all_mids.return_value = mids or {"BTC": 100.0, "ETH": 20.0}
    enrichment = AsyncMock()
    enrichment.get_market_changes.return_value = changes if changes is not None else {
        "BTC": (2.5, 1_000.0),
        "ETH": (-1.0, 500.0),
    }
    clock = FakeClock()
    cache = MarketDataCache(price_source, enrichment, ttl=ttl, clock=clock)
    return cache, price_source, enrichment, clock


class TestMarketDataCache:
    """Tests for MarketDataCache."""

    @pytest.mark.asyncio
    async def test_first_call_fetches_and_enriches(self):
        cache, price_source, _, _ = make_cache()

        market = await cache.get_prices()

        assert market["BTC"].price == 100.0
        assert market["BTC"].change_24h == 2.5
        assert market["ETH"].volume_24h == 500.0
        assert cache.last_used_fallback is False
        price_source.get_all_mids.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_within_ttl_serves_cached_snapshot(self):
        cache, price_source, _, clock = make_cache()

        await cache.get_prices()
        clock.now += 29.9
        await cache.get_prices()

        assert price_source.get_all_mids.await_count == 1
        assert cache.get_stats()["hits"] == 1

    @pytest.mark.asyncio
    async def test_after_ttl_refetches(self):
        cache, price_source, _, clock = make_cache()

        await cache.get_prices()
        clock.now += 30.0
        price_source.get_all_mids.return_value = {"BTC": 110.0}
        market = await cache.get_prices()

        assert price_source.get_all_mids.await_count == 2
        assert market["BTC"].price == 110.0

    @pytest.mark.asyncio
    async def test_primary_failure_returns_fallback_set(self):
        cache, price_source, _, _ = make_cache()
        price_source.get_all_mids.side_effect = MarketDataError("down", "hyperliquid")

        market = await cache.get_prices()

        assert set(market) == {"BTC", "ETH", "SOL"}
        assert market["BTC"].price == 68432.12
        assert market["SOL"].change_24h == -0.5
        assert cache.last_used_fallback is True
        assert cache.get_stats()["fallbacks"] == 1

    @pytest.mark.asyncio
    async def test_fallback_is_not_cached(self):
        cache, price_source, _, _ = make_cache()
        price_source.get_all_mids.side_effect = [MarketDataError("down", "hyperliquid"), {"BTC": 101.0}]

        await cache.get_prices()
        market = await cache.get_prices()

        assert market["BTC"].price == 101.0
        assert cache.last_used_fallback is False

    @pytest.mark.asyncio
    async def test_enrichment_failure_defaults_to_zero(self):
        cache, _, enrichment, _ = make_cache()
        enrichment.get_market_changes.side_effect = MarketDataError("429", "coingecko")

        market = await cache.get_prices()

        assert market["BTC"].price == 100.0
        assert market["BTC"].change_24h == 0.0
        assert market["BTC"].volume_24h == 0.0
        assert cache.last_used_fallback is False

    @pytest.mark.asyncio
    async def test_unenriched_symbols_get_zero(self):
        cache, _, _, _ = make_cache(mids={"BTC": 100.0, "HYPE": 30.0})

        market = await cache.get_prices()

        assert market["HYPE"].change_24h == 0.0
        assert market["HYPE"].volume_24h == 0.0

    @pytest.mark.asyncio
    async def test_reset_forces_refetch(self):
        cache, price_source, _, _ = make_cache()

        await cache.get_prices()
        cache.reset()
        await cache.get_prices()

        assert price_source.get_all_mids.await_count == 2
        assert not cache.get_stats()["fallbacks"]

    @pytest.mark.asyncio
    async def test_returned_snapshot_is_a_copy(self):
        cache, _, _, _ = make_cache()

        first = await cache.get_prices()
        first.pop("BTC")
        second = await cache.get_prices()

        assert "BTC" in second

    def test_fallback_market_is_fresh_copy(self):
        market = fallback_market()
        market.pop("BTC")

        assert "BTC" in fallback_market()
        assert set(FALLBACK_MARKET) == {"BTC", "ETH", "SOL"}

    def test_top_assets_by_volume(self):
        market = fallback_market()

        assert get_top_assets(market, 2) == ["BTC", "ETH"]
        assert get_top_assets(market, 10) == ["BTC", "ETH", "SOL"]

    def test_singleton(self):
        reset_market_data_cache()
        try:
            assert get_market_data_cache() is get_market_data_cache()
        finally:
            reset_market_data_cache()


class TestHyperliquidClient:
    """Tests for HyperliquidClient.get_all_mids."""

    @pytest.mark.asyncio
    async def test_parses_mids_and_drops_unusable_entries(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"BTC": "68000.5", "eth": "2500", "@107": "1.2", "BAD": "n/a", "DEAD": "0"},
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = HyperliquidClient(base_url="https://api.test", client=http)
            mids = await client.get_all_mids()

        assert mids == {"BTC": 68000.5, "ETH": 2500.0}
        assert seen["url"] == "https://api.test/info"
        assert seen["body"] == {"type": "allMids"}

    @pytest.mark.asyncio
    async def test_non_finite_mids_are_dropped(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(
                200,
                json={"BTC": "100.5", "INF": "inf", "NINF": "-inf", "NAN": "nan", "BIG": "1e400"},
            )
        )

        async with httpx.AsyncClient(transport=transport) as http:
            client = HyperliquidClient(base_url="https://api.test", client=http)
            mids = await client.get_all_mids()

        assert mids == {"BTC": 100.5}

    @pytest.mark.asyncio
    async def test_only_non_finite_mids_raise(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"BTC": "inf", "ETH": "nan"})
        )

        async with httpx.AsyncClient(transport=transport) as http:
            client = HyperliquidClient(base_url="https://api.test", client=http)
            with pytest.raises(MarketDataError, match="no usable prices"):
                await client.get_all_mids()

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500))

        async with httpx.AsyncClient(transport=transport) as http:
            client = HyperliquidClient(base_url="https://api.test", client=http)
            with pytest.raises(MarketDataError, match="HTTP 500"):
                await client.get_all_mids()

    @pytest.mark.asyncio
    async def test_empty_payload_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))

        async with httpx.AsyncClient(transport=transport) as http:
            client = HyperliquidClient(base_url="https://api.test", client=http)
            with pytest.raises(MarketDataError, match="no usable prices"):
                await client.get_all_mids()

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>"))

        async with httpx.AsyncClient(transport=transport) as http:
            client = HyperliquidClient(base_url="https://api.test", client=http)
            with pytest.raises(MarketDataError, match="Invalid JSON"):
                await client.get_all_mids()


class TestCoinGeckoClient:
    """Tests for CoinGeckoClient.get_market_changes."""

    @pytest.mark.asyncio
    async def test_maps_coin_ids_to_symbols(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(
                200,
                json=[
                    {"id": "bitcoin", "price_change_percentage_24h": 2.5, "total_volume": 25e9},
                    {"id": "solana", "price_change_percentage_24h": None, "total_volume": None},
                    {"id": "unknown-coin", "price_change_percentage_24h": 9.0, "total_volume": 1.0},
                ],
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = CoinGeckoClient(
                base_url="https://cg.test",
                client=http,
                coin_ids={"BTC": "bitcoin", "SOL": "solana"},
            )
            changes = await client.get_market_changes()

        assert changes == {"BTC": (2.5, 25e9), "SOL": (0.0, 0.0)}
        assert seen["params"] == {"vs_currency": "usd", "ids": "bitcoin,solana"}

    @pytest.mark.asyncio
    async def test_non_finite_changes_become_zero(self):
        # Python's json module accepts the NaN / Infinity literals
        body = b'[{"id": "bitcoin", "price_change_percentage_24h": NaN, "total_volume": Infinity}]'
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=body))

        async with httpx.AsyncClient(transport=transport) as http:
            client = CoinGeckoClient(
                base_url="https://cg.test", client=http, coin_ids={"BTC": "bitcoin"}
            )
            changes = await client.get_market_changes()

        assert changes == {"BTC": (0.0, 0.0)}
