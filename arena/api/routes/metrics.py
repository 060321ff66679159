"""Monitoring endpoints: Prometheus scrape target and price cache counters."""

from fastapi import APIRouter, Response

from ...monitoring.metrics import get_metrics_collector
from ...services.market_data_cache import get_market_data_cache

router = APIRouter(tags=["Monitoring"])


@router.get("/metrics")
async def get_metrics():
    collector = get_metrics_collector()
    return Response(content=collector.generate_metrics(), media_type=collector.content_type)


@router.get("/metrics/market-cache")
async def get_market_cache_stats():
    """Hit/miss/fallback counters of this process's price cache."""
    return get_market_data_cache().get_stats()
