"""
Prometheus metrics for the trading arena.

Exposes metrics for monitoring:
- Trade cycle counts and duration
- Per-trader outcomes and AI decisions
- Settled trades and liquidations
- Market data fallbacks
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)


class MetricsCollector:
    """
    Prometheus metrics collector.

    Provides metrics for:
    - Trade cycles
    - AI decisions
    - Ledger operations
    - Market data
    """

    def __init__(self, app_name: str = "arena", registry: CollectorRegistry = REGISTRY):
        self.app_name = app_name
        self.registry = registry

        # ==================== Cycle Metrics ====================

        self.cycles_total = Counter(
            f"{app_name}_cycles_total",
            "Total trade cycles",
            ["status"],  # completed / idle / error
            registry=registry,
        )

        self.cycle_duration_seconds = Histogram(
            f"{app_name}_cycle_duration_seconds",
            "Trade cycle duration in seconds",
            buckets=(1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
            registry=registry,
        )

        self.trader_outcomes_total = Counter(
            f"{app_name}_trader_outcomes_total",
            "Per-trader cycle outcomes",
            ["status"],  # settled / skipped / failed / deferred
            registry=registry,
        )

        # ==================== AI Decision Metrics ====================

        self.ai_decisions_total = Counter(
            f"{app_name}_ai_decisions_total",
            "Total AI decisions produced",
            ["action", "fallback"],
            registry=registry,
        )

        self.ai_decision_latency_seconds = Histogram(
            f"{app_name}_ai_decision_latency_seconds",
            "AI decision latency",
            ["model"],
            buckets=(0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0),
            registry=registry,
        )

        # ==================== Ledger Metrics ====================

        self.trades_total = Counter(
            f"{app_name}_trades_total",
            "Total trades settled",
            ["action"],
            registry=registry,
        )

        self.panic_sells_total = Counter(
            f"{app_name}_panic_sells_total",
            "Buy decisions replaced by a forced sell",
            registry=registry,
        )

        self.liquidations_total = Counter(
            f"{app_name}_liquidations_total",
            "Traders liquidated",
            registry=registry,
        )

        self.active_traders = Gauge(
            f"{app_name}_active_traders",
            "Number of active traders",
            registry=registry,
        )

        # ==================== Market Data Metrics ====================

        self.price_fallbacks_total = Counter(
            f"{app_name}_price_fallbacks_total",
            "Times the static fallback market was served",
            registry=registry,
        )

        # App info
        self.app_info = Info(
            f"{app_name}_app_info",
            "Application information",
            registry=registry,
        )

    def set_app_info(self, version: str, environment: str) -> None:
        """Set application info"""
        self.app_info.info(
            {
                "version": version,
                "environment": environment,
            }
        )

    def track_cycle(self, status: str, duration_seconds: float) -> None:
        self.cycles_total.labels(status=status).inc()
        self.cycle_duration_seconds.observe(duration_seconds)

    def track_outcome(self, status: str) -> None:
        self.trader_outcomes_total.labels(status=status).inc()

    def track_decision(
        self,
        action: str,
        model: str,
        latency_seconds: float,
        fallback: bool,
    ) -> None:
        """Track AI decision"""
        self.ai_decisions_total.labels(
            action=action,
            fallback=str(fallback).lower(),
        ).inc()
        self.ai_decision_latency_seconds.labels(model=model).observe(latency_seconds)

    def track_trade(self, action: str) -> None:
        self.trades_total.labels(action=action).inc()

    def track_panic_sell(self) -> None:
        self.panic_sells_total.inc()

    def track_liquidation(self) -> None:
        self.liquidations_total.inc()

    def set_active_traders(self, count: int) -> None:
        self.active_traders.set(count)

    def record_price_fallback(self) -> None:
        self.price_fallbacks_total.inc()

    def generate_metrics(self) -> bytes:
        """Generate Prometheus metrics output"""
        return generate_latest(self.registry)

    @property
    def content_type(self) -> str:
        """Prometheus content type"""
        return CONTENT_TYPE_LATEST


# Global metrics collector
_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Get or create metrics collector singleton"""
    global _collector
    if _collector is None:
        _collector = MetricsCollector()
    return _collector
