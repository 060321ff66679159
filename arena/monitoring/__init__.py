"""Prometheus metrics for cycles, decisions and the ledger"""

from .metrics import MetricsCollector, get_metrics_collector

__all__ = [
    "MetricsCollector",
    "get_metrics_collector",
]
