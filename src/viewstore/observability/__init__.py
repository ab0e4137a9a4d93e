"""
Observability — Logging and metrics for viewstore.

Provides:
- Structured logging tagged with store name and sync ID
- Metrics collection (counters, gauges, histograms)
"""

from viewstore.observability.logging import (
    set_sync_id,
    get_sync_id,
    configure_logging,
    get_logger,
    LogContext,
    StoreFilter,
    JSONFormatter,
    ReadableFormatter,
)
from viewstore.observability.metrics import (
    Counter,
    Histogram,
    StoreMetrics,
    get_metrics,
    reset_metrics,
)

__all__ = [
    # Logging
    "set_sync_id",
    "get_sync_id",
    "configure_logging",
    "get_logger",
    "LogContext",
    "StoreFilter",
    "JSONFormatter",
    "ReadableFormatter",
    # Metrics
    "Counter",
    "Histogram",
    "StoreMetrics",
    "get_metrics",
    "reset_metrics",
]
