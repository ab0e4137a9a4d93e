"""
Metrics — Simple counters for store activity.

Tracks record mutations, recovered conditions, view rebuilds and
notification delivery.
"""

from dataclasses import dataclass, field
from threading import Lock
from typing import Any


class Counter:
    """Monotonically increasing counter."""

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description
        self._value = 0.0
        self._lock = Lock()

    def inc(self, amount: float = 1.0) -> None:
        """Increment counter."""
        with self._lock:
            self._value += amount

    @property
    def value(self) -> float:
        return self._value

    def reset(self) -> None:
        """Reset counter (for testing)."""
        with self._lock:
            self._value = 0.0


class Histogram:
    """
    Simple histogram for tracking distributions.

    Tracks count, sum, min, max for calculating stats.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description
        self._count = 0
        self._sum = 0.0
        self._min = float("inf")
        self._max = float("-inf")
        self._lock = Lock()

    def observe(self, value: float) -> None:
        """Record an observation."""
        with self._lock:
            self._count += 1
            self._sum += value
            self._min = min(self._min, value)
            self._max = max(self._max, value)

    @property
    def count(self) -> int:
        return self._count

    @property
    def avg(self) -> float:
        if self._count == 0:
            return 0.0
        return self._sum / self._count

    @property
    def min(self) -> float:
        return self._min if self._count > 0 else 0.0

    @property
    def max(self) -> float:
        return self._max if self._count > 0 else 0.0

    def reset(self) -> None:
        with self._lock:
            self._count = 0
            self._sum = 0.0
            self._min = float("inf")
            self._max = float("-inf")

    def to_dict(self) -> dict[str, float]:
        return {
            "count": self._count,
            "sum": self._sum,
            "avg": self.avg,
            "min": self.min,
            "max": self.max,
        }


@dataclass
class StoreMetrics:
    """
    Registry for store metrics.
    """
    # Record metrics
    records_inserted: Counter = field(
        default_factory=lambda: Counter("records_inserted", "Records inserted")
    )
    records_updated: Counter = field(
        default_factory=lambda: Counter("records_updated", "Records merge-updated")
    )
    records_removed: Counter = field(
        default_factory=lambda: Counter("records_removed", "Records removed")
    )

    # Recovered conditions
    duplicate_adds: Counter = field(
        default_factory=lambda: Counter("duplicate_adds", "add() on an existing business key")
    )
    missing_updates: Counter = field(
        default_factory=lambda: Counter("missing_updates", "update() with no matching record")
    )

    # Views
    views_registered: Counter = field(
        default_factory=lambda: Counter("views_registered", "Dynamic view (re)builds")
    )
    view_size: Histogram = field(
        default_factory=lambda: Histogram("view_size", "Rows returned by a dynamic view read")
    )

    # Notifications
    notifications_emitted: Counter = field(
        default_factory=lambda: Counter("notifications_emitted", "Notifications emitted")
    )
    handler_failures: Counter = field(
        default_factory=lambda: Counter("handler_failures", "Subscriber handlers that raised")
    )

    def to_dict(self) -> dict[str, Any]:
        """Export all metrics as dict."""
        return {
            "records": {
                "inserted": self.records_inserted.value,
                "updated": self.records_updated.value,
                "removed": self.records_removed.value,
            },
            "recovered": {
                "duplicate_adds": self.duplicate_adds.value,
                "missing_updates": self.missing_updates.value,
            },
            "views": {
                "registered": self.views_registered.value,
                "size": self.view_size.to_dict(),
            },
            "notifications": {
                "emitted": self.notifications_emitted.value,
                "handler_failures": self.handler_failures.value,
            },
        }

    def reset(self) -> None:
        """Reset all metrics (for testing)."""
        self.records_inserted.reset()
        self.records_updated.reset()
        self.records_removed.reset()
        self.duplicate_adds.reset()
        self.missing_updates.reset()
        self.views_registered.reset()
        self.view_size.reset()
        self.notifications_emitted.reset()
        self.handler_failures.reset()


# Global metrics registry
_metrics = StoreMetrics()


def get_metrics() -> StoreMetrics:
    """Get global metrics registry."""
    return _metrics


def reset_metrics() -> None:
    """Reset all metrics (for testing)."""
    _metrics.reset()
