"""
Events — Change notification infrastructure.
"""

from viewstore.events.emitter import (
    DeliveryFailure,
    EventEmitter,
    DEFAULT_LOG_SIZE,
    Handler,
    StoreNotification,
)

__all__ = [
    "DeliveryFailure",
    "EventEmitter",
    "DEFAULT_LOG_SIZE",
    "Handler",
    "StoreNotification",
]
