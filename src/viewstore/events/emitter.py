"""
Event Emitter — Change notification for entity stores.

Each store owns one emitter. Subscribers attach per event kind and receive
a StoreNotification for every emission, in call order.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from viewstore.vocabulary import StoreEvent

logger = logging.getLogger(__name__)


@dataclass
class StoreNotification:
    """
    Notification delivered to subscribers.

    Wraps the payload with the emitting store and event kind.
    """
    kind: StoreEvent
    store: str
    payload: Any
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class DeliveryFailure:
    """Record of a handler that raised while receiving a notification."""
    kind: StoreEvent
    handler: Callable[[StoreNotification], None]
    exception: Exception
    timestamp: datetime = field(default_factory=datetime.now)


Handler = Callable[[StoreNotification], None]

DEFAULT_LOG_SIZE = 256


class EventEmitter:
    """
    Synchronous per-kind publish/subscribe.

    Nothing is queued: emit() delivers to every handler before returning.
    """

    def __init__(self, source: str = "", log_size: int = DEFAULT_LOG_SIZE):
        self.source = source
        self._handlers: dict[StoreEvent, list[Handler]] = {}
        # Most recent notifications only
        self._log: deque[StoreNotification] = deque(maxlen=log_size)

    def on(self, kind: StoreEvent | str, handler: Handler) -> None:
        """Subscribe a handler to an event kind."""
        self._handlers.setdefault(StoreEvent(kind), []).append(handler)

    def off(self, kind: StoreEvent | str, handler: Handler | None = None) -> None:
        """
        Unsubscribe a handler, or every handler of a kind when none is given.
        """
        kind = StoreEvent(kind)
        if handler is None:
            self._handlers.pop(kind, None)
            return
        handlers = self._handlers.get(kind, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, kind: StoreEvent | str) -> int:
        return len(self._handlers.get(StoreEvent(kind), []))

    def emit(
        self,
        kind: StoreEvent | str,
        payload: Any = None,
    ) -> tuple[int, list[DeliveryFailure]]:
        """
        Emit a notification to all handlers of its kind.

        Returns tuple of (delivered_count, failures).
        Failing handlers are logged but don't halt delivery to the others.
        """
        notification = StoreNotification(
            kind=StoreEvent(kind),
            store=self.source,
            payload=payload,
        )
        self._log.append(notification)

        delivered = 0
        failures: list[DeliveryFailure] = []
        # Copy so handlers may unsubscribe while being called
        for handler in list(self._handlers.get(notification.kind, [])):
            try:
                handler(notification)
                delivered += 1
            except Exception as exc:
                failures.append(
                    DeliveryFailure(kind=notification.kind, handler=handler, exception=exc)
                )
                logger.error(
                    f"Handler failed for '{notification.kind.value}' "
                    f"on store '{self.source}': {exc}",
                    exc_info=True,
                )

        return delivered, failures

    def get_notifications(self, kind: StoreEvent | str | None = None) -> list[StoreNotification]:
        """Query the notification log, optionally by kind."""
        if kind is None:
            return list(self._log)
        kind = StoreEvent(kind)
        return [n for n in self._log if n.kind == kind]

    def clear_log(self) -> None:
        """Clear notification log."""
        self._log.clear()
