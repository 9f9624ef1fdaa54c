from __future__ import annotations

import itertools
import logging
from typing import Callable, Dict

from .models.events import DashboardEvent, EventPayload
from .utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)

Subscriber = Callable[[DashboardEvent], None]


class EventDispatcher:
    """In-process fan-out of dashboard events to live subscribers."""

    def __init__(self, clock: Clock = utc_now):
        self._clock = clock
        self._subscribers: Dict[int, Subscriber] = {}
        self._tokens = itertools.count()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        token = next(self._tokens)
        self._subscribers[token] = callback

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    def publish(self, payload: EventPayload) -> DashboardEvent:
        event = DashboardEvent(type=payload.type, data=payload, timestamp=self._clock())
        # Snapshot so callbacks may unsubscribe while we iterate.
        for callback in list(self._subscribers.values()):
            try:
                callback(event)
            except Exception:
                logger.exception("Subscriber %r failed on %s event", callback, event.type.value)
        return event


__all__ = ["EventDispatcher", "Subscriber"]
