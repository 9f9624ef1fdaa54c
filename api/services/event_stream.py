from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncIterator, Optional

from mednexus_dashboard.dashboard import DashboardContext
from mednexus_dashboard.models import DashboardEvent

logger = logging.getLogger(__name__)


def format_sse(event: DashboardEvent) -> str:
    return f"event: {event.type.value}\ndata: {json.dumps(event.to_dict())}\n\n"


class EventStream:
    """One client's view of the dispatcher, buffered in a bounded queue.

    When the client falls behind and the queue is full, new events are
    dropped for that client only.
    """

    def __init__(self, context: DashboardContext, max_queue: int = 100):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue)
        self._unsubscribe = context.subscribe(self._push)
        self.dropped = 0

    def _push(self, event: DashboardEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning("Event stream queue full; dropped %s event", event.type.value)

    async def next_event(self, timeout: Optional[float] = None) -> DashboardEvent:
        return await asyncio.wait_for(self._queue.get(), timeout=timeout)

    def close(self) -> None:
        self._unsubscribe()

    async def sse(self, heartbeat_seconds: float = 15.0) -> AsyncIterator[str]:
        try:
            while True:
                try:
                    event = await self.next_event(timeout=heartbeat_seconds)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield format_sse(event)
        finally:
            self.close()
