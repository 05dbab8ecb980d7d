"""DONQ — Live Update Channel.

Fan-out of events to connected WebSocket viewers. Best effort only: there is
no backlog, so a viewer that connects after an event never sees it, and a
viewer whose send fails is dropped.
"""

import asyncio
from typing import Any, Set

from fastapi import WebSocket

from donq.core.logging import get_logger

logger = get_logger("live")


class LiveUpdateChannel:
    """Set of subscribed WebSockets plus a broadcast method."""

    def __init__(self):
        self._subscribers: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._subscribers.add(websocket)
        logger.info(f"Viewer connected ({self.subscriber_count} total)")

    async def unsubscribe(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._subscribers.discard(websocket)
        logger.info(f"Viewer disconnected ({self.subscriber_count} total)")

    async def broadcast(self, event: str, payload: Any) -> int:
        """Send ``{"event", "data"}`` to every viewer; return how many got it."""
        message = {"event": event, "data": payload}
        async with self._lock:
            targets = list(self._subscribers)

        delivered = 0
        for websocket in targets:
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping viewer after failed send: {e}")
                await self.unsubscribe(websocket)

        logger.debug(
            f"Broadcast '{event}' to {delivered}/{len(targets)} viewers",
            extra={"event": event, "count": delivered},
        )
        return delivered
