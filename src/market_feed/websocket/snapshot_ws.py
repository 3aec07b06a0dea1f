from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Set

from fastapi import WebSocket

from ..feed.models import FeedSnapshot


class SnapshotBroadcaster:
    """Tracks dashboard WebSocket clients and pushes feed snapshots to them."""

    def __init__(self) -> None:
        self.active_connections: Set[WebSocket] = set()
        self.logger = logging.getLogger("market_feed.websocket.snapshot")
        self._changed = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._source: Callable[[], FeedSnapshot] | None = None

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections.add(websocket)
        self.logger.info("Client connected (total=%s)", len(self.active_connections))

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.active_connections:
            self.active_connections.discard(websocket)
            self.logger.info("Client disconnected (total=%s)", len(self.active_connections))

    def notify(self) -> None:
        """Feed store observer; marks the snapshot dirty for the push loop."""
        self._changed.set()

    async def start(self, source: Callable[[], FeedSnapshot]) -> None:
        self._source = source
        if self._task is None or self._task.done():
            self._changed = asyncio.Event()
            self._task = asyncio.create_task(self._push_loop(), name="snapshot-broadcaster")

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:  # pragma: no cover - expected on shutdown
                pass
        self._task = None
        self._source = None

    async def _push_loop(self) -> None:
        # Changes arriving while a push is in flight collapse into one follow-up push.
        while True:
            await self._changed.wait()
            self._changed.clear()
            if self._source is None:
                continue
            await self.broadcast_snapshot(self._source())

    async def broadcast_snapshot(self, snapshot: FeedSnapshot) -> None:
        if not self.active_connections:
            return
        message = {
            "type": "snapshot",
            "data": snapshot.as_dict(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        disconnected: Set[WebSocket] = set()
        for connection in list(self.active_connections):
            try:
                await connection.send_json(message)
            except Exception as exc:  # pragma: no cover - network failure path
                self.logger.warning("Failed to send snapshot: %s", exc)
                disconnected.add(connection)
        for connection in disconnected:
            self.disconnect(connection)

    async def send_personal_message(self, message: Dict[str, Any], websocket: WebSocket) -> None:
        try:
            await websocket.send_json(message)
        except Exception as exc:  # pragma: no cover - network failure path
            self.logger.error("Failed to send message to client: %s", exc)


snapshot_broadcaster = SnapshotBroadcaster()


__all__ = ["SnapshotBroadcaster", "snapshot_broadcaster"]
