from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Union

from ..observability import record_reconnect
from .aggregator import StateAggregator
from .clock import Clock, TimerHandle
from .decoder import MessageDecoder
from .models import ConnectionState
from .store import FeedStore
from .transport import Transport, TransportHandle

DEFAULT_RECONNECT_DELAY_SECONDS = 3.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class _Opened:
    generation: int


@dataclass(slots=True)
class _FrameReceived:
    generation: int
    payload: str | bytes


@dataclass(slots=True)
class _Closed:
    generation: int
    error: str | None = None


@dataclass(slots=True)
class _ReconnectDue:
    pass


@dataclass(slots=True)
class _Call:
    callback: Callable[[], None]


FeedEvent = Union[_Opened, _FrameReceived, _Closed, _ReconnectDue, _Call]


@dataclass(slots=True)
class ConnectionStatus:
    state: ConnectionState = ConnectionState.DISCONNECTED
    connect_attempts: int = 0
    connects: int = 0
    disconnects: int = 0
    reconnects_scheduled: int = 0
    last_error: str | None = None
    last_connected_at: datetime | None = None
    last_disconnected_at: datetime | None = None
    terminated: bool = False

    def as_dict(self) -> dict[str, object]:
        return {
            "state": self.state.value,
            "connect_attempts": self.connect_attempts,
            "connects": self.connects,
            "disconnects": self.disconnects,
            "reconnects_scheduled": self.reconnects_scheduled,
            "last_error": self.last_error,
            "last_connected_at": self.last_connected_at.isoformat() if self.last_connected_at else None,
            "last_disconnected_at": self.last_disconnected_at.isoformat() if self.last_disconnected_at else None,
            "terminated": self.terminated,
        }


class _ConnectionListener:
    """Tags transport callbacks with the connection generation that produced them."""

    def __init__(self, manager: "ConnectionManager", generation: int) -> None:
        self._manager = manager
        self._generation = generation

    def on_open(self) -> None:
        self._manager._post(_Opened(self._generation))

    def on_message(self, frame: str | bytes) -> None:
        self._manager._post(_FrameReceived(self._generation, frame))

    def on_error(self, exc: BaseException) -> None:
        self._manager._post(_Closed(self._generation, str(exc) or type(exc).__name__))

    def on_close(self) -> None:
        self._manager._post(_Closed(self._generation))


class ConnectionManager:
    """
    Owns the feed transport lifecycle.

    Transport callbacks and timers only enqueue events; a single control loop
    task consumes the queue and runs every handler to completion, so frames are
    decoded and aggregated strictly in delivery order.
    """

    def __init__(
        self,
        *,
        url: str,
        transport: Transport,
        clock: Clock,
        store: FeedStore,
        decoder: MessageDecoder,
        aggregator: StateAggregator,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY_SECONDS,
    ) -> None:
        self._url = url
        self._transport = transport
        self._clock = clock
        self._store = store
        self._decoder = decoder
        self._aggregator = aggregator
        self._reconnect_delay = reconnect_delay
        self._events: asyncio.Queue[FeedEvent] = asyncio.Queue()
        self._loop_task: asyncio.Task[None] | None = None
        self._handle: TransportHandle | None = None
        self._reconnect_timer: TimerHandle | None = None
        self._generation = 0
        self._terminated = False
        self.status = ConnectionStatus()
        self._logger = logging.getLogger("market_feed.feed.connection")

    @property
    def state(self) -> ConnectionState:
        return self.status.state

    @property
    def terminated(self) -> bool:
        return self._terminated

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_timer is not None

    def start(self) -> None:
        """Open a new connection unless one is already connecting or connected."""
        if self._terminated:
            return
        self._ensure_loop()
        if self.status.state is not ConnectionState.DISCONNECTED:
            return
        self._generation += 1
        generation = self._generation
        self.status.connect_attempts += 1
        self._set_state(ConnectionState.CONNECTING)
        self._logger.info("Connecting to %s (attempt %s)", self._url, self.status.connect_attempts)
        try:
            self._handle = self._transport.open(self._url, _ConnectionListener(self, generation))
        except Exception as exc:
            self._logger.warning("Failed to open feed transport: %s", exc)
            self._post(_Closed(generation, str(exc) or type(exc).__name__))

    def submit(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on the control loop after already queued events."""
        self._post(_Call(callback))

    async def drain(self) -> None:
        """Wait until every queued event has been handled."""
        await self._events.join()

    async def shutdown(self) -> None:
        if self._terminated:
            return
        self._terminated = True
        self._cancel_reconnect()
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.close()
            await handle.wait_closed()
        self._set_state(ConnectionState.DISCONNECTED)
        self.status.terminated = True
        if self._loop_task and not self._loop_task.done():
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:  # pragma: no cover - expected on shutdown
                pass
        self._loop_task = None
        self._discard_pending()
        self._logger.info("Feed connection manager stopped")

    def _ensure_loop(self) -> None:
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self._run_loop(), name="market-feed-control-loop")

    def _post(self, event: FeedEvent) -> None:
        if self._terminated:
            return
        self._events.put_nowait(event)

    async def _run_loop(self) -> None:
        while True:
            event = await self._events.get()
            try:
                if not self._terminated:
                    self._dispatch(event)
            except Exception as exc:
                self._logger.exception("Feed event handler failed: %s", exc)
            finally:
                self._events.task_done()

    def _dispatch(self, event: FeedEvent) -> None:
        if isinstance(event, _FrameReceived):
            self._handle_frame(event)
        elif isinstance(event, _Opened):
            self._handle_open(event)
        elif isinstance(event, _Closed):
            self._handle_close(event)
        elif isinstance(event, _ReconnectDue):
            self._reconnect_timer = None
            self._logger.info("Reconnect delay elapsed; reconnecting")
            self.start()
        elif isinstance(event, _Call):
            event.callback()

    def _handle_open(self, event: _Opened) -> None:
        if event.generation != self._generation:
            return
        self._cancel_reconnect()
        self.status.connects += 1
        self.status.last_connected_at = _utcnow()
        self._set_state(ConnectionState.CONNECTED)
        self._logger.info("Connected to %s", self._url)

    def _handle_frame(self, event: _FrameReceived) -> None:
        if event.generation != self._generation:
            return
        decoded = self._decoder.try_decode(event.payload)
        if decoded is not None:
            self._aggregator.apply(decoded)

    def _handle_close(self, event: _Closed) -> None:
        if event.generation != self._generation:
            return
        if event.error:
            self.status.last_error = event.error
        if self.status.state is not ConnectionState.DISCONNECTED:
            self._handle = None
            self.status.disconnects += 1
            self.status.last_disconnected_at = _utcnow()
            self._set_state(ConnectionState.DISCONNECTED)
            if event.error:
                self._logger.warning("Feed connection lost: %s", event.error)
            else:
                self._logger.warning("Feed connection closed")
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._reconnect_timer is not None or self._terminated:
            return
        self._reconnect_timer = self._clock.call_later(
            self._reconnect_delay,
            lambda: self._post(_ReconnectDue()),
        )
        self.status.reconnects_scheduled += 1
        record_reconnect()
        self._logger.info("Reconnecting in %.1fs", self._reconnect_delay)

    def _cancel_reconnect(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

    def _set_state(self, state: ConnectionState) -> None:
        self.status.state = state
        self._store.set_connection(state)

    def _discard_pending(self) -> None:
        while not self._events.empty():
            self._events.get_nowait()
            self._events.task_done()


__all__ = ["ConnectionManager", "ConnectionStatus", "DEFAULT_RECONNECT_DELAY_SECONDS"]
