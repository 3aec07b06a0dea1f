from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import websockets
from websockets.exceptions import WebSocketException

from .errors import TransportError


class TransportListener(Protocol):
    def on_open(self) -> None:
        ...

    def on_message(self, frame: str | bytes) -> None:
        ...

    def on_error(self, exc: BaseException) -> None:
        ...

    def on_close(self) -> None:
        ...


class TransportHandle(Protocol):
    def close(self) -> None:
        ...

    async def wait_closed(self) -> None:
        ...


class Transport(Protocol):
    def open(self, url: str, listener: TransportListener) -> TransportHandle:
        ...


class _TaskHandle:
    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task

    def close(self) -> None:
        if not self._task.done():
            self._task.cancel()

    async def wait_closed(self) -> None:
        """Wait for the pump task, including the close handshake, to finish."""
        try:
            await self._task
        except asyncio.CancelledError:  # pragma: no cover - expected after close()
            pass


class WebsocketTransport:
    """
    Receive-only WebSocket transport.

    Each ``open`` call runs one connection in its own task and reports its
    lifecycle to the listener; ``on_close`` is always the last callback.
    """

    def __init__(
        self,
        *,
        open_timeout: float = 10.0,
        max_size: int | None = 2**20,
        close_timeout: float = 5.0,
    ) -> None:
        self._open_timeout = open_timeout
        self._max_size = max_size
        self._close_timeout = close_timeout
        self._logger = logging.getLogger("market_feed.feed.transport")

    def open(self, url: str, listener: TransportListener) -> TransportHandle:
        task = asyncio.get_running_loop().create_task(
            self._pump(url, listener),
            name="market-feed-transport",
        )
        return _TaskHandle(task)

    async def _pump(self, url: str, listener: TransportListener) -> None:
        try:
            async with websockets.connect(
                url,
                open_timeout=self._open_timeout,
                close_timeout=self._close_timeout,
                max_size=self._max_size,
            ) as connection:
                self._logger.debug("WebSocket opened: %s", url)
                listener.on_open()
                async for message in connection:
                    listener.on_message(message)
        except asyncio.CancelledError:
            self._logger.debug("WebSocket task cancelled: %s", url)
            raise
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            listener.on_error(TransportError(f"{type(exc).__name__}: {exc}"))
        finally:
            listener.on_close()


__all__ = [
    "Transport",
    "TransportHandle",
    "TransportListener",
    "WebsocketTransport",
]
