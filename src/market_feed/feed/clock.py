from __future__ import annotations

import asyncio
from typing import Callable, Protocol

Callback = Callable[[], None]


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Clock(Protocol):
    def time(self) -> float:
        ...

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        ...

    def call_every(self, interval: float, callback: Callback) -> TimerHandle:
        ...


class _PeriodicTimer:
    """Fires ``callback`` every ``interval`` seconds on the event loop, anchored to the start time."""

    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callback) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._deadline = loop.time() + interval
        self._cancelled = False
        self._handle: asyncio.TimerHandle | None = loop.call_at(self._deadline, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._deadline += self._interval
        self._handle = self._loop.call_at(self._deadline, self._fire)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioClock:
    """Clock backed by the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def time(self) -> float:
        return self._get_loop().time()

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        return self._get_loop().call_later(max(delay, 0.0), callback)

    def call_every(self, interval: float, callback: Callback) -> TimerHandle:
        return _PeriodicTimer(self._get_loop(), interval, callback)


__all__ = ["AsyncioClock", "Callback", "Clock", "TimerHandle"]
