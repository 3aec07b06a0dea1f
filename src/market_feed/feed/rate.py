from __future__ import annotations

import logging
from typing import Callable

from .clock import Clock, TimerHandle
from .store import FeedStore


class RateCounter:
    """
    Counts processed events per fixed window and publishes the count to the store.

    ``record`` is called once per processed event; ``tick`` closes the current
    window. When started with a clock, ticks are scheduled every ``interval``
    seconds through ``dispatch`` so they can be queued behind pending frames.
    """

    def __init__(self, store: FeedStore, *, interval: float = 1.0) -> None:
        self._store = store
        self._interval = interval
        self._window_count = 0
        self._timer: TimerHandle | None = None
        self._logger = logging.getLogger("market_feed.feed.rate")

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def pending(self) -> int:
        return self._window_count

    @property
    def running(self) -> bool:
        return self._timer is not None

    def record(self) -> None:
        self._window_count += 1

    def tick(self) -> None:
        count = self._window_count
        self._window_count = 0
        self._store.set_update_rate(count)

    def start(self, clock: Clock, dispatch: Callable[[], None] | None = None) -> None:
        if self._timer is not None:
            return
        self._timer = clock.call_every(self._interval, dispatch or self.tick)
        self._logger.debug("Rate counter started (interval=%ss)", self._interval)

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            self._logger.debug("Rate counter stopped")


__all__ = ["RateCounter"]
