from __future__ import annotations

from ..observability import record_frame
from .models import DecodedEvent, Ticker, Trade
from .rate import RateCounter
from .store import FeedStore


class StateAggregator:
    """Folds decoded events into the store, one event at a time."""

    def __init__(self, store: FeedStore, rate_counter: RateCounter) -> None:
        self._store = store
        self._rate_counter = rate_counter

    def apply(self, event: DecodedEvent) -> None:
        if self._store.closed:
            return
        if isinstance(event, Trade):
            self._rate_counter.record()
            self._store.apply_trade(event)
        elif isinstance(event, Ticker):
            self._rate_counter.record()
            self._store.apply_ticker(event)
        else:
            raise TypeError(f"Unsupported feed event: {event!r}")
        record_frame("processed")


__all__ = ["StateAggregator"]
