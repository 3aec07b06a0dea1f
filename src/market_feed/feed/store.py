from __future__ import annotations

import logging
from dataclasses import replace
from types import MappingProxyType
from typing import Callable

from ..observability import update_connection_state, update_rate
from .models import ConnectionState, Counters, FeedSnapshot, Ticker, Trade

Observer = Callable[[], None]


class FeedStore:
    """
    Holds the single aggregate feed state and notifies observers on change.

    Mutators are meant to be called from the feed's control loop only; readers
    get immutable ``FeedSnapshot`` objects through :meth:`snapshot`.
    """

    def __init__(self) -> None:
        self._connection = ConnectionState.DISCONNECTED
        self._trades: dict[str, Trade] = {}
        self._tickers: dict[str, Ticker] = {}
        self._counters = Counters()
        self._observers: list[Observer] = []
        self._snapshot: FeedSnapshot | None = None
        self._closed = False
        self._logger = logging.getLogger("market_feed.feed.store")

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> FeedSnapshot:
        if self._snapshot is None:
            self._snapshot = FeedSnapshot(
                connection=self._connection,
                trades=MappingProxyType(dict(self._trades)),
                tickers=MappingProxyType(dict(self._tickers)),
                counters=self._counters,
            )
        return self._snapshot

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def close(self) -> None:
        """Stop notifying observers; the last snapshot stays readable."""
        self._closed = True
        self._observers.clear()

    def set_connection(self, state: ConnectionState) -> None:
        if self._closed or state is self._connection:
            return
        self._connection = state
        update_connection_state(state.value)
        self._changed()

    def apply_trade(self, trade: Trade) -> None:
        if self._closed:
            return
        self._trades[trade.symbol] = trade
        counters = self._counters
        self._counters = replace(
            counters,
            total_messages=counters.total_messages + 1,
            trade_count=counters.trade_count + 1,
        )
        self._changed()

    def apply_ticker(self, ticker: Ticker) -> None:
        if self._closed:
            return
        self._tickers[ticker.symbol] = ticker
        counters = self._counters
        self._counters = replace(
            counters,
            total_messages=counters.total_messages + 1,
            ticker_count=counters.ticker_count + 1,
        )
        self._changed()

    def set_update_rate(self, value: int) -> None:
        if self._closed:
            return
        self._counters = replace(self._counters, update_rate=value)
        update_rate(value)
        self._changed()

    def _changed(self) -> None:
        self._snapshot = None
        for observer in list(self._observers):
            try:
                observer()
            except Exception as exc:
                self._logger.exception("Snapshot observer failed: %s", exc)


__all__ = ["FeedStore", "Observer"]
