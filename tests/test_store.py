from __future__ import annotations

import pytest

from market_feed.feed.models import ConnectionState, Counters, Ticker, Trade
from market_feed.feed.store import FeedStore


def test_initial_snapshot_is_empty() -> None:
    snapshot = FeedStore().snapshot()
    assert snapshot.connection is ConnectionState.DISCONNECTED
    assert dict(snapshot.trades) == {}
    assert dict(snapshot.tickers) == {}
    assert snapshot.counters == Counters()


def test_snapshot_is_isolated_from_later_mutations() -> None:
    store = FeedStore()
    store.apply_trade(Trade(symbol="BTC", price=1.0, timestamp=1))
    before = store.snapshot()

    store.apply_trade(Trade(symbol="BTC", price=2.0, timestamp=2))
    store.apply_trade(Trade(symbol="ETH", price=3.0, timestamp=3))

    assert before.trades["BTC"].price == 1.0
    assert "ETH" not in before.trades
    assert before.counters.total_messages == 1
    with pytest.raises(TypeError):
        before.trades["SOL"] = Trade(symbol="SOL", price=1.0, timestamp=1)  # type: ignore[index]


def test_snapshot_is_cached_until_mutation() -> None:
    store = FeedStore()
    first = store.snapshot()
    assert store.snapshot() is first
    store.set_update_rate(3)
    assert store.snapshot() is not first
    assert store.snapshot().counters.update_rate == 3


def test_observers_are_notified_after_each_mutation() -> None:
    store = FeedStore()
    seen: list[int] = []
    store.subscribe(lambda: seen.append(store.snapshot().counters.total_messages))

    store.set_connection(ConnectionState.CONNECTING)
    store.apply_trade(Trade(symbol="BTC", price=1.0, timestamp=1))
    store.apply_ticker(
        Ticker(symbol="BTC", price=1.0, change=0.0, change_percent=0.0, high=1.0, low=1.0, volume=0.0, timestamp=1)
    )

    assert seen == [0, 1, 2]


def test_same_connection_state_does_not_notify() -> None:
    store = FeedStore()
    calls: list[str] = []
    store.subscribe(lambda: calls.append("changed"))
    store.set_connection(ConnectionState.DISCONNECTED)
    assert calls == []


def test_unsubscribe_stops_notifications() -> None:
    store = FeedStore()
    calls: list[str] = []
    unsubscribe = store.subscribe(lambda: calls.append("changed"))
    unsubscribe()
    unsubscribe()
    store.set_update_rate(1)
    assert calls == []


def test_failing_observer_does_not_block_others() -> None:
    store = FeedStore()
    calls: list[str] = []

    def broken() -> None:
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(lambda: calls.append("ok"))
    store.apply_trade(Trade(symbol="BTC", price=1.0, timestamp=1))

    assert calls == ["ok"]
    assert store.snapshot().trades["BTC"].price == 1.0


def test_closed_store_keeps_last_snapshot_and_ignores_mutations() -> None:
    store = FeedStore()
    calls: list[str] = []
    store.subscribe(lambda: calls.append("changed"))
    store.apply_trade(Trade(symbol="BTC", price=1.0, timestamp=1))
    last = store.snapshot()

    store.close()
    store.apply_trade(Trade(symbol="BTC", price=9.0, timestamp=9))
    store.set_update_rate(7)
    store.set_connection(ConnectionState.CONNECTED)

    assert calls == ["changed"]
    assert store.snapshot() == last
    assert store.snapshot().trades["BTC"].price == 1.0


def test_snapshot_as_dict_uses_dashboard_shape() -> None:
    store = FeedStore()
    store.set_connection(ConnectionState.CONNECTED)
    store.apply_trade(Trade(symbol="BTC", price=101.0, timestamp=2000))
    store.apply_ticker(
        Ticker(symbol="ETH", price=2.0, change=0.1, change_percent=5.0, high=3.0, low=1.0, volume=10.0, timestamp=7)
    )

    payload = store.snapshot().as_dict()

    assert payload["connected"] is True
    assert payload["connection"] == "connected"
    assert payload["livePrices"] == {"BTC": {"symbol": "BTC", "price": 101.0, "timestamp": 2000}}
    assert payload["tickerStats"]["ETH"]["changePercent"] == 5.0
    assert payload["stats"] == {"totalMessages": 2, "tradeCount": 1, "tickerCount": 1, "updateRate": 0}
