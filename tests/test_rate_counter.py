from __future__ import annotations

from market_feed.feed.rate import RateCounter
from market_feed.feed.store import FeedStore

from utils.feed_doubles import ManualClock


def test_tick_publishes_and_resets_window() -> None:
    store = FeedStore()
    rate = RateCounter(store)
    for _ in range(5):
        rate.record()

    rate.tick()
    assert store.snapshot().counters.update_rate == 5
    assert rate.pending == 0

    rate.tick()
    assert store.snapshot().counters.update_rate == 0


def test_update_rate_is_overwritten_not_accumulated() -> None:
    store = FeedStore()
    rate = RateCounter(store)
    rate.record()
    rate.record()
    rate.tick()
    rate.record()
    rate.tick()
    assert store.snapshot().counters.update_rate == 1


def test_clock_drives_ticks_every_interval() -> None:
    store = FeedStore()
    clock = ManualClock()
    rate = RateCounter(store, interval=1.0)
    rate.start(clock)

    for _ in range(4):
        rate.record()
    clock.advance_ms(999)
    assert store.snapshot().counters.update_rate == 0

    clock.advance_ms(1)
    assert store.snapshot().counters.update_rate == 4

    rate.record()
    clock.advance(1.0)
    assert store.snapshot().counters.update_rate == 1

    clock.advance(1.0)
    assert store.snapshot().counters.update_rate == 0


def test_start_is_idempotent_and_stop_cancels_timer() -> None:
    store = FeedStore()
    clock = ManualClock()
    rate = RateCounter(store, interval=1.0)
    rate.start(clock)
    rate.start(clock)
    assert len(clock.active_timers) == 1
    assert rate.running

    rate.stop()
    rate.record()
    clock.advance(5.0)

    assert not rate.running
    assert clock.active_timers == []
    assert store.snapshot().counters.update_rate == 0


def test_custom_dispatch_receives_ticks() -> None:
    store = FeedStore()
    clock = ManualClock()
    rate = RateCounter(store, interval=0.5)
    dispatched: list[int] = []
    rate.start(clock, dispatch=lambda: dispatched.append(clock.now_ms))

    clock.advance(2.0)

    assert dispatched == [500, 1000, 1500, 2000]
