from __future__ import annotations

import logging
from typing import Callable

from ..config import Settings, get_settings
from .aggregator import StateAggregator
from .clock import AsyncioClock, Clock
from .connection import ConnectionManager, ConnectionStatus
from .decoder import MessageDecoder
from .models import FeedSnapshot
from .rate import RateCounter
from .store import FeedStore, Observer
from .transport import Transport, WebsocketTransport


class FeedClient:
    """
    Live market feed: one connection, one aggregate state, one rate counter.

    Construct it once, ``await start()`` it inside a running event loop and hand
    it to whatever needs to read snapshots. ``await shutdown()`` is final.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: Transport | None = None,
        clock: Clock | None = None,
        url: str | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or AsyncioClock()
        self._url = url or self._settings.feed_url
        self.store = FeedStore()
        self.rate_counter = RateCounter(self.store, interval=self._settings.rate_interval_seconds)
        self.decoder = MessageDecoder()
        self.aggregator = StateAggregator(self.store, self.rate_counter)
        self.connection = ConnectionManager(
            url=self._url,
            transport=transport
            or WebsocketTransport(
                open_timeout=self._settings.connect_timeout_seconds,
                max_size=self._settings.max_frame_bytes,
            ),
            clock=self._clock,
            store=self.store,
            decoder=self.decoder,
            aggregator=self.aggregator,
            reconnect_delay=self._settings.reconnect_delay_seconds,
        )
        self._started = False
        self._stopped = False
        self._logger = logging.getLogger("market_feed.feed.client")

    @property
    def running(self) -> bool:
        return self._started and not self._stopped

    @property
    def status(self) -> ConnectionStatus:
        return self.connection.status

    async def start(self) -> None:
        if self._started or self._stopped:
            return
        self._started = True
        self.rate_counter.start(self._clock, dispatch=self._post_rate_tick)
        self.connection.start()
        self._logger.info(
            "Market feed started (url=%s reconnect_delay=%ss rate_interval=%ss)",
            self._url,
            self._settings.reconnect_delay_seconds,
            self._settings.rate_interval_seconds,
        )

    async def shutdown(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        self.rate_counter.stop()
        await self.connection.shutdown()
        self.store.close()
        self._logger.info("Market feed stopped")

    def snapshot(self) -> FeedSnapshot:
        return self.store.snapshot()

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        return self.store.subscribe(observer)

    async def drain(self) -> None:
        await self.connection.drain()

    def _post_rate_tick(self) -> None:
        self.connection.submit(self.rate_counter.tick)


_feed_client: FeedClient | None = None


def get_feed_client() -> FeedClient:
    global _feed_client
    if _feed_client is None:
        _feed_client = FeedClient(get_settings())
    return _feed_client


def reset_feed_client() -> None:
    """Testing hook to drop the shared feed client; callers shut it down first."""
    global _feed_client
    _feed_client = None


__all__ = ["FeedClient", "get_feed_client", "reset_feed_client"]
