from .aggregator import StateAggregator
from .client import FeedClient, get_feed_client, reset_feed_client
from .clock import AsyncioClock, Clock, TimerHandle
from .connection import ConnectionManager, ConnectionStatus
from .decoder import MessageDecoder
from .errors import DecodeError, InvalidNumber, MalformedPayload, TransportError, UnrecognizedShape
from .models import ConnectionState, Counters, DecodedEvent, FeedSnapshot, Ticker, Trade
from .rate import RateCounter
from .store import FeedStore
from .transport import Transport, TransportHandle, TransportListener, WebsocketTransport

__all__ = [
    "AsyncioClock",
    "Clock",
    "ConnectionManager",
    "ConnectionState",
    "ConnectionStatus",
    "Counters",
    "DecodeError",
    "DecodedEvent",
    "FeedClient",
    "FeedSnapshot",
    "FeedStore",
    "InvalidNumber",
    "MalformedPayload",
    "MessageDecoder",
    "RateCounter",
    "StateAggregator",
    "Ticker",
    "TimerHandle",
    "Trade",
    "Transport",
    "TransportError",
    "TransportHandle",
    "TransportListener",
    "UnrecognizedShape",
    "WebsocketTransport",
    "get_feed_client",
    "reset_feed_client",
]
