from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Union


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True, slots=True)
class Trade:
    symbol: str
    price: float
    timestamp: int

    def as_dict(self) -> dict[str, object]:
        return {"symbol": self.symbol, "price": self.price, "timestamp": self.timestamp}


@dataclass(frozen=True, slots=True)
class Ticker:
    """Rolling 24-hour summary for one symbol."""

    symbol: str
    price: float
    change: float
    change_percent: float
    high: float
    low: float
    volume: float
    timestamp: int

    def as_dict(self) -> dict[str, object]:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "change": self.change,
            "changePercent": self.change_percent,
            "high": self.high,
            "low": self.low,
            "volume": self.volume,
            "timestamp": self.timestamp,
        }


DecodedEvent = Union[Trade, Ticker]


@dataclass(frozen=True, slots=True)
class Counters:
    total_messages: int = 0
    trade_count: int = 0
    ticker_count: int = 0
    update_rate: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "totalMessages": self.total_messages,
            "tradeCount": self.trade_count,
            "tickerCount": self.ticker_count,
            "updateRate": self.update_rate,
        }


def _empty_mapping() -> Mapping[str, object]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class FeedSnapshot:
    """
    Immutable read of the aggregate feed state.

    ``trades`` and ``tickers`` are read-only views over private copies, so a
    snapshot never changes after it has been handed out.
    """

    connection: ConnectionState = ConnectionState.DISCONNECTED
    trades: Mapping[str, Trade] = field(default_factory=_empty_mapping)  # type: ignore[assignment]
    tickers: Mapping[str, Ticker] = field(default_factory=_empty_mapping)  # type: ignore[assignment]
    counters: Counters = field(default_factory=Counters)

    @property
    def connected(self) -> bool:
        return self.connection is ConnectionState.CONNECTED

    def as_dict(self) -> dict[str, object]:
        return {
            "connected": self.connected,
            "connection": self.connection.value,
            "livePrices": {symbol: trade.as_dict() for symbol, trade in self.trades.items()},
            "tickerStats": {symbol: ticker.as_dict() for symbol, ticker in self.tickers.items()},
            "stats": self.counters.as_dict(),
        }


__all__ = [
    "ConnectionState",
    "Counters",
    "DecodedEvent",
    "FeedSnapshot",
    "Ticker",
    "Trade",
]
