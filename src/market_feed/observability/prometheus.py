from __future__ import annotations

from typing import Literal

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)

PROMETHEUS_CONTENT_TYPE = CONTENT_TYPE_LATEST

FrameResult = Literal["processed", "dropped"]

_CONNECTION_STATE_VALUES = {
    "disconnected": 0,
    "connecting": 1,
    "connected": 2,
}


def _build_registry() -> tuple[CollectorRegistry, Counter, Counter, Counter, Gauge, Gauge]:
    registry = CollectorRegistry()
    frames_counter = Counter(
        "feed_frames_total",
        "Inbound feed frames grouped by outcome",
        labelnames=("result",),
        registry=registry,
    )
    decode_errors = Counter(
        "feed_decode_errors_total",
        "Frames rejected by the decoder grouped by error kind",
        labelnames=("kind",),
        registry=registry,
    )
    reconnects = Counter(
        "feed_reconnects_total",
        "Reconnect attempts scheduled after the feed connection dropped",
        registry=registry,
    )
    connection_gauge = Gauge(
        "feed_connection_state",
        "Feed connection state (0=disconnected, 1=connecting, 2=connected)",
        registry=registry,
    )
    rate_gauge = Gauge(
        "feed_update_rate",
        "Events processed during the last completed rate window",
        registry=registry,
    )
    return registry, frames_counter, decode_errors, reconnects, connection_gauge, rate_gauge


(
    _registry,
    _frames_counter,
    _decode_errors,
    _reconnects,
    _connection_gauge,
    _rate_gauge,
) = _build_registry()


def record_frame(result: FrameResult) -> None:
    _frames_counter.labels(result=result).inc()


def record_decode_error(kind: str) -> None:
    _frames_counter.labels(result="dropped").inc()
    _decode_errors.labels(kind=kind).inc()


def record_reconnect() -> None:
    _reconnects.inc()


def update_connection_state(state: str) -> None:
    _connection_gauge.set(_CONNECTION_STATE_VALUES.get(state, 0))


def update_rate(value: int) -> None:
    _rate_gauge.set(value)


def generate_prometheus_metrics() -> bytes:
    return generate_latest(_registry)


def reset_prometheus_metrics() -> None:
    global _registry, _frames_counter, _decode_errors, _reconnects, _connection_gauge, _rate_gauge
    (
        _registry,
        _frames_counter,
        _decode_errors,
        _reconnects,
        _connection_gauge,
        _rate_gauge,
    ) = _build_registry()
