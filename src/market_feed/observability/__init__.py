"""
Observability helpers (metrics, logging instrumentation, etc.).
"""

from .prometheus import (
    PROMETHEUS_CONTENT_TYPE,
    generate_prometheus_metrics,
    record_decode_error,
    record_frame,
    record_reconnect,
    reset_prometheus_metrics,
    update_connection_state,
    update_rate,
)

__all__ = [
    "PROMETHEUS_CONTENT_TYPE",
    "generate_prometheus_metrics",
    "record_decode_error",
    "record_frame",
    "record_reconnect",
    "reset_prometheus_metrics",
    "update_connection_state",
    "update_rate",
]
