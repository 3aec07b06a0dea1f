from fastapi.testclient import TestClient

from market_feed.main import app
from market_feed.observability import (
    PROMETHEUS_CONTENT_TYPE,
    generate_prometheus_metrics,
    record_decode_error,
    record_frame,
    record_reconnect,
    reset_prometheus_metrics,
    update_connection_state,
    update_rate,
)


def test_prometheus_recorders_emit_metrics():
    reset_prometheus_metrics()
    record_frame("processed")
    record_frame("processed")
    record_decode_error("invalid_number")
    record_reconnect()
    update_connection_state("connected")
    update_rate(12)

    payload = generate_prometheus_metrics().decode()
    assert 'feed_frames_total{result="processed"} 2.0' in payload
    assert 'feed_frames_total{result="dropped"} 1.0' in payload
    assert 'feed_decode_errors_total{kind="invalid_number"} 1.0' in payload
    assert "feed_reconnects_total 1.0" in payload
    assert "feed_connection_state 2.0" in payload
    assert "feed_update_rate 12.0" in payload


def test_reset_clears_previous_samples():
    reset_prometheus_metrics()
    record_reconnect()
    reset_prometheus_metrics()

    payload = generate_prometheus_metrics().decode()
    assert "feed_reconnects_total 0.0" in payload


def test_prometheus_metrics_endpoint_exposes_registry():
    reset_prometheus_metrics()
    record_frame("processed")

    client = TestClient(app)
    response = client.get("/metrics")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith(PROMETHEUS_CONTENT_TYPE.split(";")[0])
    assert "feed_frames_total" in response.text
