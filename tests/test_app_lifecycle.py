from fastapi.testclient import TestClient

from market_feed import main
from market_feed.config import Settings
from market_feed.feed import client as client_module
from market_feed.feed.client import FeedClient
from market_feed.websocket import snapshot_broadcaster

from utils.feed_doubles import FakeTransport, ManualClock


def _install_feed(monkeypatch, settings: Settings) -> tuple[FeedClient, FakeTransport]:
    transport = FakeTransport()
    feed = FeedClient(settings, transport=transport, clock=ManualClock())
    monkeypatch.setattr(main, "get_settings", lambda: settings)
    monkeypatch.setattr(client_module, "_feed_client", feed)
    return feed, transport


def test_lifespan_starts_and_stops_feed(monkeypatch):
    settings = Settings(log_dir=None)
    feed, transport = _install_feed(monkeypatch, settings)

    with TestClient(main.app) as client:
        assert feed.running
        assert transport.attempts == 1
        assert snapshot_broadcaster._task is not None

        response = client.get("/healthz")
        assert response.status_code == 200
        payload = response.json()
        assert payload["connection"] == "connecting"
        assert payload["feed"]["connect_attempts"] == 1

    assert not feed.running
    assert feed.connection.terminated
    assert feed.store.closed
    assert transport.latest.closed
    assert snapshot_broadcaster._task is None
    assert client_module._feed_client is None


def test_lifespan_without_snapshot_push(monkeypatch):
    settings = Settings(log_dir=None, snapshot_push_enabled=False)
    feed, transport = _install_feed(monkeypatch, settings)

    with TestClient(main.app):
        assert feed.running
        assert snapshot_broadcaster._task is None

    assert feed.connection.terminated
