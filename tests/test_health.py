import pytest
from fastapi.testclient import TestClient

from market_feed.config import Settings
from market_feed.feed import client as client_module
from market_feed.feed.client import FeedClient
from market_feed.feed.models import ConnectionState
from market_feed.main import app

from utils.feed_doubles import FakeTransport, ManualClock


@pytest.fixture
def feed(monkeypatch):
    feed = FeedClient(Settings(log_dir=None), transport=FakeTransport(), clock=ManualClock())
    monkeypatch.setattr(client_module, "_feed_client", feed)
    return feed


def test_healthz_degraded_while_disconnected(feed):
    client = TestClient(app)
    response = client.get("/healthz")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "degraded"
    assert body["connection"] == "disconnected"
    assert body["feed"]["connect_attempts"] == 0
    assert body["feed"]["terminated"] is False


def test_healthz_ok_when_connected(feed):
    feed.connection.status.state = ConnectionState.CONNECTED
    feed.connection.status.connects = 1

    client = TestClient(app)
    body = client.get("/healthz").json()
    assert body["status"] == "ok"
    assert body["connection"] == "connected"
    assert body["feed"]["connects"] == 1
