from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, Response, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router
from .config import get_settings
from .feed.client import get_feed_client, reset_feed_client
from .feed.models import ConnectionState
from .observability import PROMETHEUS_CONTENT_TYPE, generate_prometheus_metrics
from .websocket import snapshot_broadcaster


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger = logging.getLogger(settings.service_name)
    logger.info("Starting %s", settings.service_name)
    feed = get_feed_client()
    await feed.start()
    unsubscribe = None
    if settings.snapshot_push_enabled:
        unsubscribe = feed.subscribe(snapshot_broadcaster.notify)
        await snapshot_broadcaster.start(feed.snapshot)
        logger.info("Snapshot push enabled")
    yield
    # Shutdown in reverse order: stop snapshot pushes first, then the feed itself
    logger.info("Stopping %s", settings.service_name)
    if unsubscribe is not None:
        unsubscribe()
    await snapshot_broadcaster.stop()
    await feed.shutdown()
    reset_feed_client()
    logger.info("%s stopped successfully", settings.service_name)


settings = get_settings()

log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
root_logger = logging.getLogger()
root_logger.setLevel(log_level)
if settings.log_dir:
    log_path = Path(settings.log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path / "market_feed.log")
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
    root_logger.addHandler(file_handler)
app = FastAPI(title="Market Feed Service", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router, prefix="/api")


@app.get("/metrics")
async def prometheus_metrics() -> Response:
    payload = generate_prometheus_metrics()
    return Response(content=payload, media_type=PROMETHEUS_CONTENT_TYPE)


@app.get("/healthz")
async def healthz() -> dict[str, object]:
    feed = get_feed_client()
    status = feed.status
    overall = "ok" if status.state is ConnectionState.CONNECTED else "degraded"
    return {
        "status": overall,
        "connection": status.state.value,
        "feed": status.as_dict(),
    }


@app.websocket("/ws/snapshot")
async def snapshot_stream(websocket: WebSocket):
    await snapshot_broadcaster.connect(websocket)
    try:
        await snapshot_broadcaster.send_personal_message(
            {
                "type": "snapshot",
                "data": get_feed_client().snapshot().as_dict(),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            websocket,
        )
        while True:
            try:
                message = await websocket.receive_text()
                if isinstance(message, str) and message.strip().lower() == "ping":
                    await snapshot_broadcaster.send_personal_message({"type": "pong"}, websocket)
            except WebSocketDisconnect:
                break
            except Exception as exc:  # pragma: no cover - network error path
                logging.getLogger("market_feed.websocket.snapshot").warning(
                    "WebSocket error: %s", exc
                )
                break
    finally:
        snapshot_broadcaster.disconnect(websocket)
