from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from ..observability import record_decode_error
from .errors import DecodeError, InvalidNumber, MalformedPayload, UnrecognizedShape
from .models import DecodedEvent, Ticker, Trade
from .schemas import FRAME_MODELS, TickerFrame


class MessageDecoder:
    """Turns one raw feed frame into a ``Trade`` or ``Ticker``."""

    def __init__(self) -> None:
        self._logger = logging.getLogger("market_feed.feed.decoder")

    def decode(self, frame: str | bytes) -> DecodedEvent:
        try:
            payload = json.loads(frame)
        except (TypeError, ValueError) as exc:
            raise MalformedPayload(f"frame is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise MalformedPayload(f"expected a JSON object, got {type(payload).__name__}")

        symbol = payload.get("symbol")
        if not isinstance(symbol, str) or not symbol:
            raise UnrecognizedShape("symbol must be a non-empty string", field="symbol")
        event_type = payload.get("eventType")
        model = FRAME_MODELS.get(event_type) if isinstance(event_type, str) else None
        if model is None:
            raise UnrecognizedShape(f"unrecognized eventType {event_type!r}", field="eventType")

        try:
            parsed = model.model_validate(payload)
        except ValidationError as exc:
            raise self._translate(exc) from exc
        if isinstance(parsed, TickerFrame):
            return Ticker(
                symbol=parsed.symbol,
                price=parsed.price,
                change=parsed.change,
                change_percent=parsed.change_percent,
                high=parsed.high,
                low=parsed.low,
                volume=parsed.volume,
                timestamp=parsed.timestamp,
            )
        return Trade(symbol=parsed.symbol, price=parsed.price, timestamp=parsed.timestamp)

    def try_decode(self, frame: str | bytes) -> DecodedEvent | None:
        """Decode ``frame`` or log the failure and return ``None``."""
        try:
            return self.decode(frame)
        except DecodeError as exc:
            record_decode_error(exc.kind)
            self._logger.warning("Dropping frame (%s): %s", exc.kind, exc)
            self._logger.debug("Dropped frame payload: %r", frame)
            return None

    @staticmethod
    def _translate(exc: ValidationError) -> DecodeError:
        error: dict[str, Any] = exc.errors()[0]
        location = error.get("loc") or ()
        field = str(location[0]) if location else None
        if error.get("type") == "missing":
            return UnrecognizedShape(f"missing field {field}", field=field)
        return InvalidNumber(f"invalid value for {field}: {error.get('msg')}", field=field)


__all__ = ["MessageDecoder"]
