from __future__ import annotations

import math
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, StrictInt


def _parse_wire_number(value: Any) -> float:
    # The feed sends numbers as strings; bare JSON numbers are tolerated.
    if isinstance(value, bool):
        raise ValueError("expected a numeric string, got a boolean")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("expected a numeric string, got an empty string")
        try:
            number = float(text)
        except ValueError as exc:
            raise ValueError(f"{value!r} is not numeric") from exc
    elif isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError as exc:
            raise ValueError("number is too large for a float") from exc
    else:
        raise ValueError(f"expected a numeric string, got {type(value).__name__}")
    if not math.isfinite(number):
        raise ValueError(f"{value!r} is not a finite number")
    return number


WireNumber = Annotated[float, BeforeValidator(_parse_wire_number)]


class _FrameBase(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    symbol: str = Field(min_length=1)
    price: WireNumber
    timestamp: StrictInt = Field(validation_alias=AliasChoices("timeStamp", "timestamp"))


class TradeFrame(_FrameBase):
    event_type: Literal["trade"] = Field(alias="eventType")


class TickerFrame(_FrameBase):
    event_type: Literal["ticker"] = Field(alias="eventType")
    change: WireNumber
    change_percent: WireNumber = Field(alias="changePercent")
    high: WireNumber
    low: WireNumber
    volume: WireNumber


FRAME_MODELS: dict[str, type[_FrameBase]] = {
    "trade": TradeFrame,
    "ticker": TickerFrame,
}


__all__ = ["FRAME_MODELS", "TickerFrame", "TradeFrame", "WireNumber"]
