from __future__ import annotations


class FeedError(Exception):
    """Base class for market feed failures."""


class TransportError(FeedError):
    """Connection could not be opened or closed abnormally."""


class DecodeError(FeedError):
    kind = "decode_error"

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class MalformedPayload(DecodeError):
    kind = "malformed_payload"


class UnrecognizedShape(DecodeError):
    kind = "unrecognized_shape"


class InvalidNumber(DecodeError):
    kind = "invalid_number"


__all__ = [
    "DecodeError",
    "FeedError",
    "InvalidNumber",
    "MalformedPayload",
    "TransportError",
    "UnrecognizedShape",
]
