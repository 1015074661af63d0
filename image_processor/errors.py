"""Typed failures raised by the engine.

Every public operation either returns its result or raises one of the
`EngineError` subclasses below. Callers that only care about "did it work"
catch `EngineError`; `kind` names the category for hosts that map errors to
their own codes.
"""

from __future__ import annotations


class EngineError(Exception):
    kind = "engine_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class DecodeError(EngineError):
    """Input bytes are malformed or not an image at all."""

    kind = "decode_error"


class UnsupportedFormat(EngineError):
    """Input is a recognised image, but in a container or mode the engine rejects."""

    kind = "unsupported_format"


class EncodeError(EngineError):
    kind = "encode_error"


class InvalidParameter(EngineError):
    """A parameter cannot be made safe by clamping (out-of-bounds rect, NaN, ...)."""

    kind = "invalid_parameter"
