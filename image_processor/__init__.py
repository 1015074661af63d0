"""Stateless image filters, transforms and two-image compositing.

Public API (bytes in, PNG bytes out):
    from image_processor import api
    png = api.overlay_transparent(base_bytes, overlay_bytes, 0.5)

Failures raise `image_processor.errors.EngineError` subclasses.
"""

from image_processor.errors import DecodeError, EncodeError, EngineError, InvalidParameter, UnsupportedFormat

__all__ = [
    "DecodeError",
    "EncodeError",
    "EngineError",
    "InvalidParameter",
    "UnsupportedFormat",
]
