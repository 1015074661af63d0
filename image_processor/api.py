"""Stateless bytes-in/bytes-out engine surface.

Each function decodes its inputs, runs one raster operation and encodes the
result as PNG. Nothing is kept between calls. Failures raise a subclass of
`image_processor.errors.EngineError`.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import TypeVar

from image_processor.errors import EngineError
from image_processor.image_engine import codec, compositor, crop, filters, regions, transforms
from image_processor.image_engine.metrics import metrics
from image_processor.image_engine.raster import CombineAxis, Rect, SquareRegion
from image_processor.logger import get_logger
from image_processor.settings_manager import get_settings

_logger = get_logger("api")

T = TypeVar("T")


def _engine_call(func: Callable[..., T]) -> Callable[..., T]:
    """Count, time and log one API call; engine errors are logged and re-raised."""
    name = func.__name__

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        metrics.inc(f"api.calls.{name}")
        try:
            with metrics.timed(f"api.{name}"):
                return func(*args, **kwargs)
        except EngineError as e:
            metrics.inc(f"api.errors.{e.kind}")
            _logger.warning("%s failed: %s", name, e)
            raise

    return wrapper


# --- filters ---------------------------------------------------------------


@_engine_call
def grayscale(data: bytes) -> bytes:
    _logger.info("Processing: grayscale")
    return codec.encode(filters.grayscale(codec.decode(data)))


@_engine_call
def invert(data: bytes) -> bytes:
    _logger.info("Processing: invert")
    return codec.encode(filters.invert(codec.decode(data)))


@_engine_call
def sepia(data: bytes) -> bytes:
    _logger.info("Processing: sepia")
    return codec.encode(filters.sepia(codec.decode(data)))


@_engine_call
def brighten(data: bytes, delta: int) -> bytes:
    _logger.info("Processing: brighten by %s", delta)
    return codec.encode(filters.brighten(codec.decode(data), delta))


@_engine_call
def adjust_contrast(data: bytes, factor: float) -> bytes:
    _logger.info("Processing: adjust contrast by %s", factor)
    return codec.encode(filters.adjust_contrast(codec.decode(data), factor))


@_engine_call
def blur(data: bytes, sigma: float) -> bytes:
    _logger.info("Processing: blur with sigma %s", sigma)
    return codec.encode(filters.blur(codec.decode(data), sigma))


# --- transforms ------------------------------------------------------------


@_engine_call
def rotate90(data: bytes) -> bytes:
    _logger.info("Processing: rotate 90")
    return codec.encode(transforms.rotate90(codec.decode(data)))


@_engine_call
def rotate180(data: bytes) -> bytes:
    _logger.info("Processing: rotate 180")
    return codec.encode(transforms.rotate180(codec.decode(data)))


@_engine_call
def rotate270(data: bytes) -> bytes:
    _logger.info("Processing: rotate 270")
    return codec.encode(transforms.rotate270(codec.decode(data)))


@_engine_call
def fliph(data: bytes) -> bytes:
    _logger.info("Processing: flip horizontal")
    return codec.encode(transforms.flip_horizontal(codec.decode(data)))


@_engine_call
def flipv(data: bytes) -> bytes:
    _logger.info("Processing: flip vertical")
    return codec.encode(transforms.flip_vertical(codec.decode(data)))


@_engine_call
def crop_square(data: bytes, x: int, y: int, size: int) -> bytes:
    _logger.info("Processing: crop square at (%s, %s) size %s", x, y, size)
    return codec.encode(crop.crop_square(codec.decode(data), x, y, size))


# --- compositing -----------------------------------------------------------


@_engine_call
def overlay_transparent(base_data: bytes, overlay_data: bytes, opacity: float) -> bytes:
    """Blend the overlay onto the base; the overlay is cover-resized to the base size first."""
    _logger.info("Processing: transparent overlay with opacity %s", opacity)
    opacity = compositor.clamp_opacity(opacity)
    base = codec.decode(base_data)
    overlay = transforms.cover_resize(codec.decode(overlay_data), base.width, base.height)
    return codec.encode(compositor.overlay_blend(base, overlay, opacity))


# --- region combination ----------------------------------------------------


def _combine(base_data: bytes, overlay_data: bytes, axis: CombineAxis | SquareRegion) -> bytes:
    base = codec.decode(base_data)
    overlay = codec.decode(overlay_data)
    return codec.encode(regions.combine(base, overlay, axis))


@_engine_call
def combine_top_bottom(base_data: bytes, overlay_data: bytes) -> bytes:
    """Overlay on the top half, base on the bottom half."""
    _logger.info("Processing: combine images (overlay on top)")
    return _combine(base_data, overlay_data, CombineAxis.TOP_BOTTOM)


@_engine_call
def combine_bottom_top(base_data: bytes, overlay_data: bytes) -> bytes:
    """Base on the top half, overlay on the bottom half."""
    _logger.info("Processing: combine images (overlay on bottom)")
    return _combine(base_data, overlay_data, CombineAxis.BOTTOM_TOP)


@_engine_call
def combine_left_right(base_data: bytes, overlay_data: bytes) -> bytes:
    """Overlay on the left half, base on the right half."""
    _logger.info("Processing: combine images (overlay on left)")
    return _combine(base_data, overlay_data, CombineAxis.LEFT_RIGHT)


@_engine_call
def combine_right_left(base_data: bytes, overlay_data: bytes) -> bytes:
    """Base on the left half, overlay on the right half."""
    _logger.info("Processing: combine images (overlay on right)")
    return _combine(base_data, overlay_data, CombineAxis.RIGHT_LEFT)


@_engine_call
def combine_diagonal_tl_br(base_data: bytes, overlay_data: bytes) -> bytes:
    """Overlay above the top-left -> bottom-right diagonal."""
    _logger.info("Processing: combine images (diagonal top-left to bottom-right)")
    return _combine(base_data, overlay_data, CombineAxis.DIAGONAL_TL_BR)


@_engine_call
def combine_diagonal_tr_bl(base_data: bytes, overlay_data: bytes) -> bytes:
    """Overlay above the top-right -> bottom-left diagonal."""
    _logger.info("Processing: combine images (diagonal top-right to bottom-left)")
    return _combine(base_data, overlay_data, CombineAxis.DIAGONAL_TR_BL)


@_engine_call
def combine_with_square_region(
    base_data: bytes,
    overlay_data: bytes,
    x: int,
    y: int,
    size: int,
    blend: bool = False,
    opacity: float = 1.0,
) -> bytes:
    """Place the overlay's content inside the square (x, y, size) of the base.

    With blend=True the square is composited with `opacity` instead of
    replacing the base pixels.
    """
    _logger.info("Processing: combine images in square at (%s, %s) size %s blend=%s", x, y, size, blend)
    region = SquareRegion(Rect(int(x), int(y), int(size)), blend=blend, opacity=opacity)
    return _combine(base_data, overlay_data, region)


# --- queries ---------------------------------------------------------------


@_engine_call
def get_dimensions(data: bytes) -> tuple[int, int]:
    return codec.probe_dimensions(data)


@_engine_call
def is_square_ish(data: bytes) -> bool:
    """True when width / height is within the configured tolerance (2%) of 1."""
    width, height = codec.probe_dimensions(data)
    tolerance = get_settings().square_tolerance
    ratio = width / height
    result = (1.0 - tolerance) <= ratio <= (1.0 + tolerance)
    _logger.info("Image dimensions: %dx%d, ratio: %.4f, is_square_ish: %s", width, height, ratio, result)
    return result
