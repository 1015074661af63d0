"""Geometric transforms on a single raster.

Rotations are clockwise and lossless. `cover_resize` is the scale-to-fill
then centre-crop fit used whenever an overlay has to fill an area without
distortion or gaps.
"""

from __future__ import annotations

import numpy as np

from image_processor.errors import EngineError, InvalidParameter
from image_processor.image_engine.codec import _get_pyvips_module, from_vips, to_vips
from image_processor.image_engine.raster import Raster
from image_processor.logger import get_logger
from image_processor.settings_manager import get_settings

_logger = get_logger("transforms")


def rotate90(raster: Raster) -> Raster:
    return Raster(np.rot90(raster.pixels, k=-1).copy())


def rotate180(raster: Raster) -> Raster:
    return Raster(np.rot90(raster.pixels, k=2).copy())


def rotate270(raster: Raster) -> Raster:
    return Raster(np.rot90(raster.pixels, k=1).copy())


def flip_horizontal(raster: Raster) -> Raster:
    """Mirror across the vertical axis (left <-> right)."""
    return Raster(raster.pixels[:, ::-1].copy())


def flip_vertical(raster: Raster) -> Raster:
    """Mirror across the horizontal axis (top <-> bottom)."""
    return Raster(raster.pixels[::-1].copy())


def _resample(raster: Raster, width: int, height: int) -> np.ndarray:
    """Resize with libvips, premultiplying so transparent pixels do not bleed colour."""
    pyvips = _get_pyvips_module()
    hscale = width / raster.width
    vscale = height / raster.height
    try:
        img = to_vips(raster).premultiply().resize(hscale, vscale=vscale, kernel=get_settings().resize_kernel)
        return from_vips(img.unpremultiply().rint().cast("uchar"))
    except pyvips.Error as e:
        raise EngineError(f"Failed to resize {raster.width}x{raster.height} to {width}x{height}: {e}") from e


def cover_scale(src_width: int, src_height: int, target_width: int, target_height: int) -> tuple[int, int]:
    """Size the source is scaled to so it covers target_width x target_height."""
    scale = max(target_width / src_width, target_height / src_height)
    return (
        max(target_width, round(src_width * scale)),
        max(target_height, round(src_height * scale)),
    )


def cover_resize(raster: Raster, target_width: int, target_height: int) -> Raster:
    """Scale preserving aspect ratio until the target is covered, then crop centred."""
    if target_width <= 0 or target_height <= 0:
        raise InvalidParameter(f"Resize target must be positive, got {target_width}x{target_height}")
    if raster.size == (target_width, target_height):
        return raster.copy()

    scaled_w, scaled_h = cover_scale(raster.width, raster.height, target_width, target_height)
    if (scaled_w, scaled_h) == raster.size:
        arr = raster.pixels
    else:
        arr = _resample(raster, scaled_w, scaled_h)
        _logger.debug(
            "cover_resize %dx%d -> %dx%d (scaled %dx%d)",
            raster.width,
            raster.height,
            target_width,
            target_height,
            arr.shape[1],
            arr.shape[0],
        )

    # libvips may round the scaled size one pixel short; replicate the edge
    short_h = max(0, target_height - arr.shape[0])
    short_w = max(0, target_width - arr.shape[1])
    if short_h or short_w:
        arr = np.pad(arr, ((0, short_h), (0, short_w), (0, 0)), mode="edge")

    top = (arr.shape[0] - target_height) // 2
    left = (arr.shape[1] - target_width) // 2
    return Raster(arr[top : top + target_height, left : left + target_width].copy())
