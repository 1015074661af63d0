"""Pixel-ownership combination of a base and an overlay raster.

A boolean mask decides, per output pixel, whether it comes from the
(cover-resized) overlay or from the base. Split and diagonal axes are hard
cuts with no blending at the boundary.

The TR->BL mask is the left-right mirror of the TL->BR mask, so both
diagonals send the pixels they pass exactly through to the base.
"""

from __future__ import annotations

import numpy as np

from image_processor.image_engine.compositor import blend_over, clamp_opacity
from image_processor.image_engine.raster import CombineAxis, Raster, SquareRegion
from image_processor.image_engine.transforms import cover_resize
from image_processor.image_engine.trim import trim_transparent
from image_processor.logger import get_logger

_logger = get_logger("regions")


def selection_mask(width: int, height: int, axis: CombineAxis) -> np.ndarray:
    """(height, width) boolean mask, True where the overlay pixel is used."""
    ys, xs = np.indices((height, width), dtype=np.int64)
    if axis is CombineAxis.TOP_BOTTOM:
        return ys < height // 2
    if axis is CombineAxis.BOTTOM_TOP:
        return ys >= height // 2
    if axis is CombineAxis.LEFT_RIGHT:
        return xs < width // 2
    if axis is CombineAxis.RIGHT_LEFT:
        return xs >= width // 2
    if axis is CombineAxis.DIAGONAL_TL_BR:
        return ys * width < xs * height
    if axis is CombineAxis.DIAGONAL_TR_BL:
        return ys * width < (width - 1 - xs) * height
    raise ValueError(f"Unknown combine axis: {axis!r}")


def _combine_region(base: Raster, overlay: Raster, region: SquareRegion) -> Raster:
    rect = region.rect
    rect.validate(base.width, base.height)

    # Fit the visible content of the overlay, not its transparent padding
    patch = cover_resize(trim_transparent(overlay), rect.size, rect.size)
    out = base.pixels.copy()
    rows, cols = rect.slices
    if region.blend:
        opacity = clamp_opacity(region.opacity)
        if opacity > 0.0:
            out[rows, cols] = blend_over(out[rows, cols], patch.pixels, np.float64(opacity))
    else:
        out[rows, cols] = patch.pixels
    return Raster(out)


def combine(base: Raster, overlay: Raster, axis: CombineAxis | SquareRegion) -> Raster:
    """Merge `overlay` into `base` according to `axis`.

    The overlay is cover-resized to the base size (split/diagonal axes) or to
    the square's size (SquareRegion) before pixels are selected.
    """
    if isinstance(axis, SquareRegion):
        _logger.debug("combine %r + %r in %s (blend=%s)", base, overlay, axis.rect, axis.blend)
        return _combine_region(base, overlay, axis)

    fitted = cover_resize(overlay, base.width, base.height)
    mask = selection_mask(base.width, base.height, axis)
    _logger.debug("combine %r + %r along %s", base, overlay, axis.value)
    return Raster(np.where(mask[..., np.newaxis], fitted.pixels, base.pixels))
