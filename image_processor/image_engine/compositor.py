"""Straight-alpha Porter-Duff "over" with an extra opacity multiplier.

For every pixel, with all values normalised to [0, 1]:

    a_o   = overlay.alpha * opacity
    a_out = a_o + base.alpha * (1 - a_o)
    c_out = (overlay.c * a_o + base.c * base.alpha * (1 - a_o)) / a_out

The division by a_out is what keeps partially transparent pixels from
darkening or turning opaque. Pixels where a_o is 0 are the base pixel
verbatim, so opacity 0 is an exact identity.
"""

from __future__ import annotations

import math

import numpy as np

from image_processor.errors import InvalidParameter
from image_processor.image_engine.raster import Raster
from image_processor.logger import get_logger

_logger = get_logger("compositor")


def clamp_opacity(opacity: float) -> float:
    try:
        value = float(opacity)
    except (TypeError, ValueError) as e:
        raise InvalidParameter(f"Opacity must be a number, got {opacity!r}") from e
    if not math.isfinite(value):
        raise InvalidParameter(f"Opacity must be finite, got {value}")
    if value < 0.0 or value > 1.0:
        _logger.debug("opacity %s clamped to [0, 1]", value)
    return min(1.0, max(0.0, value))


def blend_over(base: np.ndarray, overlay: np.ndarray, weight: np.ndarray) -> np.ndarray:
    """Composite `overlay` over `base` (both uint8 RGBA arrays of equal shape).

    `weight` is broadcast against the overlay alpha: a scalar opacity, or a
    per-pixel (h, w) map in [0, 1].
    """
    base_f = base.astype(np.float64) / 255.0
    over_f = overlay.astype(np.float64) / 255.0

    base_a = base_f[..., 3]
    over_a = over_f[..., 3] * weight
    out_a = over_a + base_a * (1.0 - over_a)

    numer = over_f[..., :3] * over_a[..., np.newaxis] + base_f[..., :3] * (base_a * (1.0 - over_a))[..., np.newaxis]
    safe_a = np.where(out_a > 0.0, out_a, 1.0)
    out_rgb = np.where((out_a > 0.0)[..., np.newaxis], numer / safe_a[..., np.newaxis], 0.0)

    out = np.empty_like(base)
    out[..., :3] = np.clip(np.rint(out_rgb * 255.0), 0, 255).astype(np.uint8)
    out[..., 3] = np.clip(np.rint(out_a * 255.0), 0, 255).astype(np.uint8)

    # Nothing of the overlay shows here: keep the base pixel exactly
    untouched = over_a <= 0.0
    out[untouched] = base[untouched]
    return out


def overlay_blend(base: Raster, overlay: Raster, opacity: float) -> Raster:
    """Blend `overlay` onto `base`; both must have the same dimensions.

    Opacity outside [0, 1] is clamped. NaN/inf raise InvalidParameter.
    """
    opacity = clamp_opacity(opacity)
    if base.size != overlay.size:
        raise InvalidParameter(
            f"Overlay size {overlay.width}x{overlay.height} does not match base {base.width}x{base.height}"
        )
    if opacity == 0.0:
        return base.copy()
    return Raster(blend_over(base.pixels, overlay.pixels, np.float64(opacity)))
