"""Per-pixel and neighbourhood colour filters.

All filters take and return a `Raster` of the same size. The alpha channel is
left untouched except by `blur`, which runs libvips gaussblur on all four
channels.
"""

from __future__ import annotations

import math

import numpy as np

from image_processor.errors import EngineError, InvalidParameter
from image_processor.image_engine.codec import _get_pyvips_module, from_vips, to_vips
from image_processor.image_engine.raster import Raster
from image_processor.logger import get_logger
from image_processor.settings_manager import get_settings

_logger = get_logger("filters")

# Rec. 709 luma
LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float64)

SEPIA_MATRIX = np.array(
    [
        [0.393, 0.769, 0.189],
        [0.349, 0.686, 0.168],
        [0.272, 0.534, 0.131],
    ],
    dtype=np.float64,
)

BRIGHTNESS_LIMIT = 255
CONTRAST_MIN = -1.0
# Mask taps below 1% of the peak are dropped, about 3 sigma out
BLUR_MIN_AMPLITUDE = 0.01
BLUR_RADIUS_SIGMAS = 3.0


def _require_finite(name: str, value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidParameter(f"{name} must be a number, got {value!r}") from e
    if not math.isfinite(value):
        raise InvalidParameter(f"{name} must be finite, got {value}")
    return value


def _with_rgb(raster: Raster, rgb: np.ndarray) -> Raster:
    """Round/clamp float RGB values and reattach the original alpha."""
    out = raster.pixels.copy()
    out[..., :3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
    return Raster(out)


def grayscale(raster: Raster) -> Raster:
    rgb = raster.pixels[..., :3].astype(np.float64)
    luma = rgb @ LUMA_WEIGHTS
    return _with_rgb(raster, np.repeat(luma[..., np.newaxis], 3, axis=2))


def invert(raster: Raster) -> Raster:
    out = raster.pixels.copy()
    out[..., :3] = 255 - out[..., :3]
    return Raster(out)


def sepia(raster: Raster) -> Raster:
    rgb = raster.pixels[..., :3].astype(np.float64)
    return _with_rgb(raster, rgb @ SEPIA_MATRIX.T)


def brighten(raster: Raster, delta: int) -> Raster:
    """Add `delta` to every colour channel.

    Deltas beyond +/-255 saturate every channel anyway, so they are clamped
    there instead of rejected.
    """
    try:
        delta = int(delta)
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidParameter(f"brightness must be an integer, got {delta!r}") from e
    delta = max(-BRIGHTNESS_LIMIT, min(BRIGHTNESS_LIMIT, delta))
    out = raster.pixels.copy()
    out[..., :3] = np.clip(out[..., :3].astype(np.int16) + delta, 0, 255).astype(np.uint8)
    return Raster(out)


def adjust_contrast(raster: Raster, factor: float) -> Raster:
    """Remap colour channels with 128 + (c - 128) * (1 + factor).

    factor = 0 is the identity, -1 flattens everything to mid grey. Factors
    below -1 would start inverting and are clamped to -1.
    """
    factor = max(CONTRAST_MIN, _require_finite("contrast", factor))
    rgb = raster.pixels[..., :3].astype(np.float64)
    return _with_rgb(raster, 128.0 + (rgb - 128.0) * (1.0 + factor))


def blur(raster: Raster, sigma: float) -> Raster:
    """Gaussian blur with standard deviation `sigma`, over all four channels.

    sigma <= 0 returns an unchanged copy. The image is extended by copying
    its border pixels before blurring, so a uniform image stays uniform.
    """
    sigma = _require_finite("sigma", sigma)
    if sigma <= 0:
        return raster.copy()
    max_sigma = get_settings().max_blur_sigma
    if sigma > max_sigma:
        _logger.debug("blur sigma %.3f clamped to %.3f", sigma, max_sigma)
        sigma = max_sigma
        if sigma <= 0:
            return raster.copy()

    pyvips = _get_pyvips_module()
    margin = int(math.ceil(BLUR_RADIUS_SIGMAS * sigma)) + 1
    try:
        img = to_vips(raster).cast("float")
        img = img.embed(margin, margin, raster.width + 2 * margin, raster.height + 2 * margin, extend="copy")
        img = img.gaussblur(sigma, min_ampl=BLUR_MIN_AMPLITUDE, precision="float")
        img = img.crop(margin, margin, raster.width, raster.height)
        return Raster(from_vips(img.rint().cast("uchar")).copy())
    except pyvips.Error as e:
        raise EngineError(f"Failed to blur {raster.width}x{raster.height} image: {e}") from e
