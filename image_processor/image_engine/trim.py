import numpy as np

from image_processor.image_engine.raster import Raster
from image_processor.logger import get_logger

_logger = get_logger("trim")


def detect_content_box(raster: Raster, alpha_threshold: int = 0) -> tuple[int, int, int, int] | None:
    """Bounding box of pixels whose alpha is above `alpha_threshold`.

    Returns (left, top, width, height), or None when every pixel is at or
    below the threshold.
    """
    mask = raster.alpha > alpha_threshold
    if not mask.any():
        return None
    ys, xs = np.where(mask)
    top, bottom = int(ys.min()), int(ys.max())
    left, right = int(xs.min()), int(xs.max())
    return left, top, int(right - left + 1), int(bottom - top + 1)


def trim_transparent(raster: Raster) -> Raster:
    """Drop fully transparent borders; fully transparent rasters come back unchanged."""
    box = detect_content_box(raster)
    if box is None:
        _logger.debug("trim_transparent: no visible content in %r", raster)
        return raster
    left, top, width, height = box
    if (width, height) == raster.size:
        return raster
    _logger.debug("trim_transparent: %r -> box=%s", raster, box)
    return Raster(raster.pixels[top : top + height, left : left + width].copy())
