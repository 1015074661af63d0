"""Square crop on in-memory rasters.

Pure functions, no I/O. Out-of-bounds rectangles are rejected, not clamped.
"""

from __future__ import annotations

from image_processor.errors import InvalidParameter
from image_processor.image_engine.raster import Raster, Rect
from image_processor.logger import get_logger

_logger = get_logger("crop")


def validate_crop_bounds(img_width: int, img_height: int, crop: Rect) -> bool:
    """Return True if the square lies fully inside an img_width x img_height image.

    Args:
        img_width: Original image width
        img_height: Original image height
        crop: square crop rectangle
    """
    return crop.fits(img_width, img_height)


def crop_square(raster: Raster, x: int, y: int, size: int) -> Raster:
    """Extract the size x size sub-raster whose top-left corner is (x, y).

    Raises:
        InvalidParameter: if the square is not fully inside the raster
    """
    rect = Rect(int(x), int(y), int(size))
    try:
        rect.validate(raster.width, raster.height)
    except InvalidParameter:
        _logger.error("Crop bounds %s invalid for image size %dx%d", rect, raster.width, raster.height)
        raise

    rows, cols = rect.slices
    return Raster(raster.pixels[rows, cols].copy())
