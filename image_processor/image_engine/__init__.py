"""Image Engine - raster-level processing.

This package holds the pure raster functions the byte-level API is built on:
- Codec (codec)
- Colour filters (filters)
- Geometric transforms and crop (transforms, crop, trim)
- Alpha compositing (compositor)
- Region combination (regions)

Usage:
    from image_processor.image_engine import codec, filters

    raster = codec.decode(data)
    png = codec.encode(filters.sepia(raster))
"""

from .raster import CombineAxis, Raster, Rect, SquareRegion

__all__ = ["CombineAxis", "Raster", "Rect", "SquareRegion"]
