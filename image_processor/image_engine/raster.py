"""In-memory raster and the small value types that describe regions.

A `Raster` is a `(height, width, 4)` uint8 numpy array of straight
(non-premultiplied) RGBA values. Rasters are created per call and never
shared between calls.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

import numpy as np

from image_processor.errors import InvalidParameter

RGBA_CHANNELS = 4


class Raster:
    __slots__ = ("pixels",)

    def __init__(self, pixels: np.ndarray):
        if pixels.ndim != 3 or pixels.shape[2] != RGBA_CHANNELS:
            raise ValueError(f"expected RGBA array with shape (h, w, 4), got {pixels.shape}")
        if pixels.shape[0] <= 0 or pixels.shape[1] <= 0:
            raise ValueError(f"raster dimensions must be positive, got {pixels.shape[1]}x{pixels.shape[0]}")
        if pixels.dtype != np.uint8:
            raise ValueError(f"expected uint8 channel values, got {pixels.dtype}")
        self.pixels = np.ascontiguousarray(pixels)

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> Raster:
        """Build a raster from interleaved RGBA bytes of length width*height*4."""
        if width <= 0 or height <= 0:
            raise ValueError(f"raster dimensions must be positive, got {width}x{height}")
        expected = width * height * RGBA_CHANNELS
        if len(data) != expected:
            raise ValueError(f"expected {expected} bytes for {width}x{height} RGBA, got {len(data)}")
        arr = np.frombuffer(data, dtype=np.uint8).reshape(height, width, RGBA_CHANNELS)
        return cls(arr.copy())

    @classmethod
    def filled(cls, width: int, height: int, rgba: tuple[int, int, int, int]) -> Raster:
        arr = np.empty((height, width, RGBA_CHANNELS), dtype=np.uint8)
        arr[...] = np.asarray(rgba, dtype=np.uint8)
        return cls(arr)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[..., 3]

    def tobytes(self) -> bytes:
        return self.pixels.tobytes()

    def copy(self) -> Raster:
        return Raster(self.pixels.copy())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Raster):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Raster({self.width}x{self.height})"


@dataclass(frozen=True)
class Rect:
    """Axis-aligned square: top-left corner (x, y) and side length `size`."""

    x: int
    y: int
    size: int

    def fits(self, width: int, height: int) -> bool:
        if self.x < 0 or self.y < 0 or self.size <= 0:
            return False
        return self.x + self.size <= width and self.y + self.size <= height

    def validate(self, width: int, height: int) -> None:
        """Raise InvalidParameter unless the square lies inside a width x height raster."""
        if self.x < 0 or self.y < 0:
            raise InvalidParameter(f"Crop origin must be non-negative, got ({self.x}, {self.y})")
        if self.size <= 0:
            raise InvalidParameter(f"Crop size must be positive, got {self.size}")
        if self.x + self.size > width:
            raise InvalidParameter(f"Crop area exceeds image width: {self.x} + {self.size} > {width}")
        if self.y + self.size > height:
            raise InvalidParameter(f"Crop area exceeds image height: {self.y} + {self.size} > {height}")

    @property
    def slices(self) -> tuple[slice, slice]:
        return slice(self.y, self.y + self.size), slice(self.x, self.x + self.size)


class CombineAxis(enum.Enum):
    """How two same-size rasters are split between base and overlay."""

    TOP_BOTTOM = "top_bottom"  # overlay on the top half
    BOTTOM_TOP = "bottom_top"  # overlay on the bottom half
    LEFT_RIGHT = "left_right"  # overlay on the left half
    RIGHT_LEFT = "right_left"  # overlay on the right half
    DIAGONAL_TL_BR = "diagonal_tl_br"  # overlay above the top-left -> bottom-right diagonal
    DIAGONAL_TR_BL = "diagonal_tr_bl"  # overlay above the top-right -> bottom-left diagonal


@dataclass(frozen=True)
class SquareRegion:
    """Place the overlay inside `rect`; hard cut unless `blend` is set."""

    rect: Rect
    blend: bool = False
    opacity: float = 1.0
