"""Decode/encode boundary between encoded image bytes and `Raster`.

Decoding sniffs the container from the bytes themselves (libvips picks the
loader), normalises any colour mode to 8-bit sRGB with an alpha band and
copies the pixels into numpy. Encoding always produces 8-bit RGBA PNG.
"""

from __future__ import annotations

import contextlib
from typing import Any

import numpy as np

from image_processor.errors import DecodeError, EncodeError, UnsupportedFormat
from image_processor.image_engine.raster import RGBA_CHANNELS, Raster
from image_processor.logger import get_logger
from image_processor.settings_manager import get_settings

_logger = get_logger("codec")

RGB_CHANNELS = 3
OUTPUT_SUFFIX = ".png"
# PNG stores dimensions as 31-bit unsigned integers
_PNG_MAX_DIMENSION = 2**31 - 1

# Substrings of libvips loader names (nickname or GType name) per format
_LOADER_FORMATS = (
    ("png", "png"),
    ("jpeg", "jpeg"),
    ("jpg", "jpeg"),
    ("webp", "webp"),
    ("gif", "gif"),
    ("tiff", "tiff"),
    ("heif", "heif"),
    ("svg", "svg"),
    ("pdf", "pdf"),
    ("magick", "magick"),
)

_pyvips: Any | None = None


def _get_pyvips_module() -> Any:
    global _pyvips
    if _pyvips is None:
        import pyvips  # type: ignore

        # Each call owns its images; keep libvips from caching operations across calls
        with contextlib.suppress(Exception):
            pyvips.cache_set_max(0)
            pyvips.cache_set_max_mem(0)
            pyvips.cache_set_max_files(0)
        _pyvips = pyvips
    return _pyvips


def _format_of_loader(loader: str) -> str:
    name = loader.lower()
    for needle, fmt in _LOADER_FORMATS:
        if needle in name:
            return fmt
    return name


def _load(data: bytes) -> Any:
    if not data:
        raise DecodeError("Failed to load image: input is empty")
    pyvips = _get_pyvips_module()
    try:
        return pyvips.Image.new_from_buffer(data, "", access="sequential")
    except pyvips.Error as e:
        raise DecodeError(f"Failed to load image: {e}") from e


def _format_of_image(image: Any) -> str:
    pyvips = _get_pyvips_module()
    try:
        loader = image.get("vips-loader")
    except pyvips.Error as e:
        raise DecodeError(f"Failed to load image: format not recognised ({e})") from e
    if not loader:
        raise DecodeError("Failed to load image: format not recognised")
    return _format_of_loader(str(loader))


def sniff_format(data: bytes) -> str:
    """Return the short format name for `data` ("png", "jpeg", ...).

    The loader libvips picked for the header ("pngload_buffer", ...) names the format.
    Raises DecodeError when no loader recognises the bytes.
    """
    return _format_of_image(_load(data))


def _open(data: bytes) -> tuple[Any, str]:
    image = _load(data)
    fmt = _format_of_image(image)
    settings = get_settings()
    if fmt not in settings.input_formats:
        raise UnsupportedFormat(f"Unsupported input format: {fmt}")

    if image.width * image.height > settings.max_pixels:
        raise UnsupportedFormat(
            f"Image too large: {image.width}x{image.height} exceeds {settings.max_pixels} pixels"
        )
    return image, fmt


def probe_dimensions(data: bytes) -> tuple[int, int]:
    """Return (width, height) from the image header without decoding pixels."""
    image, _fmt = _open(data)
    return int(image.width), int(image.height)


def _to_rgba(image: Any) -> Any:
    pyvips = _get_pyvips_module()
    try:
        if image.interpretation != "srgb" or image.format != "uchar":
            image = image.colourspace("srgb")
        if image.format != "uchar":
            image = image.cast("uchar")
    except pyvips.Error as e:
        raise UnsupportedFormat(f"Unsupported colour mode {image.interpretation}: {e}") from e

    if image.bands == RGB_CHANNELS:
        image = image.bandjoin(255)
    if image.bands != RGBA_CHANNELS:
        raise UnsupportedFormat(f"Unsupported band count after conversion: {image.bands}")
    return image


def decode(data: bytes) -> Raster:
    """Decode PNG/JPEG/WebP/GIF/TIFF bytes into an RGBA raster."""
    image, fmt = _open(data)
    image = _to_rgba(image)

    pyvips = _get_pyvips_module()
    try:
        array = from_vips(image)
    except pyvips.Error as e:
        raise DecodeError(f"Failed to load image: {e}") from e

    _logger.debug("decoded %s %dx%d", fmt, image.width, image.height)
    return Raster(array.copy())


def to_vips(raster: Raster) -> Any:
    """Wrap raster pixels as a 4-band uchar sRGB libvips image."""
    pyvips = _get_pyvips_module()
    img = pyvips.Image.new_from_memory(raster.tobytes(), raster.width, raster.height, RGBA_CHANNELS, "uchar")
    return img.copy(interpretation="srgb")


def from_vips(image: Any) -> np.ndarray:
    """Render a 4-band uchar libvips image into an (h, w, 4) array."""
    mem = image.write_to_memory()
    return np.frombuffer(mem, dtype=np.uint8).reshape(image.height, image.width, RGBA_CHANNELS)


def encode(raster: Raster) -> bytes:
    """Encode a raster as 8-bit RGBA PNG bytes."""
    if raster.width > _PNG_MAX_DIMENSION or raster.height > _PNG_MAX_DIMENSION:
        raise EncodeError(f"Image dimensions {raster.width}x{raster.height} exceed PNG limits")

    pyvips = _get_pyvips_module()
    try:
        out = to_vips(raster).write_to_buffer(OUTPUT_SUFFIX, compression=get_settings().png_compression)
    except pyvips.Error as e:
        raise EncodeError(f"Failed to encode image: {e}") from e

    if not out:
        raise EncodeError(f"Encoder produced no data for {raster.width}x{raster.height} image")
    # Normalize to bytes in case pyvips returns a memoryview-like object
    return out if isinstance(out, bytes) else bytes(out)
