"""Pytest configuration.

Fixtures build rasters directly with numpy and encode fixture images with
Pillow, so codec tests do not depend on the engine's own encoder.

Every test starts from default settings and empty metrics.
"""

from __future__ import annotations

import io

import numpy as np
import pytest

from image_processor.image_engine.metrics import metrics
from image_processor.image_engine.raster import Raster
from image_processor.settings_manager import SETTINGS_ENV, reset_settings


@pytest.fixture(autouse=True)
def _isolated_engine(monkeypatch):
    monkeypatch.delenv(SETTINGS_ENV, raising=False)
    reset_settings()
    metrics.reset()
    yield
    reset_settings()


def solid(width: int, height: int, rgba=(255, 0, 0, 255)) -> Raster:
    return Raster.filled(width, height, rgba)


def random_raster(width: int, height: int, seed: int = 0, opaque: bool = False) -> Raster:
    rng = np.random.default_rng(seed)
    arr = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    if opaque:
        arr[..., 3] = 255
    return Raster(arr)


def encode_with_pillow(arr: np.ndarray, fmt: str = "PNG", **save_kwargs) -> bytes:
    from PIL import Image

    img = Image.fromarray(arr)
    if fmt == "JPEG" and img.mode == "RGBA":
        img = img.convert("RGB")
    buf = io.BytesIO()
    img.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


@pytest.fixture
def make_raster():
    return solid


@pytest.fixture
def rng_raster():
    return random_raster


@pytest.fixture
def png_bytes():
    """Factory: Raster or RGBA array -> PNG bytes (encoded by Pillow)."""
    pytest.importorskip("PIL")

    def _make(src) -> bytes:
        arr = src.pixels if isinstance(src, Raster) else np.asarray(src, dtype=np.uint8)
        return encode_with_pillow(arr, "PNG")

    return _make


@pytest.fixture
def encoded():
    """Factory: (array, Pillow format name, **save kwargs) -> encoded bytes."""
    pytest.importorskip("PIL")
    return encode_with_pillow


@pytest.fixture
def vips():
    """Skip unless libvips is importable (resampling and real codecs need it)."""
    return pytest.importorskip("pyvips")
