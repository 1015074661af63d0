from __future__ import annotations

import json
import os
from typing import Any

from .logger import get_logger

_logger = get_logger("settings")

SETTINGS_ENV = "IMAGE_PROCESSOR_SETTINGS"


class SettingsManager:
    def __init__(self, settings_path: str | None = None):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "square_tolerance": 0.02,
        "resize_kernel": "lanczos3",
        "png_compression": 6,
        "max_blur_sigma": 50.0,
        "max_pixels": 100_000_000,
        "input_formats": ["png", "jpeg", "webp", "gif", "tiff"],
    }

    def load(self) -> None:
        self._settings = {}
        if not self.settings_path:
            return
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    self._settings = data
                    _logger.debug("settings loaded: %s", self.settings_path)
                else:
                    _logger.warning("settings file is not a JSON object: %s", self.settings_path)
        except (OSError, ValueError) as e:
            _logger.warning("settings load failed: %s", e)

    def save(self) -> None:
        if not self.settings_path:
            return
        try:
            parent = os.path.dirname(self.settings_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except OSError as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    @property
    def square_tolerance(self) -> float:
        try:
            return abs(float(self.get("square_tolerance")))
        except (TypeError, ValueError):
            _logger.warning("square_tolerance invalid: %r", self.get("square_tolerance"))
            return float(self.DEFAULTS["square_tolerance"])

    @property
    def max_blur_sigma(self) -> float:
        try:
            return max(0.0, float(self.get("max_blur_sigma")))
        except (TypeError, ValueError):
            _logger.warning("max_blur_sigma invalid: %r", self.get("max_blur_sigma"))
            return float(self.DEFAULTS["max_blur_sigma"])

    @property
    def png_compression(self) -> int:
        try:
            return min(9, max(0, int(self.get("png_compression"))))
        except (TypeError, ValueError):
            return int(self.DEFAULTS["png_compression"])

    @property
    def max_pixels(self) -> int:
        try:
            return int(self.get("max_pixels"))
        except (TypeError, ValueError):
            return int(self.DEFAULTS["max_pixels"])

    @property
    def resize_kernel(self) -> str:
        val = self.get("resize_kernel")
        return val if isinstance(val, str) and val else str(self.DEFAULTS["resize_kernel"])

    @property
    def input_formats(self) -> frozenset[str]:
        val = self.get("input_formats")
        if not isinstance(val, (list, tuple)) or not val:
            val = self.DEFAULTS["input_formats"]
        return frozenset(str(v).lower() for v in val)


_settings: SettingsManager | None = None


def get_settings() -> SettingsManager:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = SettingsManager(os.getenv(SETTINGS_ENV) or None)
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
