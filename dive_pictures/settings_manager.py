from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from .logger import get_logger
from .path_utils import app_data_location, cache_location

_logger = get_logger("settings")


class SettingsManager:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "picture_icon_size": 128,
        "cache_dir": None,
        "hashes_file": None,
        "download_timeout": 30.0,
        "download_workers": 4,
        "scale_workers": None,
    }

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except Exception as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            os.makedirs(os.path.dirname(self.settings_path) or ".", exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except Exception as e:
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

    def _positive_int(self, key: str) -> int | None:
        value = self.get(key)
        try:
            value = int(value)
        except (TypeError, ValueError):
            return None
        return value if value > 0 else None

    @property
    def picture_icon_size(self) -> int:
        size = self._positive_int("picture_icon_size")
        if size is None:
            _logger.warning("invalid picture_icon_size: %r", self.get("picture_icon_size"))
            return int(self.DEFAULTS["picture_icon_size"])
        return size

    @property
    def cache_dir(self) -> Path:
        val = self.get("cache_dir")
        if isinstance(val, str) and val:
            return Path(val).expanduser()
        return cache_location()

    @property
    def hashes_file(self) -> Path:
        val = self.get("hashes_file")
        if isinstance(val, str) and val:
            return Path(val).expanduser()
        return app_data_location() / "hashes.json"

    @property
    def download_timeout(self) -> float:
        try:
            timeout = float(self.get("download_timeout"))
        except (TypeError, ValueError):
            timeout = float(self.DEFAULTS["download_timeout"])
        return timeout if timeout > 0 else float(self.DEFAULTS["download_timeout"])

    @property
    def download_workers(self) -> int:
        return self._positive_int("download_workers") or int(self.DEFAULTS["download_workers"])

    @property
    def scale_workers(self) -> int | None:
        return self._positive_int("scale_workers")
