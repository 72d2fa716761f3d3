"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

from loguru import logger

DEFAULTS: dict[str, Any] = {
    "storage": {
        # Empty means "under the per-user data directory"
        "database": "",
        "photos_dir": "",
        "use_trash": True,
    },
    "map": {
        "default_center": {"lat": 14.6349, "lng": -90.5069},
        "default_zoom": 12,
        "user_zoom": 15,
    },
    "location": {
        "mode": "simulated",
        "latitude": 14.6349,
        "longitude": -90.5069,
        "update_interval_s": 5.0,
        "jitter_m": 25.0,
    },
    "spots": {"stop_timeout_s": 5.0},
    "thumbnail_size": 512,
}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


class JsonSettings:
    """JSON settings reader with dotted-key access over built-in defaults."""

    def __init__(self, settings_path: str | Path | None = None) -> None:
        self._path = Path(settings_path) if settings_path else None
        data: dict[str, Any] = {}
        if self._path is not None:
            if self._path.exists():
                with self._path.open("r", encoding="utf-8") as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    data = loaded
                else:
                    logger.warning("Ignoring non-object settings file: {}", self._path)
            else:
                logger.warning("settings.json not found, using defaults: {}", self._path)
        self._data = _merge(DEFAULTS, data)

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def get_float(self, key: str, default: float) -> float:
        """Return `key` as float, falling back to `default` on bad values."""
        try:
            return float(self.get(key, default))
        except (TypeError, ValueError):
            logger.warning("Invalid number for {}: {!r}", key, self.get(key))
            return default
