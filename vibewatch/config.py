"""Persistent JSON config helpers.

Stores pipeline tuning knobs (debounce interval, channel capacity, cache
freshness, git timeout) and display defaults. Reads never raise:
malformed or missing config falls back to built-in defaults.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

from .differ.engine import CACHE_FRESHNESS_SECONDS
from .git import GIT_TIMEOUT_SECONDS
from .watcher.channel import CHANNEL_CAPACITY
from .watcher.debounce import DEBOUNCE_SECONDS

APP_NAME = "vibewatch"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

DEFAULT_MAX_ENTRIES = 200
DEFAULT_STYLE = "monokai"


@dataclass(frozen=True)
class Settings:
    debounce_seconds: float = DEBOUNCE_SECONDS
    channel_capacity: int = CHANNEL_CAPACITY
    cache_freshness_seconds: float = CACHE_FRESHNESS_SECONDS
    git_timeout_seconds: float = GIT_TIMEOUT_SECONDS
    max_entries: int = DEFAULT_MAX_ENTRIES
    style: str = DEFAULT_STYLE


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are ignored so a read-only config directory never
    breaks the watcher.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError:
        pass


def _coerce_positive_int(value: object, default: int, upper: int) -> int:
    """Booleans, non-integers and non-positive values fall back to ``default``."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return default
    return min(value, upper)


def _millis_to_seconds(value: object, default: float, lower_ms: int, upper_ms: int) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if value < lower_ms:
        return default
    return min(float(value), float(upper_ms)) / 1000.0


def _coerce_timeout(value: object, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return default
    return float(value)


def load_settings() -> Settings:
    """Read tuning settings from the config file with validation."""
    data = load_config()
    style = data.get("style")
    return Settings(
        debounce_seconds=_millis_to_seconds(data.get("debounce_ms"), DEBOUNCE_SECONDS, 10, 5000),
        channel_capacity=_coerce_positive_int(data.get("channel_capacity"), CHANNEL_CAPACITY, 4096),
        cache_freshness_seconds=_millis_to_seconds(
            data.get("cache_freshness_ms"), CACHE_FRESHNESS_SECONDS, 0, 60000
        ),
        git_timeout_seconds=_coerce_timeout(data.get("git_timeout_seconds"), GIT_TIMEOUT_SECONDS),
        max_entries=_coerce_positive_int(data.get("max_entries"), DEFAULT_MAX_ENTRIES, 100000),
        style=style.strip() if isinstance(style, str) and style.strip() else DEFAULT_STYLE,
    )


def save_settings(settings: Settings) -> None:
    """Write ``settings`` back in the on-disk units, keeping unknown keys."""
    config = load_config()
    config.update(
        {
            "debounce_ms": round(settings.debounce_seconds * 1000),
            "channel_capacity": settings.channel_capacity,
            "cache_freshness_ms": round(settings.cache_freshness_seconds * 1000),
            "git_timeout_seconds": settings.git_timeout_seconds,
            "max_entries": settings.max_entries,
            "style": settings.style,
        }
    )
    save_config(config)


__all__ = [
    "CONFIG_PATH",
    "DEFAULT_MAX_ENTRIES",
    "DEFAULT_STYLE",
    "Settings",
    "load_config",
    "load_settings",
    "save_config",
    "save_settings",
]
