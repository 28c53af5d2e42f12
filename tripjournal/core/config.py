"""TripJournal settings: journal service endpoints, car, locale, dashboard and map.

Settings live in ``config.json`` under a per-user data directory
(``~/Library/Application Support/TripJournal`` on macOS,
``%APPDATA%/TripJournal`` on Windows, ``~/.tripjournal`` elsewhere).
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def get_data_directory() -> Path:
    """Return the platform-appropriate data directory for TripJournal."""
    if sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    elif sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
    else:
        base = Path.home()
        return base / ".tripjournal"
    return base / "TripJournal"


def get_default_config() -> dict[str, Any]:
    """Return the default configuration dictionary."""
    return {
        "service": {
            "base_url": "http://localhost:4001",
            "days_path": "/days",
            "action_path": "/action",
            "timeout_seconds": 10,
        },
        "car_id": 1,
        "locale": "sv",
        "distance_unit": "km",
        "dashboard": {
            "host": "127.0.0.1",
            "port": 5556,
        },
        "map": {
            "tile_url": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
            "attribution": '&copy; <a href="http://osm.org/copyright">OpenStreetMap</a> contributors',
        },
        "export_directory": "~/tripjournal-reports",
    }


def get_default_config_path() -> Path:
    """``config.json`` inside :func:`get_data_directory`."""
    return get_data_directory() / "config.json"


def _config_path(path: str | Path | None) -> Path:
    return Path(path) if path is not None else get_default_config_path()


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Read the service, dashboard and display settings.

    On first run there is no file yet: the defaults are written to
    *path* (the data directory when omitted) and returned.  An unreadable
    file, or one whose top level is not a JSON object, is logged and the
    defaults are used for this run without touching the file.  Sections
    present in the file are overlaid key by key on the defaults.
    """
    config_path = _config_path(path)

    if not config_path.exists():
        logger.info("No config at %s; writing defaults.", config_path)
        defaults = get_default_config()
        save_config(defaults, config_path)
        return defaults

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (ValueError, OSError) as exc:
        logger.error("Failed to load config from %s: %s; using defaults.", config_path, exc)
        return get_default_config()

    if not isinstance(data, dict):
        logger.error(
            "Failed to load config from %s: expected an object, got %s; using defaults.",
            config_path, type(data).__name__,
        )
        return get_default_config()
    return _merge_defaults(get_default_config(), data)


def save_config(config: dict[str, Any], path: str | Path | None = None) -> None:
    """Write *config* as indented UTF-8 JSON, creating missing directories."""
    config_path = _config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(config, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def _merge_defaults(defaults: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    """Overlay *data* on *defaults*, recursing into nested sections."""
    merged = dict(defaults)
    for key, value in data.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_defaults(merged[key], value)
        else:
            merged[key] = value
    return merged
