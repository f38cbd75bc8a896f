"""Configuration file management for fit-rank.

Reads and writes ~/.fit-rank/config.json for settings that don't belong in the DB
(database location, log level, calendar timezone, default team).
"""
from __future__ import annotations

import json
import logging
import os
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FIT_RANK_CONFIG"
DEFAULT_CONFIG_PATH: Path = Path.home() / ".fit-rank" / "config.json"
DEFAULT_LOG_LEVEL = "WARNING"
CONFIG_KEYS = ("db_path", "log_level", "timezone", "default_team")


def config_path() -> Path:
    """Config file location, honouring the FIT_RANK_CONFIG override."""
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override) if override else DEFAULT_CONFIG_PATH


def load_config(path: Path | None = None) -> dict:
    """Load config from JSON file. Returns {} if file missing or invalid."""
    path = path or config_path()
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        logger.warning("Ignoring unreadable config file %s", path)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict, path: Path | None = None) -> None:
    """Write config dict to JSON file. Creates parent dirs if needed."""
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def get_db_path(path: Path | None = None) -> Path | None:
    """Return the configured database path, or None to use the default."""
    raw = load_config(path).get("db_path")
    return Path(raw).expanduser() if raw else None


def get_log_level(path: Path | None = None) -> str:
    level = load_config(path).get("log_level") or DEFAULT_LOG_LEVEL
    return str(level).upper()


def get_timezone(path: Path | None = None) -> tzinfo | None:
    """Return the configured calendar timezone, or None for the system zone."""
    name = load_config(path).get("timezone")
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r in config; using system local time", name)
        return None


def get_default_team(path: Path | None = None) -> str | None:
    return load_config(path).get("default_team") or None


def set_value(key: str, value: str, path: Path | None = None) -> None:
    """Persist a single config key. Raises ValueError for an unknown key."""
    if key not in CONFIG_KEYS:
        raise ValueError(f"Unknown config key {key!r}; expected one of: {', '.join(CONFIG_KEYS)}")
    config = load_config(path)
    config[key] = value
    save_config(config, path)
