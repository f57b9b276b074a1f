"""Configuration management for EchoDay."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

ECHODAY_HOME = Path(os.environ.get("ECHODAY_HOME", Path.home() / "echoday"))
CONFIG_FILE = ECHODAY_HOME / "config" / "echoday.conf"
DATA_DIR = ECHODAY_HOME / "data"


@dataclass
class Config:
    """EchoDay configuration."""

    user_id: str = "local"
    data_dir: str = ""
    remote_base_url: str = ""
    remote_token: str = ""
    timezone: str = ""
    log_level: str = "INFO"
    # Scheduling
    reminder_interval_seconds: int = 60
    reminder_stale_minutes: int = 120
    default_snooze_minutes: int = 10
    geofence_interval_seconds: int = 180
    geofence_cooldown_minutes: int = 60
    location_file: str = ""
    rollover_on_start: bool = True
    # Sync
    new_item_window_seconds: int = 5

    @property
    def data_path(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return DATA_DIR

    @property
    def archive_path(self) -> Path:
        return self.data_path / "archive"


def _parse_value(value: str) -> str:
    """Strip quotes, or inline comments from unquoted values."""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def _parse_int(key: str, value: str, default: int) -> int:
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {key.upper()}: {value!r}, keeping {default}")
        return default
    if parsed <= 0:
        logger.warning(f"{key.upper()} must be positive, keeping {default}")
        return default
    return parsed


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def load_config(path: Path | None = None) -> Config:
    """Load configuration from echoday.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _parse_value(value.strip())

        match key:
            case "user_id":
                config.user_id = value
            case "data_dir":
                config.data_dir = value
            case "remote_base_url":
                config.remote_base_url = value.rstrip("/")
            case "remote_token":
                config.remote_token = value
            case "timezone":
                config.timezone = value
            case "log_level":
                config.log_level = value.upper()
            case "reminder_interval_seconds":
                config.reminder_interval_seconds = _parse_int(key, value, config.reminder_interval_seconds)
            case "reminder_stale_minutes":
                config.reminder_stale_minutes = _parse_int(key, value, config.reminder_stale_minutes)
            case "default_snooze_minutes":
                config.default_snooze_minutes = _parse_int(key, value, config.default_snooze_minutes)
            case "geofence_interval_seconds":
                config.geofence_interval_seconds = _parse_int(key, value, config.geofence_interval_seconds)
            case "geofence_cooldown_minutes":
                config.geofence_cooldown_minutes = _parse_int(key, value, config.geofence_cooldown_minutes)
            case "location_file":
                config.location_file = value
            case "rollover_on_start":
                config.rollover_on_start = _parse_bool(value)
            case "new_item_window_seconds":
                config.new_item_window_seconds = _parse_int(key, value, config.new_item_window_seconds)
            case _:
                logger.debug(f"Ignoring unknown config key: {key}")

    return config
