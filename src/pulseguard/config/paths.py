"""Centralized path management for PulseGuard.

All state (config, database, logs) lives under a single base directory that
can be overridden with the PULSEGUARD_HOME environment variable.

Default location: ~/.pulseguard
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "PULSEGUARD_HOME"


def get_system_timezone() -> str:
    """Detect system timezone, falling back to UTC.

    Resolution order:
    1. TZ environment variable (if set)
    2. /etc/timezone file (Debian/Ubuntu)
    3. /etc/localtime symlink target (most Linux distros)
    4. Fallback to UTC

    Returns:
        IANA timezone name (e.g., "Africa/Lagos", "Europe/London", "UTC").
    """
    if tz := os.environ.get("TZ"):
        return tz

    try:
        tz = Path("/etc/timezone").read_text().strip()
        if tz:
            return tz
    except (FileNotFoundError, PermissionError):
        pass

    try:
        link = Path("/etc/localtime").resolve()
        parts = str(link).split("zoneinfo/")
        if len(parts) > 1:
            return parts[1]
    except (FileNotFoundError, PermissionError):
        pass

    return "UTC"


@lru_cache(maxsize=1)
def get_pulseguard_home() -> Path:
    """Get the base directory for all PulseGuard data."""
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".pulseguard"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_pulseguard_home() / "config.toml"


def get_database_path() -> Path:
    """Get the default SQLite database path."""
    return get_pulseguard_home() / "data" / "pulseguard.db"


def get_logs_path() -> Path:
    """Get the JSONL logs directory."""
    return get_pulseguard_home() / "logs"
