"""Configuration loading from TOML files and environment variables."""

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import SecretStr

from pulseguard.config.models import PROVIDER_ENV_VARS, ModelConfig, PulseGuardConfig
from pulseguard.config.paths import get_config_path


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("config.toml"),
        get_config_path(),
        Path("/etc/pulseguard/config.toml"),
    ]


def _set_secret_from_env(section: dict[str, Any], key: str, env_var: str) -> None:
    if section.get(key) is None:
        value = os.environ.get(env_var)
        if value:
            section[key] = SecretStr(value)


def _resolve_env_secrets(config: dict[str, Any]) -> dict[str, Any]:
    """Resolve API keys from environment variables where not set in config."""
    for provider, env_var in PROVIDER_ENV_VARS.items():
        if isinstance(config.get(provider), dict):
            _set_secret_from_env(config[provider], "api_key", env_var)

    legacy = config.get("default_llm")
    if isinstance(legacy, dict) and legacy.get("provider") in PROVIDER_ENV_VARS:
        _set_secret_from_env(legacy, "api_key", PROVIDER_ENV_VARS[legacy["provider"]])

    return config


def load_config(path: Path | None = None) -> PulseGuardConfig:
    """Load configuration from a TOML file.

    Args:
        path: Explicit path to config file. If None, searches default locations.

    Raises:
        FileNotFoundError: If no config file is found.
        ValueError: If the config file is invalid.
    """
    config_path: Path | None = None
    default_paths = _get_default_config_paths()

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in default_paths:
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    if config_path is None:
        raise FileNotFoundError(
            f"No config file found. Searched: {', '.join(str(p) for p in default_paths)}"
        )

    with config_path.open("rb") as f:
        raw_config = tomllib.load(f)

    return PulseGuardConfig.model_validate(_resolve_env_secrets(raw_config))


def get_default_config() -> PulseGuardConfig:
    """Get a default configuration for development/testing."""
    return PulseGuardConfig(
        models={
            "default": ModelConfig(
                provider="openrouter",
                model="openai/gpt-4o-mini",
                temperature=0.7,
            ),
            "summary": ModelConfig(
                provider="openrouter",
                model="openai/gpt-4o-mini",
                temperature=0.3,
                max_tokens=150,
            ),
        }
    )
