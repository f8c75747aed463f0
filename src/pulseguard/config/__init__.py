"""Configuration management."""

from pulseguard.config.loader import get_default_config, load_config
from pulseguard.config.models import (
    ConfigError,
    GuardrailConfig,
    HydrationConfig,
    LLMConfig,
    MemoryConfig,
    ModelConfig,
    ProviderConfig,
    PulseGuardConfig,
)

__all__ = [
    "ConfigError",
    "GuardrailConfig",
    "HydrationConfig",
    "LLMConfig",
    "MemoryConfig",
    "ModelConfig",
    "ProviderConfig",
    "PulseGuardConfig",
    "get_default_config",
    "load_config",
]
