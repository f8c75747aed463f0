"""Configuration models using Pydantic."""

import logging
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

from pulseguard.config.paths import get_database_path, get_system_timezone

logger = logging.getLogger(__name__)

ProviderName = Literal["openrouter", "openai"]

PROVIDER_ENV_VARS: dict[str, str] = {
    "openrouter": "OPENROUTER_API_KEY",
    "openai": "OPENAI_API_KEY",
}

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class ModelConfig(BaseModel):
    """Configuration for a named model.

    Temperature is optional - if None, the provider's default is used.
    """

    provider: ProviderName
    model: str
    temperature: float | None = None
    max_tokens: int = 1024


class ProviderConfig(BaseModel):
    """Provider-level configuration."""

    api_key: SecretStr | None = None
    base_url: str | None = None


class LLMConfig(BaseModel):
    """Single-model configuration (backward compatibility)."""

    provider: ProviderName
    model: str
    api_key: SecretStr | None = None
    temperature: float = 0.7
    max_tokens: int = 1024


class GuardrailConfig(BaseModel):
    """Thresholds and keyword evidence for the safety guardrails.

    explicit_intent_keywords gate critical-tier capabilities; the per-capability
    keyword sets gate high-tier ones.
    """

    min_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    explicit_intent_keywords: list[str] = Field(
        default_factory=lambda: [
            "log",
            "record",
            "save",
            "create",
            "add",
            "document",
            "note",
        ]
    )
    capability_keywords: dict[str, list[str]] = Field(
        default_factory=lambda: {
            "log_medication": ["took", "taken", "medication", "medicine", "pill", "dose"],
            "log_doctor_visit": [
                "doctor",
                "clinic",
                "hospital",
                "visit",
                "appointment",
                "saw",
            ],
        }
    )
    crisis_values: list[str] = Field(default_factory=lambda: ["crisis"])


class MemoryConfig(BaseModel):
    """Configuration for context assembly and the rolling summary."""

    database_path: Path = Field(default_factory=get_database_path)
    short_term_limit: int = 8
    mood_trend_days: int = 2
    mood_trend_limit: int = 5
    summary_interval: int = 10
    summary_max_tokens: int = 150
    summary_min_messages_for_shift: int = 3


class HydrationConfig(BaseModel):
    """Daily hydration goal used when reporting progress."""

    daily_goal_ml: int = Field(default=2000, gt=0)


class ConfigError(Exception):
    """Configuration error."""

    pass


class PulseGuardConfig(BaseModel):
    """Root configuration model."""

    models: dict[str, ModelConfig] = Field(default_factory=dict)
    openrouter: ProviderConfig | None = None
    openai: ProviderConfig | None = None
    # Backward compatibility - use models.default instead
    default_llm: LLMConfig | None = None
    guardrails: GuardrailConfig = Field(default_factory=GuardrailConfig)
    memory: MemoryConfig = Field(default_factory=MemoryConfig)
    hydration: HydrationConfig = Field(default_factory=HydrationConfig)
    timezone: str = Field(default_factory=get_system_timezone)
    persona: str = "PulseGuard"

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("unknown_timezone", extra={"timezone": value})
            return "UTC"
        return value

    @model_validator(mode="after")
    def _migrate_default_llm(self) -> "PulseGuardConfig":
        """Migrate [default_llm] to models.default."""
        if self.default_llm is None:
            return self
        if "default" in self.models:
            logger.warning(
                "Both [default_llm] and [models.default] present. "
                "Using [models.default], ignoring [default_llm]."
            )
            return self

        self.models["default"] = ModelConfig(
            provider=self.default_llm.provider,
            model=self.default_llm.model,
            temperature=self.default_llm.temperature,
            max_tokens=self.default_llm.max_tokens,
        )
        if self.default_llm.api_key is not None:
            section = getattr(self, self.default_llm.provider)
            if section is None:
                setattr(
                    self,
                    self.default_llm.provider,
                    ProviderConfig(api_key=self.default_llm.api_key),
                )
            elif section.api_key is None:
                section.api_key = self.default_llm.api_key
        return self

    @model_validator(mode="after")
    def _validate_default_model(self) -> "PulseGuardConfig":
        if "default" not in self.models:
            raise ValueError(
                "No default model configured. Add [models.default] or [default_llm]"
            )
        return self

    def get_model(self, alias: str) -> ModelConfig:
        """Get model config by alias.

        Raises:
            ConfigError: If the alias is not found.
        """
        if alias not in self.models:
            available = ", ".join(sorted(self.models.keys()))
            raise ConfigError(f"Unknown model alias '{alias}'. Available: {available}")
        return self.models[alias]

    def list_models(self) -> list[str]:
        return sorted(self.models.keys())

    @property
    def default_model(self) -> ModelConfig:
        return self.get_model("default")

    def get_provider(self, provider: ProviderName) -> ProviderConfig | None:
        return self.openrouter if provider == "openrouter" else self.openai

    def resolve_api_key(self, alias: str) -> SecretStr | None:
        """Resolve API key for a model alias.

        Resolution order:
        1. Provider-level config api_key
        2. Environment variable (OPENROUTER_API_KEY or OPENAI_API_KEY)
        """
        model = self.get_model(alias)
        section = self.get_provider(model.provider)
        if section and section.api_key:
            return section.api_key

        env_value = os.environ.get(PROVIDER_ENV_VARS[model.provider])
        if env_value:
            return SecretStr(env_value)
        return None

    def resolve_base_url(self, alias: str) -> str | None:
        model = self.get_model(alias)
        section = self.get_provider(model.provider)
        if section and section.base_url:
            return section.base_url
        if model.provider == "openrouter":
            return OPENROUTER_BASE_URL
        return None
