"""Completion provider factory."""

from pydantic import SecretStr

from pulseguard.config.models import PulseGuardConfig
from pulseguard.llm.base import LLMProvider
from pulseguard.llm.openai import OpenAICompatibleProvider


def create_llm_provider(config: PulseGuardConfig, alias: str = "default") -> LLMProvider:
    """Create the provider serving a model alias.

    Raises:
        ConfigError: If the alias is unknown.
        ValueError: If no API key can be resolved.
    """
    model = config.get_model(alias)
    api_key: SecretStr | None = config.resolve_api_key(alias)
    if api_key is None:
        raise ValueError(
            f"No API key for provider '{model.provider}'. "
            f"Set [{model.provider}].api_key or the environment variable."
        )

    return OpenAICompatibleProvider(
        api_key=api_key.get_secret_value(),
        base_url=config.resolve_base_url(alias),
        provider_name=model.provider,
        default_model=model.model,
    )
