"""Completion provider abstraction layer."""

from pulseguard.llm.base import LLMProvider, ProviderError
from pulseguard.llm.openai import OpenAICompatibleProvider
from pulseguard.llm.registry import create_llm_provider
from pulseguard.llm.retry import RetryConfig, with_retry
from pulseguard.llm.types import CompletionResponse, Message, Role, Usage

__all__ = [
    "LLMProvider",
    "ProviderError",
    "OpenAICompatibleProvider",
    "create_llm_provider",
    "RetryConfig",
    "with_retry",
    "CompletionResponse",
    "Message",
    "Role",
    "Usage",
]
