"""OpenAI-compatible chat completions provider.

Serves both OpenAI and OpenRouter; OpenRouter is reached by pointing the
client at its base URL.
"""

import logging
import time
from typing import Any

import openai

from pulseguard.llm.base import LLMProvider, ProviderError
from pulseguard.llm.retry import RetryConfig, with_retry
from pulseguard.llm.types import CompletionResponse, Message, Role, Usage

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "openai/gpt-4o-mini"
REQUEST_TIMEOUT_S = 30.0


class OpenAICompatibleProvider(LLMProvider):
    """Provider for any endpoint speaking the chat completions API."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        provider_name: str = "openai",
        default_model: str = DEFAULT_MODEL,
        retry: RetryConfig | None = None,
        client: Any = None,
    ):
        self._client = client or openai.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=REQUEST_TIMEOUT_S,
            max_retries=0,
        )
        self._name = provider_name
        self._default_model = default_model
        self._retry = retry or RetryConfig()

    @property
    def name(self) -> str:
        return self._name

    @property
    def default_model(self) -> str:
        return self._default_model

    def _build_messages(
        self, messages: list[Message], system: str | None
    ) -> list[dict[str, str]]:
        result: list[dict[str, str]] = []
        if system:
            result.append({"role": "system", "content": system})
        for msg in messages:
            if msg.role == Role.SYSTEM and system:
                continue
            result.append({"role": msg.role.value, "content": msg.get_text()})
        return result

    def _parse_response(self, response: Any) -> CompletionResponse:
        choice = response.choices[0] if response.choices else None
        text = (choice.message.content or "") if choice else ""

        usage = None
        if response.usage:
            usage = Usage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
            )

        return CompletionResponse(
            message=Message(role=Role.ASSISTANT, content=text),
            usage=usage,
            stop_reason=choice.finish_reason if choice else None,
            model=response.model,
        )

    async def complete(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        system: str | None = None,
        max_tokens: int = 1024,
        temperature: float | None = None,
    ) -> CompletionResponse:
        kwargs: dict[str, Any] = {
            "model": model or self.default_model,
            "messages": self._build_messages(messages, system),
            "max_tokens": max_tokens,
        }
        if temperature is not None:
            kwargs["temperature"] = temperature

        start_time = time.monotonic()
        try:
            response = await with_retry(
                lambda: self._client.chat.completions.create(**kwargs),
                self._retry,
                f"{self._name}.complete",
            )
        except Exception as e:
            logger.error(
                "llm_complete_failed",
                extra={
                    "provider": self._name,
                    "model": kwargs["model"],
                    "error.type": type(e).__name__,
                },
            )
            raise ProviderError(f"{self._name} completion failed: {e}") from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        result = self._parse_response(response)

        extra: dict[str, object] = {
            "provider": self._name,
            "model": kwargs["model"],
            "duration_ms": duration_ms,
        }
        if result.usage:
            extra["tokens_in"] = result.usage.input_tokens
            extra["tokens_out"] = result.usage.output_tokens
        logger.debug("llm_complete", extra=extra)

        return result
