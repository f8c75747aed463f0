"""Tests for the chat completions provider and factory."""

from types import SimpleNamespace

import httpx
import openai
import pytest
from pydantic import SecretStr

from pulseguard.config.models import ModelConfig, ProviderConfig, PulseGuardConfig
from pulseguard.llm.base import ProviderError
from pulseguard.llm.openai import OpenAICompatibleProvider
from pulseguard.llm.registry import create_llm_provider
from pulseguard.llm.retry import RetryConfig
from pulseguard.llm.types import Message, Role


class FakeCompletions:
    def __init__(self, outcomes: list):
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _response(text: str | None = "Hello!", *, usage: bool = True):
    return SimpleNamespace(
        choices=[
            SimpleNamespace(
                message=SimpleNamespace(content=text),
                finish_reason="stop",
            )
        ],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=3) if usage else None,
        model="gpt-4o-mini",
    )


def _server_error(status: int) -> openai.InternalServerError:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    return openai.InternalServerError(
        "upstream unavailable", response=httpx.Response(status, request=request), body=None
    )


def _provider(outcomes: list) -> tuple[OpenAICompatibleProvider, FakeCompletions]:
    completions = FakeCompletions(outcomes)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    provider = OpenAICompatibleProvider(
        client=client,
        default_model="gpt-4o-mini",
        retry=RetryConfig(max_retries=1, base_delay_s=0, max_delay_s=0),
    )
    return provider, completions


class TestOpenAICompatibleProvider:
    async def test_complete(self):
        provider, completions = _provider([_response()])

        response = await provider.complete(
            [Message(role=Role.USER, content="hi")],
            system="Be kind.",
            max_tokens=200,
            temperature=0.3,
        )

        assert response.text == "Hello!"
        assert response.usage.input_tokens == 12
        assert response.stop_reason == "stop"
        call = completions.calls[0]
        assert call["model"] == "gpt-4o-mini"
        assert call["messages"] == [
            {"role": "system", "content": "Be kind."},
            {"role": "user", "content": "hi"},
        ]
        assert call["max_tokens"] == 200
        assert call["temperature"] == 0.3

    async def test_temperature_omitted_when_unset(self):
        provider, completions = _provider([_response()])
        await provider.complete([Message(role=Role.USER, content="hi")])
        assert "temperature" not in completions.calls[0]

    async def test_empty_content(self):
        provider, _ = _provider([_response(None, usage=False)])
        response = await provider.complete([Message(role=Role.USER, content="hi")])
        assert response.text == ""
        assert response.usage is None

    async def test_retries_transient_failure(self):
        provider, completions = _provider([_server_error(503), _response()])
        response = await provider.complete([Message(role=Role.USER, content="hi")])
        assert response.text == "Hello!"
        assert len(completions.calls) == 2

    async def test_failure_becomes_provider_error(self):
        provider, _ = _provider([Exception("Authentication failed")])
        with pytest.raises(ProviderError, match="openai completion failed"):
            await provider.complete([Message(role=Role.USER, content="hi")])


class TestCreateLLMProvider:
    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        config = PulseGuardConfig(
            models={"default": ModelConfig(provider="openai", model="gpt-4o-mini")}
        )
        with pytest.raises(ValueError, match="No API key for provider 'openai'"):
            create_llm_provider(config)

    def test_openrouter(self):
        config = PulseGuardConfig(
            models={"default": ModelConfig(provider="openrouter", model="openai/gpt-4o-mini")},
            openrouter=ProviderConfig(api_key=SecretStr("sk-or-test")),
        )
        provider = create_llm_provider(config)
        assert provider.name == "openrouter"
        assert provider.default_model == "openai/gpt-4o-mini"
