"""Shared test fixtures and factories."""

import json
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from pulseguard.capabilities import ActionEngine
from pulseguard.config.models import MemoryConfig, ModelConfig, PulseGuardConfig
from pulseguard.db.engine import Database
from pulseguard.llm.base import LLMProvider, ProviderError
from pulseguard.llm.types import CompletionResponse, Message, Role, Usage
from pulseguard.store.memory import InMemoryHealthStore
from pulseguard.store.sql import SqlHealthStore

# 2024-06-12 is a Wednesday
FIXED_NOW = datetime(2024, 6, 12, 10, 30, tzinfo=UTC)

# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def config() -> PulseGuardConfig:
    """Minimal valid configuration pinned to UTC."""
    return PulseGuardConfig(
        models={"default": ModelConfig(provider="openai", model="gpt-4o-mini")},
        timezone="UTC",
    )


@pytest.fixture
def config_toml_content() -> str:
    """Valid TOML config content."""
    return """
timezone = "UTC"

[models.default]
provider = "openai"
model = "gpt-4o-mini"
temperature = 0.5

[guardrails]
min_confidence = 0.8

[hydration]
daily_goal_ml = 2500
"""


@pytest.fixture
def config_file(tmp_path: Path, config_toml_content: str) -> Path:
    """Create a temporary config file."""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_toml_content)
    return config_path


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def store() -> InMemoryHealthStore:
    return InMemoryHealthStore()


@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Create a temporary test database."""
    async with Database.open(MemoryConfig(database_path=tmp_path / "test.db")) as db:
        yield db


@pytest.fixture
async def sql_store(database: Database) -> SqlHealthStore:
    return SqlHealthStore(database)


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def engine(
    store: InMemoryHealthStore,
    config: PulseGuardConfig,
    clock: Callable[[], datetime],
) -> ActionEngine:
    return ActionEngine.create(store, config, clock=clock)


def tool_call(
    tool: str,
    parameters: dict[str, Any],
    *,
    call_id: str = "call-1",
    confidence: float = 0.9,
) -> str:
    """Render a TOOL_CALL marker the way the model writes one."""
    payload = {
        "id": call_id,
        "tool": tool,
        "parameters": parameters,
        "confidence": confidence,
    }
    return f"[TOOL_CALL:{json.dumps(payload)}]"


# =============================================================================
# LLM Fixtures and Mocks
# =============================================================================


class MockLLMProvider(LLMProvider):
    """Mock completion provider for testing.

    Returns queued replies in order, then "Mock response". A queued
    exception is raised instead of returned.
    """

    def __init__(self, responses: list[str | Exception] | None = None):
        self.responses = list(responses or [])
        self.complete_calls: list[dict[str, Any]] = []
        self._response_index = 0

    @property
    def name(self) -> str:
        return "mock"

    @property
    def default_model(self) -> str:
        return "mock-model"

    async def complete(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        system: str | None = None,
        max_tokens: int = 1024,
        temperature: float | None = None,
    ) -> CompletionResponse:
        self.complete_calls.append(
            {
                "messages": messages,
                "model": model,
                "system": system,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )

        if self._response_index < len(self.responses):
            response = self.responses[self._response_index]
            self._response_index += 1
        else:
            response = "Mock response"

        if isinstance(response, Exception):
            raise response

        return CompletionResponse(
            message=Message(role=Role.ASSISTANT, content=response),
            usage=Usage(input_tokens=100, output_tokens=50),
            stop_reason="end_turn",
            model=model or self.default_model,
        )


@pytest.fixture
def mock_llm() -> MockLLMProvider:
    return MockLLMProvider()


@pytest.fixture
def failing_llm() -> MockLLMProvider:
    return MockLLMProvider(responses=[ProviderError("upstream unavailable")] * 5)
