"""Abstract completion provider interface."""

from abc import ABC, abstractmethod

from pulseguard.llm.types import CompletionResponse, Message


class ProviderError(Exception):
    """A completion provider call failed after retries."""


class LLMProvider(ABC):
    """Text in, text out.

    The action engine never depends on a vendor; anything that can turn a
    system prompt plus a message history into assistant text fits here.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g., 'openrouter', 'openai')."""
        ...

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Default model for this provider."""
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        system: str | None = None,
        max_tokens: int = 1024,
        temperature: float | None = None,
    ) -> CompletionResponse:
        """Generate a completion.

        Args:
            messages: Conversation history.
            model: Model to use (defaults to provider's default).
            system: System prompt.
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature. None = use API default.

        Raises:
            ProviderError: If the provider could not produce a reply.
        """
        ...
