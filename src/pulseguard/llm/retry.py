"""Backoff for transient chat completion failures."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import openai

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Timeouts are a subclass of APIConnectionError; 5xx responses raise
# InternalServerError.
TRANSIENT_ERRORS: tuple[type[openai.OpenAIError], ...] = (
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


@dataclass(frozen=True)
class RetryConfig:
    """Retries after the first attempt, with a doubling delay."""

    max_retries: int = 2
    base_delay_s: float = 1.0
    max_delay_s: float = 8.0

    def delay(self, retry: int) -> float:
        return min(self.base_delay_s * 2**retry, self.max_delay_s)


async def with_retry(
    func: Callable[[], Awaitable[T]], config: RetryConfig, operation: str
) -> T:
    """Await ``func``, retrying TRANSIENT_ERRORS. Anything else propagates at once."""
    retry = 0
    while True:
        try:
            return await func()
        except TRANSIENT_ERRORS as e:
            if retry == config.max_retries:
                logger.warning(
                    "retry_exhausted",
                    extra={
                        "operation": operation,
                        "attempts": retry + 1,
                        "error.type": type(e).__name__,
                    },
                )
                raise
            delay = config.delay(retry)
            logger.info(
                "retry_attempt",
                extra={"operation": operation, "retry": retry + 1, "delay_s": delay},
            )
            retry += 1
            await asyncio.sleep(delay)
