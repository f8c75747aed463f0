"""Tests for completion retry backoff."""

import httpx
import openai
import pytest

from pulseguard.llm.retry import RetryConfig, with_retry

FAST = RetryConfig(max_retries=2, base_delay_s=0, max_delay_s=0)
REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _status_error(cls: type[openai.APIStatusError], status: int) -> openai.APIStatusError:
    return cls("request failed", response=httpx.Response(status, request=REQUEST), body=None)


class Flaky:
    """Raises the queued errors in order, then returns "reply"."""

    def __init__(self, *errors: Exception):
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "reply"


class TestRetryConfig:
    def test_delay_doubles_up_to_cap(self):
        config = RetryConfig(base_delay_s=1.0, max_delay_s=3.0)
        assert [config.delay(n) for n in range(4)] == [1.0, 2.0, 3.0, 3.0]


class TestWithRetry:
    async def test_success_first_try(self):
        func = Flaky()
        assert await with_retry(func, FAST, "openai.complete") == "reply"
        assert func.calls == 1

    @pytest.mark.parametrize(
        "error",
        [
            openai.APIConnectionError(request=REQUEST),
            openai.APITimeoutError(request=REQUEST),
            _status_error(openai.RateLimitError, 429),
            _status_error(openai.InternalServerError, 503),
        ],
    )
    async def test_transient_errors_are_retried(self, error):
        func = Flaky(error)
        assert await with_retry(func, FAST, "openai.complete") == "reply"
        assert func.calls == 2

    @pytest.mark.parametrize(
        "error",
        [
            _status_error(openai.AuthenticationError, 401),
            _status_error(openai.BadRequestError, 400),
            ValueError("Invalid request"),
        ],
    )
    async def test_permanent_errors_are_not_retried(self, error):
        func = Flaky(error)
        with pytest.raises(type(error)):
            await with_retry(func, FAST, "openai.complete")
        assert func.calls == 1

    async def test_gives_up_after_max_retries(self):
        errors = [_status_error(openai.RateLimitError, 429) for _ in range(3)]
        func = Flaky(*errors)
        with pytest.raises(openai.RateLimitError):
            await with_retry(func, FAST, "openai.complete")
        assert func.calls == 3

    async def test_no_retries(self):
        func = Flaky(openai.APIConnectionError(request=REQUEST))
        with pytest.raises(openai.APIConnectionError):
            await with_retry(func, RetryConfig(max_retries=0), "openai.complete")
        assert func.calls == 1
