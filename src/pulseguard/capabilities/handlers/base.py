"""Handler interface and shared coercion helpers."""

from abc import ABC, abstractmethod
from collections.abc import Hashable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from typing import Any, ClassVar

from pulseguard.capabilities.types import (
    ActionError,
    ActionRequest,
    ExecutionResult,
    Preview,
)
from pulseguard.config.models import PulseGuardConfig
from pulseguard.store.protocols import HealthStore


@dataclass
class HandlerContext:
    """Everything a handler may touch while executing one request."""

    user_id: str
    store: HealthStore
    now: datetime
    config: PulseGuardConfig

    @property
    def today(self) -> date:
        """Calendar day in the user's timezone."""
        return self.now.date()

    @property
    def start_of_day(self) -> datetime:
        """Local midnight of today, as UTC."""
        return datetime.combine(self.today, time.min, tzinfo=self.now.tzinfo).astimezone(UTC)


class Handler(ABC):
    """Side-effecting operation bound to exactly one capability."""

    capability_id: ClassVar[str]

    def lock_key(self, ctx: HandlerContext, request: ActionRequest) -> Hashable | None:
        """Logical record this request writes, or None if it needs no lock.

        Requests with equal keys for the same user run one at a time.
        """
        return None

    async def preview(self, ctx: HandlerContext, request: ActionRequest) -> Preview:
        """Parse a free-text request into the fields shown for confirmation."""
        raise ActionError(f"{self.capability_id} has no preview")

    def check_confirmation(
        self, ctx: HandlerContext, request: ActionRequest
    ) -> list[str]:
        """Problems that would make a confirmed request fail to save.

        Runs before the pending entry is consumed, so a bad correction can
        be fixed and confirmed again.
        """
        return []

    @abstractmethod
    async def execute(
        self, ctx: HandlerContext, request: ActionRequest
    ) -> ExecutionResult:
        ...


def optional_str(params: dict[str, Any], name: str) -> str | None:
    value = params.get(name)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def required_str(params: dict[str, Any], name: str) -> str:
    value = optional_str(params, name)
    if value is None:
        raise ActionError(f"{name} is required")
    return value


def coerce_int(value: Any, name: str) -> int:
    """Accept ints, integral floats and numeric strings."""
    if isinstance(value, bool):
        raise ActionError(f"{name} must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            return round(value)
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            pass
    raise ActionError(f"{name} must be a number")


def parse_day(value: Any, name: str) -> date:
    """Parse ``YYYY-MM-DD`` or an ISO timestamp into a calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError as e:
        raise ActionError(f"{name} must be a date in YYYY-MM-DD format") from e


def parse_timestamp(value: Any, name: str) -> datetime:
    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ActionError(f"{name} must be an ISO 8601 timestamp") from e
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
