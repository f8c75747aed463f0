"""Routes validated requests to their handlers."""

import logging
import time
from collections.abc import Callable, Iterable
from datetime import datetime
from zoneinfo import ZoneInfo

from pulseguard.capabilities.handlers.base import Handler, HandlerContext
from pulseguard.capabilities.registry import CapabilityRegistry
from pulseguard.capabilities.types import (
    ActionError,
    ActionRequest,
    ExecutionResult,
    HandlerBindingError,
    Preview,
)
from pulseguard.config.models import PulseGuardConfig
from pulseguard.locks import KeyedLocks
from pulseguard.logging import log_context
from pulseguard.store.protocols import HealthStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def bind_handlers(
    registry: CapabilityRegistry, handlers: Iterable[Handler]
) -> dict[str, Handler]:
    """Map every registered capability to exactly one handler.

    Raises:
        HandlerBindingError: A capability has no handler or several, or a
            handler names a capability that is not registered.
    """
    bound: dict[str, Handler] = {}
    problems: list[str] = []
    for handler in handlers:
        capability_id = handler.capability_id
        if capability_id in bound:
            problems.append(f"duplicate handler for {capability_id}")
        elif capability_id not in registry:
            problems.append(f"handler for unknown capability {capability_id}")
        else:
            bound[capability_id] = handler

    problems.extend(
        f"no handler for {capability_id}"
        for capability_id in registry.ids
        if capability_id not in bound
    )
    if problems:
        raise HandlerBindingError("; ".join(problems))
    return bound


class Dispatcher:
    """Runs handlers with per-record serialization.

    Two requests for the same user that write the same logical record (for
    example today's check-in) never interleave. Everything else runs
    concurrently. Nothing is retried.
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        handlers: Iterable[Handler],
        store: HealthStore,
        config: PulseGuardConfig,
        clock: Clock | None = None,
    ) -> None:
        self._handlers = bind_handlers(registry, handlers)
        self._store = store
        self._config = config
        self._clock = clock or self._local_now
        self._locks = KeyedLocks()

    def _local_now(self) -> datetime:
        return datetime.now(ZoneInfo(self._config.timezone))

    def context(self, user_id: str) -> HandlerContext:
        return HandlerContext(
            user_id=user_id,
            store=self._store,
            now=self._clock(),
            config=self._config,
        )

    def handler_for(self, capability_id: str) -> Handler:
        return self._handlers[capability_id]

    async def preview(self, user_id: str, request: ActionRequest) -> Preview:
        """Raises ActionError when the free text cannot be turned into an action."""
        handler = self._handlers[request.capability_id]
        return await handler.preview(self.context(user_id), request)

    def check_confirmation(self, user_id: str, request: ActionRequest) -> list[str]:
        handler = self._handlers[request.capability_id]
        return handler.check_confirmation(self.context(user_id), request)

    async def dispatch(self, user_id: str, request: ActionRequest) -> ExecutionResult:
        handler = self._handlers.get(request.capability_id)
        if handler is None:
            return ExecutionResult.failed(
                request, f"Unknown capability: {request.capability_id}"
            )

        ctx = self.context(user_id)
        key = handler.lock_key(ctx, request)

        with log_context(request_id=request.id, capability=request.capability_id):
            start_time = time.monotonic()
            try:
                if key is None:
                    result = await handler.execute(ctx, request)
                else:
                    async with self._locks.hold((user_id, key)):
                        result = await handler.execute(ctx, request)
            except ActionError as e:
                result = ExecutionResult.failed(request, str(e))
            except Exception as e:
                logger.exception("action_execution_failed")
                result = ExecutionResult.failed(
                    request, "Something went wrong while saving that", error=str(e)
                )

            duration_ms = int((time.monotonic() - start_time) * 1000)
            log_extra = {"duration_ms": duration_ms, "success": result.success}
            if result.success:
                logger.info("action_executed", extra=log_extra)
            else:
                log_extra["error.message"] = (result.error or "")[:500]
                logger.warning("action_executed", extra=log_extra)
            return result
