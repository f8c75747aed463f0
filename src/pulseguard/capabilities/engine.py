"""Turns a model reply into executed, pending or refused actions.

Each request goes through the same stages::

    lookup -> validate -> guardrails -> preview (free text) -> confirm or dispatch

Nothing in here raises to the conversation loop. Every failure becomes a
failed ExecutionResult whose ``message`` is fit for the user and whose
``error`` is what the model reads back.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pulseguard.capabilities.confirmations import ConfirmationManager, apply_amendments
from pulseguard.capabilities.dispatch import Dispatcher
from pulseguard.capabilities.guardrails import GuardrailEvaluator
from pulseguard.capabilities.handlers import Handler, default_handlers
from pulseguard.capabilities.parser import format_result_for_model, parse_reply
from pulseguard.capabilities.registry import CapabilityRegistry, build_default_registry
from pulseguard.capabilities.types import (
    ActionError,
    ActionRequest,
    ExecutionResult,
    UnknownConfirmationError,
)
from pulseguard.capabilities.validator import validate_request
from pulseguard.config.models import PulseGuardConfig
from pulseguard.logging import log_context
from pulseguard.store.protocols import HealthStore
from pulseguard.store.types import PendingConfirmation

logger = logging.getLogger(__name__)

UNKNOWN_CAPABILITY_MESSAGE = "I can't do that yet"
INVALID_REQUEST_MESSAGE = "Some details were missing or didn't look right"
DENIED_MESSAGE = "I'd like to check with you before saving that"
PIPELINE_FAILED_MESSAGE = "Something went wrong while handling that"


@dataclass
class TurnOutcome:
    """Display text and per-request results for one model reply."""

    text: str
    results: list[ExecutionResult] = field(default_factory=list)
    parse_errors: list[str] = field(default_factory=list)

    @property
    def pending(self) -> list[ExecutionResult]:
        return [r for r in self.results if r.requires_confirmation]

    @property
    def crisis(self) -> bool:
        return any(r.crisis for r in self.results)

    def tool_results(self) -> str:
        """Results in the marker format the model reads on the next turn."""
        return "\n".join(format_result_for_model(r) for r in self.results)


def _unknown_confirmation(request_id: str, error: UnknownConfirmationError) -> ExecutionResult:
    return ExecutionResult(
        success=False,
        request_id=request_id,
        capability_id="",
        message="There is nothing waiting for confirmation under that id",
        error=str(error),
    )


class ActionEngine:
    def __init__(
        self,
        registry: CapabilityRegistry,
        dispatcher: Dispatcher,
        confirmations: ConfirmationManager,
        guardrails: GuardrailEvaluator,
    ) -> None:
        self._registry = registry
        self._dispatcher = dispatcher
        self._confirmations = confirmations
        self._guardrails = guardrails

    @classmethod
    def create(
        cls,
        store: HealthStore,
        config: PulseGuardConfig,
        *,
        registry: CapabilityRegistry | None = None,
        handlers: Iterable[Handler] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> "ActionEngine":
        """Wire the default catalog and handlers around a store.

        Raises:
            HandlerBindingError: Registry and handlers do not match one-to-one.
        """
        registry = registry or build_default_registry()
        dispatcher = Dispatcher(
            registry,
            default_handlers() if handlers is None else handlers,
            store,
            config,
            clock=clock,
        )
        return cls(
            registry,
            dispatcher,
            ConfirmationManager(store),
            GuardrailEvaluator(config.guardrails),
        )

    @property
    def registry(self) -> CapabilityRegistry:
        return self._registry

    @property
    def guardrails(self) -> GuardrailEvaluator:
        return self._guardrails

    async def process_reply(
        self, user_id: str, reply: str, user_message: str | None = None
    ) -> TurnOutcome:
        parsed = parse_reply(reply)
        with log_context(user_id=user_id):
            if parsed.requests:
                logger.info(
                    "actions_requested",
                    extra={"count": len(parsed.requests), "parse_errors": len(parsed.errors)},
                )
            results = await asyncio.gather(
                *(self.handle_request(user_id, r, user_message) for r in parsed.requests)
            )
        return TurnOutcome(parsed.text, list(results), parsed.errors)

    async def handle_request(
        self, user_id: str, request: ActionRequest, user_message: str | None = None
    ) -> ExecutionResult:
        with log_context(
            user_id=user_id, request_id=request.id, capability=request.capability_id
        ):
            try:
                return await self._handle(user_id, request, user_message)
            except Exception as e:
                logger.exception("action_pipeline_failed")
                return ExecutionResult.failed(request, PIPELINE_FAILED_MESSAGE, error=str(e))

    async def _handle(
        self, user_id: str, request: ActionRequest, user_message: str | None
    ) -> ExecutionResult:
        definition = self._registry.find(request.capability_id)
        if definition is None:
            logger.warning("unknown_capability")
            return ExecutionResult.failed(
                request,
                UNKNOWN_CAPABILITY_MESSAGE,
                error=f"Unknown capability: {request.capability_id}",
            )

        validation = validate_request(request, definition)
        if not validation:
            logger.info("action_invalid", extra={"errors": validation.errors})
            return ExecutionResult.failed(
                request,
                INVALID_REQUEST_MESSAGE,
                error="Invalid parameters: " + "; ".join(validation.errors),
            )

        decision = self._guardrails.evaluate(request, definition, user_message)
        if not decision.allowed:
            logger.info(
                "action_denied",
                extra={"reason": decision.reason, "confidence": request.confidence},
            )
            return ExecutionResult.failed(request, DENIED_MESSAGE, error=decision.reason)
        if decision.crisis:
            logger.warning("crisis_flagged")

        if definition.requires_confirmation:
            prompt = prepared = None
            if definition.free_text:
                try:
                    preview = await self._dispatcher.preview(user_id, request)
                except ActionError as e:
                    return ExecutionResult.failed(request, str(e))
                prompt, prepared = preview.prompt, preview.prepared
            pending = await self._confirmations.propose(
                user_id, request, definition, prompt=prompt, prepared=prepared
            )
            return ExecutionResult.pending(request, pending.prompt)

        result = await self._dispatcher.dispatch(user_id, request)
        result.crisis = decision.crisis
        return result

    async def confirm(
        self,
        user_id: str,
        request_id: str,
        amendments: dict[str, Any] | None = None,
    ) -> ExecutionResult:
        """Execute a pending request, optionally with user corrections.

        Confirmation stands in for the intent evidence guardrails look for,
        so only the schema and the handler's own field checks run again. An
        unknown id or an amendment that fails either leaves the pending set
        untouched.
        """
        with log_context(user_id=user_id, request_id=request_id):
            try:
                pending = await self._confirmations.get(user_id, request_id)
            except UnknownConfirmationError as e:
                logger.info("confirmation_unknown")
                return _unknown_confirmation(request_id, e)

            parameters, prepared = apply_amendments(pending, amendments)
            candidate = ActionRequest(
                id=request_id,
                capability_id=pending.capability_id,
                parameters=parameters,
                confidence=1.0,
                prepared=prepared,
            )
            definition = self._registry.find(pending.capability_id)
            if definition is None:
                return ExecutionResult.failed(
                    candidate,
                    UNKNOWN_CAPABILITY_MESSAGE,
                    error=f"Unknown capability: {pending.capability_id}",
                )
            validation = validate_request(candidate, definition)
            if not validation:
                return ExecutionResult.failed(
                    candidate,
                    INVALID_REQUEST_MESSAGE,
                    error="Invalid parameters: " + "; ".join(validation.errors),
                )

            if problems := self._dispatcher.check_confirmation(user_id, candidate):
                logger.info("confirmation_invalid", extra={"errors": problems})
                return ExecutionResult.failed(
                    candidate,
                    INVALID_REQUEST_MESSAGE,
                    error="Invalid fields: " + "; ".join(problems),
                )

            try:
                request = await self._confirmations.confirm(user_id, request_id, amendments)
            except UnknownConfirmationError as e:
                return _unknown_confirmation(request_id, e)

            with log_context(capability=request.capability_id):
                result = await self._dispatcher.dispatch(user_id, request)
                if self._guardrails.flags(request, definition):
                    logger.warning("crisis_flagged")
                    result.crisis = True
            return result

    async def reject(self, user_id: str, request_id: str) -> PendingConfirmation:
        """Raises UnknownConfirmationError when nothing is pending under this id."""
        return await self._confirmations.reject(user_id, request_id)

    async def pending(self, user_id: str) -> list[PendingConfirmation]:
        return await self._confirmations.pending(user_id)


def render(outcome: TurnOutcome) -> str:
    """User-facing reply: display text, then prompts and failure notes."""
    parts = [outcome.text] if outcome.text else []
    for result in outcome.results:
        if result.status == "pending" and result.confirmation_prompt:
            parts.append(result.confirmation_prompt)
        elif result.status == "failed":
            parts.append(f"(Not saved: {result.message})")
    return "\n\n".join(parts)
