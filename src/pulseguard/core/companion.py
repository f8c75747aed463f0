"""One conversation turn, end to end.

    user message -> context -> completion -> action engine -> reply

Turns for the same user never overlap. Different users run concurrently.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from pulseguard.capabilities.engine import ActionEngine, TurnOutcome, render
from pulseguard.capabilities.types import ExecutionResult
from pulseguard.config.models import PulseGuardConfig
from pulseguard.core.context import ContextAssembler
from pulseguard.core.prompt import SystemPromptBuilder
from pulseguard.core.summary import SummaryManager
from pulseguard.llm.base import LLMProvider, ProviderError
from pulseguard.llm.types import Message, Role
from pulseguard.locks import KeyedLocks
from pulseguard.logging import log_context
from pulseguard.store.protocols import HealthStore, StoreError
from pulseguard.store.types import ChatMessage, PendingConfirmation

logger = logging.getLogger(__name__)

APOLOGY = "Sorry, I'm having trouble answering right now. Please try again in a moment."


@dataclass
class TurnReply:
    text: str
    outcome: TurnOutcome | None = None
    provider_failed: bool = False

    @property
    def pending(self) -> list[ExecutionResult]:
        return self.outcome.pending if self.outcome else []

    @property
    def crisis(self) -> bool:
        return bool(self.outcome and self.outcome.crisis)


class Companion:
    def __init__(
        self,
        store: HealthStore,
        llm: LLMProvider,
        engine: ActionEngine,
        config: PulseGuardConfig,
        *,
        model_alias: str = "default",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._llm = llm
        self._engine = engine
        self._config = config
        self._model = config.get_model(model_alias)
        self._clock = clock or self._local_now
        self._assembler = ContextAssembler(store, config.memory)
        self._prompts = SystemPromptBuilder(engine.registry, config)
        summary_model = config.models.get("summary", self._model)
        self._summaries = SummaryManager(
            store, llm, config.memory, model=summary_model.model
        )
        self._locks = KeyedLocks()

    @classmethod
    def create(
        cls,
        store: HealthStore,
        llm: LLMProvider,
        config: PulseGuardConfig,
        *,
        model_alias: str = "default",
        clock: Callable[[], datetime] | None = None,
    ) -> "Companion":
        engine = ActionEngine.create(store, config, clock=clock)
        return cls(store, llm, engine, config, model_alias=model_alias, clock=clock)

    @property
    def engine(self) -> ActionEngine:
        return self._engine

    def _local_now(self) -> datetime:
        return datetime.now(ZoneInfo(self._config.timezone))

    async def handle_message(
        self, user_id: str, text: str, *, emergency: bool = False
    ) -> TurnReply:
        async with self._locks.hold(user_id):
            with log_context(user_id=user_id):
                return await self._turn(user_id, text, emergency)

    async def confirm(
        self, user_id: str, request_id: str, amendments: dict[str, Any] | None = None
    ) -> ExecutionResult:
        async with self._locks.hold(user_id):
            return await self._engine.confirm(user_id, request_id, amendments)

    async def reject(self, user_id: str, request_id: str) -> PendingConfirmation:
        async with self._locks.hold(user_id):
            return await self._engine.reject(user_id, request_id)

    async def _turn(self, user_id: str, text: str, emergency: bool) -> TurnReply:
        now = self._clock()
        await self._store.add_message(ChatMessage(user_id=user_id, role="user", content=text))

        context = await self._assembler.assemble(user_id, text, now, emergency=emergency)
        system = self._prompts.build(context, now, emergency=emergency)

        history = [
            Message(role=Role(m.role), content=m.content)
            for m in context.short_term.messages
        ]
        if not history or history[-1].content != text:
            history.append(Message(role=Role.USER, content=text))

        try:
            response = await self._llm.complete(
                history,
                model=self._model.model,
                system=system,
                max_tokens=self._model.max_tokens,
                temperature=self._model.temperature,
            )
        except ProviderError:
            logger.warning("completion_failed", exc_info=True)
            return TurnReply(APOLOGY, provider_failed=True)

        outcome = await self._engine.process_reply(user_id, response.text, text)
        reply = render(outcome)
        display = outcome.text or reply
        # Actions are saved by now; history upkeep failures only log
        try:
            if display:
                await self._store.add_message(
                    ChatMessage(user_id=user_id, role="assistant", content=display)
                )
            count = await self._store.count_messages(user_id)
            await self._summaries.refresh_if_needed(user_id, count, emergency=emergency)
        except StoreError:
            logger.warning("history_update_failed", exc_info=True)

        logger.info(
            "turn_completed",
            extra={
                "actions": len(outcome.results),
                "pending": len(outcome.pending),
                "crisis": outcome.crisis,
            },
        )
        return TurnReply(reply, outcome)
