"""Actions held for explicit user approval.

Lifecycle per request id::

    proposed -> confirmed -> executed
    proposed -> rejected

Entries live in the data store, so a restart between proposal and answer
does not lose them. Confirmed and rejected entries are deleted.
"""

import logging
from typing import Any

from pulseguard.capabilities.types import (
    ActionRequest,
    CapabilityDefinition,
    UnknownConfirmationError,
)
from pulseguard.store.protocols import ConfirmationStore
from pulseguard.store.types import PendingConfirmation

logger = logging.getLogger(__name__)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, list | tuple):
        return ", ".join(str(v) for v in value)
    if isinstance(value, dict):
        return ", ".join(f"{k}={v}" for k, v in value.items())
    return str(value)


def build_confirmation_prompt(
    definition: CapabilityDefinition, parameters: dict[str, Any]
) -> str:
    summary = ", ".join(f"{k}: {_format_value(v)}" for k, v in parameters.items())
    return f"I'd like to {definition.name.lower()}: {summary}. Is this correct?"


def apply_amendments(
    pending: PendingConfirmation, amendments: dict[str, Any] | None
) -> tuple[dict[str, Any], dict[str, Any] | None]:
    """Merge user corrections into the snapshot that will execute.

    Amendments edit the prepared fields when the handler derived any from
    free text, and the raw parameters otherwise.
    """
    parameters = dict(pending.parameters)
    prepared = dict(pending.prepared) if pending.prepared is not None else None
    if amendments:
        if prepared is not None:
            prepared.update(amendments)
        else:
            parameters.update(amendments)
    return parameters, prepared


class ConfirmationManager:
    def __init__(self, store: ConfirmationStore) -> None:
        self._store = store

    async def propose(
        self,
        user_id: str,
        request: ActionRequest,
        definition: CapabilityDefinition,
        prompt: str | None = None,
        prepared: dict[str, Any] | None = None,
    ) -> PendingConfirmation:
        """Hold a request. Proposing the same request id again replaces it."""
        pending = PendingConfirmation(
            user_id=user_id,
            request_id=request.id,
            capability_id=request.capability_id,
            parameters=dict(request.parameters),
            prompt=prompt or build_confirmation_prompt(definition, request.parameters),
            sensitivity=definition.sensitivity.value,
            confidence=request.confidence,
            reasoning=request.reasoning,
            prepared=prepared,
        )
        await self._store.save_pending_confirmation(pending)
        logger.info(
            "confirmation_proposed",
            extra={"request_id": request.id, "capability": request.capability_id},
        )
        return pending

    async def get(self, user_id: str, request_id: str) -> PendingConfirmation:
        pending = await self._store.get_pending_confirmation(user_id, request_id)
        if pending is None:
            raise UnknownConfirmationError(request_id)
        return pending

    async def confirm(
        self,
        user_id: str,
        request_id: str,
        amendments: dict[str, Any] | None = None,
    ) -> ActionRequest:
        """Resolve a pending entry into a request ready to execute.

        The entry is removed before the request is returned, so a second
        confirm on the same id fails.

        Raises:
            UnknownConfirmationError: Nothing is pending under this id.
        """
        pending = await self.get(user_id, request_id)
        if not await self._store.delete_pending_confirmation(user_id, request_id):
            raise UnknownConfirmationError(request_id)

        parameters, prepared = apply_amendments(pending, amendments)
        logger.info(
            "confirmation_accepted",
            extra={
                "request_id": request_id,
                "capability": pending.capability_id,
                "amended": bool(amendments),
            },
        )
        return ActionRequest(
            id=pending.request_id,
            capability_id=pending.capability_id,
            parameters=parameters,
            confidence=1.0,
            reasoning=pending.reasoning,
            prepared=prepared,
            confirmed=True,
        )

    async def reject(self, user_id: str, request_id: str) -> PendingConfirmation:
        pending = await self.get(user_id, request_id)
        if not await self._store.delete_pending_confirmation(user_id, request_id):
            raise UnknownConfirmationError(request_id)
        logger.info(
            "confirmation_rejected",
            extra={"request_id": request_id, "capability": pending.capability_id},
        )
        return pending

    async def pending(self, user_id: str) -> list[PendingConfirmation]:
        return await self._store.list_pending_confirmations(user_id)
