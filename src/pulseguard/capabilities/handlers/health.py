"""Medication, check-in, mood and general health entry handlers."""

from collections.abc import Hashable
from typing import Any

from pulseguard.capabilities.handlers.base import (
    Handler,
    HandlerContext,
    optional_str,
    parse_timestamp,
    required_str,
)
from pulseguard.capabilities.types import ActionError, ActionRequest, ExecutionResult
from pulseguard.store.types import HealthEntry

AI_INFERRED = "ai_inferred"


class LogMedicationHandler(Handler):
    capability_id = "log_medication"

    async def execute(self, ctx: HandlerContext, request: ActionRequest) -> ExecutionResult:
        params = request.parameters
        name = required_str(params, "medication_name")
        taken_at = params.get("taken_at")
        logged_at = parse_timestamp(taken_at, "taken_at") if taken_at else ctx.now

        entry = await ctx.store.add_health_entry(
            HealthEntry(
                user_id=ctx.user_id,
                entry_type="medication",
                data={
                    "medication_name": name,
                    "dose": optional_str(params, "dose") or "Unknown",
                    "logged_at": logged_at.isoformat(),
                },
                source=AI_INFERRED,
            )
        )
        return ExecutionResult.ok(request, f"Logged {name}", entry_id=entry.id)


class _CheckInHandler(Handler):
    """Both check-in capabilities write the same daily row."""

    def lock_key(self, ctx: HandlerContext, request: ActionRequest) -> Hashable:
        return ("check_in", ctx.today)


class CreateCheckInHandler(_CheckInHandler):
    capability_id = "create_check_in"

    async def execute(self, ctx: HandlerContext, request: ActionRequest) -> ExecutionResult:
        params = request.parameters
        updates: dict[str, Any] = {}
        if mood := optional_str(params, "mood"):
            updates["mood"] = mood
        if symptoms := params.get("symptoms"):
            updates["symptoms"] = [str(s) for s in symptoms]
        if params.get("medication_taken") is not None:
            updates["medication_taken"] = bool(params["medication_taken"])
        if notes := optional_str(params, "notes"):
            updates["notes"] = notes
        if not updates:
            raise ActionError("Nothing to record for today's check-in")

        check_in, created = await ctx.store.upsert_check_in(ctx.user_id, ctx.today, updates)
        message = "Created check-in for today" if created else "Updated today's check-in"
        return ExecutionResult.ok(
            request, message, check_in_id=check_in.id, created=created
        )


class UpdateMoodHandler(_CheckInHandler):
    capability_id = "update_mood"

    async def execute(self, ctx: HandlerContext, request: ActionRequest) -> ExecutionResult:
        mood = required_str(request.parameters, "mood")
        check_in, created = await ctx.store.upsert_check_in(
            ctx.user_id, ctx.today, {"mood": mood}
        )
        return ExecutionResult.ok(
            request, f"Updated mood to {mood}", check_in_id=check_in.id, created=created
        )


class SaveHealthEntryHandler(Handler):
    capability_id = "save_health_entry"

    async def execute(self, ctx: HandlerContext, request: ActionRequest) -> ExecutionResult:
        params = request.parameters
        entry_type = required_str(params, "entry_type")
        data = params.get("data")
        if not isinstance(data, dict) or not data:
            raise ActionError("data must be a non-empty object")

        entry = await ctx.store.add_health_entry(
            HealthEntry(
                user_id=ctx.user_id,
                entry_type=entry_type,
                data=dict(data),
                source=AI_INFERRED,
            )
        )
        return ExecutionResult.ok(request, "Saved health entry", entry_id=entry.id)
