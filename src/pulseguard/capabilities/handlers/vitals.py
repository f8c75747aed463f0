"""Blood pressure and hydration handlers."""

from collections.abc import Hashable

from pulseguard.capabilities.catalog import POSITIONS
from pulseguard.capabilities.handlers.base import (
    Handler,
    HandlerContext,
    coerce_int,
    optional_str,
)
from pulseguard.capabilities.types import ActionError, ActionRequest, ExecutionResult
from pulseguard.extraction.vitals import classify_blood_pressure
from pulseguard.store.types import BloodPressureReading, HydrationEntry

SYSTOLIC_LIMITS = (1, 300)
DIASTOLIC_LIMITS = (1, 200)
PULSE_LIMITS = (40, 200)
HYDRATION_LIMITS = (1, 10000)


class LogBloodPressureHandler(Handler):
    """Re-checks ranges even though the extractor already did.

    Values may come straight from the model rather than the extractor.
    """

    capability_id = "log_blood_pressure"

    async def execute(self, ctx: HandlerContext, request: ActionRequest) -> ExecutionResult:
        params = request.parameters
        if params.get("systolic") is None:
            raise ActionError("Systolic value is required")
        if params.get("diastolic") is None:
            raise ActionError("Diastolic value is required")

        systolic = coerce_int(params["systolic"], "systolic")
        diastolic = coerce_int(params["diastolic"], "diastolic")
        pulse = coerce_int(params["pulse"], "pulse") if params.get("pulse") is not None else None
        position = optional_str(params, "position")

        if not SYSTOLIC_LIMITS[0] <= systolic <= SYSTOLIC_LIMITS[1]:
            raise ActionError("Systolic must be between 1 and 300")
        if not DIASTOLIC_LIMITS[0] <= diastolic <= DIASTOLIC_LIMITS[1]:
            raise ActionError("Diastolic must be between 1 and 200")
        if diastolic >= systolic:
            raise ActionError("Diastolic must be less than systolic")
        if pulse is not None and not PULSE_LIMITS[0] <= pulse <= PULSE_LIMITS[1]:
            raise ActionError("Pulse must be between 40 and 200 if provided")
        if position is not None and position not in POSITIONS:
            raise ActionError(f"Position must be one of: {', '.join(POSITIONS)}")

        classification = classify_blood_pressure(systolic, diastolic)
        reading = await ctx.store.add_blood_pressure(
            BloodPressureReading(
                user_id=ctx.user_id,
                systolic=systolic,
                diastolic=diastolic,
                category=classification.category.value,
                is_abnormal=classification.is_abnormal,
                abnormal_reason=classification.abnormal_reason,
                pulse=pulse,
                position=position,
                notes=optional_str(params, "notes"),
            )
        )

        message = f"Logged blood pressure: {systolic}/{diastolic}"
        if classification.is_abnormal:
            message += " (unusual value detected)"
        return ExecutionResult.ok(
            request,
            message,
            reading_id=reading.id,
            category=classification.category.value,
            label=classification.label,
            is_abnormal=classification.is_abnormal,
            abnormal_reason=classification.abnormal_reason,
        )


class LogHydrationHandler(Handler):
    """Daily totals are always recomputed from stored entries."""

    capability_id = "log_hydration"

    def lock_key(self, ctx: HandlerContext, request: ActionRequest) -> Hashable:
        return ("hydration", ctx.today)

    async def execute(self, ctx: HandlerContext, request: ActionRequest) -> ExecutionResult:
        params = request.parameters
        if params.get("amount") is None:
            raise ActionError("Amount is required")
        amount = coerce_int(params["amount"], "amount")
        if not HYDRATION_LIMITS[0] <= amount <= HYDRATION_LIMITS[1]:
            raise ActionError("Amount must be between 1 and 10000ml")

        existing = await ctx.store.list_hydration(ctx.user_id, ctx.today)
        total = sum(e.amount_ml for e in existing) + amount

        entry = await ctx.store.add_hydration(
            HydrationEntry(
                user_id=ctx.user_id,
                day=ctx.today,
                amount_ml=amount,
                daily_total_ml=total,
                notes=optional_str(params, "notes"),
            )
        )

        goal = ctx.config.hydration.daily_goal_ml
        return ExecutionResult.ok(
            request,
            f"Logged {amount}ml of water ({total}ml of {goal}ml today)",
            entry_id=entry.id,
            amount=amount,
            total=total,
            goal=goal,
            progress=round(total / goal * 100, 1),
            goal_reached=total >= goal,
        )
