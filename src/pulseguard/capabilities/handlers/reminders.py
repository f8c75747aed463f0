"""Reminder handlers.

``create_reminder`` takes structured fields from the model. The other two
parse the user's own words during preview and save exactly the fields that
were shown for confirmation.
"""

import re
from datetime import date
from typing import Any

from pulseguard.capabilities.handlers.base import (
    Handler,
    HandlerContext,
    coerce_int,
    optional_str,
    parse_day,
)
from pulseguard.capabilities.types import (
    ActionError,
    ActionRequest,
    ExecutionResult,
    Preview,
)
from pulseguard.extraction.dates import ALL_DAYS
from pulseguard.extraction.recommendations import (
    parse_recommendation,
    validate_recommendation,
)
from pulseguard.extraction.reminders import (
    ReminderExtraction,
    parse_reminder,
    validate_reminder,
)
from pulseguard.store.types import Reminder

_SHORT_TIME = re.compile(r"^(\d):(\d{2})$")

UNPARSEABLE_REMINDER = (
    "Could not work out when to remind you. Try something like "
    "'in 2 weeks', 'tomorrow at 3pm' or 'every weekday at 8am'."
)
UNPARSEABLE_RECOMMENDATION = (
    "Could not find a timing in that recommendation. Try something like "
    "'check blood pressure daily' or 'come back in 3 months'."
)


def _normalize_time(value: str) -> str:
    if match := _SHORT_TIME.match(value):
        return f"0{match.group(1)}:{match.group(2)}"
    return value


def _days(value: Any) -> list[int]:
    if value is None:
        return list(ALL_DAYS)
    if not isinstance(value, list | tuple):
        raise ActionError("days must be a list of day numbers")
    try:
        return [int(d) for d in value]
    except (TypeError, ValueError) as e:
        raise ActionError("days must be a list of day numbers") from e


def extraction_from_fields(
    fields: dict[str, Any], *, default_type: str = "other"
) -> ReminderExtraction:
    """Rebuild a reminder proposal from stored or model-supplied fields."""
    on_date: date | None = None
    if fields.get("date"):
        on_date = parse_day(fields["date"], "date")
    interval = fields.get("interval_days")
    return ReminderExtraction(
        title=str(fields.get("title") or "").strip(),
        reminder_type=str(fields.get("reminder_type") or default_type),
        time=_normalize_time(str(fields.get("time") or "").strip()),
        days=_days(fields.get("days")),
        is_recurring=bool(fields.get("is_recurring", on_date is None)),
        confidence=1.0,
        on_date=on_date,
        interval_days=coerce_int(interval, "interval_days") if interval else None,
        description=optional_str(fields, "description"),
    )


def prepared_fields(extraction: ReminderExtraction) -> dict[str, Any]:
    return {**extraction.to_parameters(), "is_recurring": extraction.is_recurring}


def reminder_problems(
    ctx: HandlerContext, fields: dict[str, Any] | None, *, default_type: str = "other"
) -> list[str]:
    if fields is None:
        return []
    try:
        extraction = extraction_from_fields(fields, default_type=default_type)
    except ActionError as e:
        return [str(e)]
    return validate_reminder(extraction, ctx.today)


async def save_reminder(
    ctx: HandlerContext, extraction: ReminderExtraction
) -> Reminder:
    """Validate and persist.

    Raises:
        ActionError: The reminder is incomplete or in the past.
    """
    if errors := validate_reminder(extraction, ctx.today):
        raise ActionError("; ".join(errors))
    return await ctx.store.add_reminder(
        Reminder(
            user_id=ctx.user_id,
            title=extraction.title,
            time=extraction.time,
            days=list(extraction.days),
            reminder_type=extraction.reminder_type,
            description=extraction.description,
            on_date=extraction.on_date,
            interval_days=extraction.interval_days,
        )
    )


class CreateReminderHandler(Handler):
    capability_id = "create_reminder"

    def check_confirmation(
        self, ctx: HandlerContext, request: ActionRequest
    ) -> list[str]:
        fields = {**request.parameters, "is_recurring": True}
        return reminder_problems(ctx, fields, default_type="medication")

    async def execute(self, ctx: HandlerContext, request: ActionRequest) -> ExecutionResult:
        fields = {**request.parameters, "is_recurring": True}
        extraction = extraction_from_fields(fields, default_type="medication")
        reminder = await save_reminder(ctx, extraction)
        return ExecutionResult.ok(
            request,
            f"Created reminder: {reminder.title}",
            reminder_id=reminder.id,
            time=reminder.time,
            days=reminder.days,
        )


class ScheduleReminderHandler(Handler):
    capability_id = "schedule_reminder"

    def check_confirmation(
        self, ctx: HandlerContext, request: ActionRequest
    ) -> list[str]:
        return reminder_problems(ctx, request.prepared)

    async def preview(self, ctx: HandlerContext, request: ActionRequest) -> Preview:
        text = str(request.parameters.get("text") or "")
        extraction = parse_reminder(text, ctx.now)
        if extraction is None:
            raise ActionError(UNPARSEABLE_REMINDER)
        if errors := validate_reminder(extraction, ctx.today):
            raise ActionError("; ".join(errors))
        return Preview(
            prompt=f"{extraction.summary()}. Should I set this up?",
            prepared=prepared_fields(extraction),
        )

    async def execute(self, ctx: HandlerContext, request: ActionRequest) -> ExecutionResult:
        fields = request.prepared
        if fields is None:
            fields = (await self.preview(ctx, request)).prepared
        extraction = extraction_from_fields(fields)
        reminder = await save_reminder(ctx, extraction)
        return ExecutionResult.ok(
            request,
            f"Scheduled: {extraction.summary()}",
            reminder_id=reminder.id,
            date=reminder.on_date.isoformat() if reminder.on_date else None,
            time=reminder.time,
            days=reminder.days,
        )


class ParseDoctorRecommendationHandler(Handler):
    capability_id = "parse_doctor_recommendation"

    def check_confirmation(
        self, ctx: HandlerContext, request: ActionRequest
    ) -> list[str]:
        return reminder_problems(ctx, request.prepared)

    async def preview(self, ctx: HandlerContext, request: ActionRequest) -> Preview:
        text = str(request.parameters.get("text") or "")
        extraction = parse_recommendation(text, ctx.now)
        if extraction is None or extraction.reminder is None:
            raise ActionError(UNPARSEABLE_RECOMMENDATION)
        if errors := validate_recommendation(extraction, ctx.today):
            raise ActionError("; ".join(errors))

        prepared = prepared_fields(extraction.reminder)
        prepared["description"] = f'Doctor recommendation: "{text.strip()}"'
        if extraction.action:
            prepared["action"] = extraction.action
        return Preview(
            prompt=f"{extraction.summary()}. Would you like me to set up this reminder?",
            prepared=prepared,
        )

    async def execute(self, ctx: HandlerContext, request: ActionRequest) -> ExecutionResult:
        fields = request.prepared
        if fields is None:
            fields = (await self.preview(ctx, request)).prepared
        reminder = await save_reminder(ctx, extraction_from_fields(fields))
        return ExecutionResult.ok(
            request,
            f"Created reminder from your doctor's recommendation: {reminder.title}",
            reminder_id=reminder.id,
            action=fields.get("action"),
        )
