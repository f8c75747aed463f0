"""Care record handlers: care logs, doctor visits and clinical dates."""

import logging

from pulseguard.capabilities.handlers.base import (
    Handler,
    HandlerContext,
    optional_str,
    parse_day,
    parse_timestamp,
    required_str,
)
from pulseguard.capabilities.handlers.health import AI_INFERRED
from pulseguard.capabilities.types import (
    ActionError,
    ActionRequest,
    ExecutionResult,
    Preview,
)
from pulseguard.extraction.dates import DEFAULT_REMINDER_TIME, day_of_week
from pulseguard.extraction.visits import parse_visit_outcome, validate_visit_outcome
from pulseguard.store.types import CareLog, ClinicalDate, HealthEntry, Reminder

logger = logging.getLogger(__name__)

FOLLOW_UP_TITLE = "Follow-up doctor appointment"


class CreateCareLogHandler(Handler):
    capability_id = "create_care_log"

    async def execute(self, ctx: HandlerContext, request: ActionRequest) -> ExecutionResult:
        params = request.parameters
        occurred_at = required_str(params, "occurred_at")
        # Stored as given; only checked for shape
        parse_timestamp(occurred_at, "occurred_at")

        log = await ctx.store.add_care_log(
            CareLog(
                user_id=ctx.user_id,
                log_type=required_str(params, "log_type"),
                title=required_str(params, "title"),
                occurred_at=occurred_at,
                diagnosis=optional_str(params, "diagnosis"),
                treatment=optional_str(params, "treatment"),
                notes=optional_str(params, "notes"),
            )
        )
        return ExecutionResult.ok(request, f"Created care log: {log.title}", care_log_id=log.id)


class LogDoctorVisitHandler(Handler):
    capability_id = "log_doctor_visit"

    async def execute(self, ctx: HandlerContext, request: ActionRequest) -> ExecutionResult:
        params = request.parameters
        visit_type = required_str(params, "visit_type")
        visit_date = parse_day(required_str(params, "date"), "date")

        entry = await ctx.store.add_health_entry(
            HealthEntry(
                user_id=ctx.user_id,
                entry_type="note",
                data={
                    "visit_type": visit_type,
                    "notes": optional_str(params, "notes") or f"Doctor visit on {visit_date.isoformat()}",
                    "visit_date": visit_date.isoformat(),
                },
                source=AI_INFERRED,
            )
        )
        return ExecutionResult.ok(
            request, f"Logged doctor visit: {visit_type.replace('_', ' ')}", entry_id=entry.id
        )


class LogDoctorVisitOutcomeHandler(Handler):
    """Writes a care log and, for a future follow-up, a one-time reminder.

    The two writes are independent; a failed reminder leaves the care log
    in place and is reported in the result.
    """

    capability_id = "log_doctor_visit_outcome"

    def check_confirmation(
        self, ctx: HandlerContext, request: ActionRequest
    ) -> list[str]:
        fields = request.prepared or {}
        problems = []
        for name in ("visit_date", "follow_up_date"):
            if fields.get(name):
                try:
                    parse_day(fields[name], name)
                except ActionError as e:
                    problems.append(str(e))
        return problems

    async def preview(self, ctx: HandlerContext, request: ActionRequest) -> Preview:
        params = request.parameters
        text = required_str(params, "text")
        reference = parse_day(params["visit_date"], "visit_date") if params.get("visit_date") else ctx.today

        extraction = parse_visit_outcome(text, reference)
        if errors := validate_visit_outcome(extraction):
            raise ActionError("; ".join(errors))
        return Preview(
            prompt=f"{extraction.summary()}. Should I save this to your care records?",
            prepared=extraction.to_parameters(),
        )

    async def execute(self, ctx: HandlerContext, request: ActionRequest) -> ExecutionResult:
        fields = request.prepared
        if fields is None:
            fields = (await self.preview(ctx, request)).prepared

        visit_date = parse_day(fields.get("visit_date") or ctx.today, "visit_date")
        visit_type = str(fields.get("visit_type") or "appointment")
        log = await ctx.store.add_care_log(
            CareLog(
                user_id=ctx.user_id,
                log_type="emergency_visit" if visit_type == "emergency" else "visit",
                title=f"Doctor visit - {visit_type.replace('_', ' ')}",
                occurred_at=visit_date.isoformat(),
                diagnosis=optional_str(fields, "diagnosis"),
                treatment=optional_str(fields, "treatment"),
                notes=optional_str(fields, "notes"),
            )
        )

        follow_up = parse_day(fields["follow_up_date"], "follow_up_date") if fields.get("follow_up_date") else None
        if follow_up is None or follow_up <= ctx.today:
            return ExecutionResult.ok(request, "Logged doctor visit", care_log_id=log.id)

        try:
            reminder = await ctx.store.add_reminder(
                Reminder(
                    user_id=ctx.user_id,
                    title=FOLLOW_UP_TITLE,
                    time=DEFAULT_REMINDER_TIME,
                    days=[day_of_week(follow_up)],
                    reminder_type="appointment",
                    description=f"Follow-up appointment scheduled for {follow_up.isoformat()}",
                    on_date=follow_up,
                )
            )
        except Exception:
            logger.exception("follow_up_reminder_failed", extra={"care_log_id": log.id})
            return ExecutionResult.ok(
                request,
                "Logged doctor visit, but the follow-up reminder could not be created",
                care_log_id=log.id,
                follow_up_date=follow_up.isoformat(),
            )

        return ExecutionResult.ok(
            request,
            f"Logged doctor visit and set a follow-up reminder for {follow_up.isoformat()}",
            care_log_id=log.id,
            reminder_id=reminder.id,
            follow_up_date=follow_up.isoformat(),
        )


class AddClinicalDateHandler(Handler):
    capability_id = "add_clinical_date"

    async def execute(self, ctx: HandlerContext, request: ActionRequest) -> ExecutionResult:
        params = request.parameters
        when = parse_day(required_str(params, "clinical_date"), "clinical_date")
        description = required_str(params, "description")
        enabled = params.get("reminder_enabled")

        record = await ctx.store.add_clinical_date(
            ClinicalDate(
                user_id=ctx.user_id,
                clinical_date=when,
                description=description,
                clinical_type=optional_str(params, "clinical_type") or "other",
                location=optional_str(params, "location"),
                provider_name=optional_str(params, "provider_name"),
                preparation_notes=optional_str(params, "preparation_notes"),
                notes=optional_str(params, "notes"),
                reminder_enabled=True if enabled is None else bool(enabled),
            )
        )
        return ExecutionResult.ok(
            request,
            f"Added clinical date: {description} on {when.isoformat()}",
            clinical_date_id=record.id,
        )
