"""Read-only view of today's records."""

from pulseguard.capabilities.handlers.base import Handler, HandlerContext
from pulseguard.capabilities.types import ActionRequest, ExecutionResult


class GetTodaySummaryHandler(Handler):
    capability_id = "get_today_summary"

    async def execute(self, ctx: HandlerContext, request: ActionRequest) -> ExecutionResult:
        store = ctx.store
        check_in = await store.get_check_in(ctx.user_id, ctx.today)
        medications = await store.list_health_entries(
            ctx.user_id, entry_type="medication", since=ctx.start_of_day
        )
        readings = await store.list_blood_pressure(ctx.user_id, since=ctx.start_of_day)
        hydration = await store.list_hydration(ctx.user_id, ctx.today)

        water = sum(e.amount_ml for e in hydration)
        goal = ctx.config.hydration.daily_goal_ml
        names = [str(e.data.get("medication_name", "unknown")) for e in medications]

        lines = [f"Today ({ctx.today.isoformat()}):"]
        if check_in is not None and check_in.mood:
            lines.append(f"- Mood: {check_in.mood}")
        else:
            lines.append("- No check-in yet")
        lines.append(f"- Medications logged: {', '.join(names) if names else 'none'}")
        if readings:
            latest = readings[0]
            lines.append(
                f"- Blood pressure: {len(readings)} reading(s), latest "
                f"{latest.systolic}/{latest.diastolic}"
            )
        lines.append(f"- Water: {water}ml of {goal}ml")

        return ExecutionResult.ok(
            request,
            "\n".join(lines),
            date=ctx.today.isoformat(),
            mood=check_in.mood if check_in else None,
            checked_in=check_in is not None,
            medications=names,
            blood_pressure=[
                {"systolic": r.systolic, "diastolic": r.diastolic, "category": r.category}
                for r in readings
            ],
            water_ml=water,
            water_goal_ml=goal,
        )
