"""Tests for handler binding, dispatch and the built-in handlers."""

import asyncio
from datetime import date

import pytest

from pulseguard.capabilities.dispatch import Dispatcher, bind_handlers
from pulseguard.capabilities.handlers import (
    Handler,
    LogMedicationHandler,
    default_handlers,
)
from pulseguard.capabilities.handlers.reminders import UNPARSEABLE_REMINDER
from pulseguard.capabilities.registry import build_default_registry
from pulseguard.capabilities.types import (
    ActionError,
    ActionRequest,
    ExecutionResult,
    HandlerBindingError,
)
from pulseguard.store.memory import InMemoryHealthStore

TODAY = date(2024, 6, 12)


class BrokenReminderStore(InMemoryHealthStore):
    async def add_reminder(self, reminder):
        raise RuntimeError("reminders table is locked")


class BrokenEntryStore(InMemoryHealthStore):
    async def add_health_entry(self, entry):
        raise RuntimeError("disk full")


class RocketHandler(Handler):
    capability_id = "launch_rocket"

    async def execute(self, ctx, request) -> ExecutionResult:
        return ExecutionResult.ok(request, "Launched")


def _request(capability_id: str, request_id: str = "call-1", **parameters) -> ActionRequest:
    return ActionRequest(id=request_id, capability_id=capability_id, parameters=parameters)


@pytest.fixture
def dispatcher(store, config, clock) -> Dispatcher:
    return Dispatcher(build_default_registry(), default_handlers(), store, config, clock)


# =============================================================================
# Binding and dispatch
# =============================================================================


class TestBindHandlers:
    def test_default_handlers_cover_registry(self):
        registry = build_default_registry()
        bound = bind_handlers(registry, default_handlers())
        assert set(bound) == set(registry.ids)

    def test_missing_handler(self):
        with pytest.raises(HandlerBindingError, match="no handler for log_medication"):
            bind_handlers(build_default_registry(), default_handlers()[1:])

    def test_duplicate_handler(self):
        handlers = [*default_handlers(), LogMedicationHandler()]
        with pytest.raises(HandlerBindingError, match="duplicate handler for log_medication"):
            bind_handlers(build_default_registry(), handlers)

    def test_handler_for_unregistered_capability(self):
        handlers = [*default_handlers(), RocketHandler()]
        with pytest.raises(HandlerBindingError) as exc_info:
            bind_handlers(build_default_registry(), handlers)
        assert str(exc_info.value) == "handler for unknown capability launch_rocket"


class TestDispatcher:
    async def test_unknown_capability(self, dispatcher):
        result = await dispatcher.dispatch("u1", _request("launch_rocket"))
        assert not result.success
        assert result.message == "Unknown capability: launch_rocket"

    async def test_action_error_becomes_failed_result(self, dispatcher):
        result = await dispatcher.dispatch("u1", _request("log_hydration", amount=0))
        assert result.status == "failed"
        assert result.message == "Amount must be between 1 and 10000ml"
        assert result.error == result.message

    async def test_unexpected_error_is_contained(self, config, clock):
        dispatcher = Dispatcher(
            build_default_registry(), default_handlers(), BrokenEntryStore(), config, clock
        )
        result = await dispatcher.dispatch(
            "u1", _request("log_medication", medication_name="Aspirin")
        )
        assert not result.success
        assert result.message == "Something went wrong while saving that"
        assert result.error == "disk full"

    async def test_context_uses_clock(self, dispatcher):
        ctx = dispatcher.context("u1")
        assert ctx.today == TODAY
        assert ctx.start_of_day.isoformat() == "2024-06-12T00:00:00+00:00"

    async def test_same_day_check_in_writes_serialize(self, dispatcher, store):
        results = await asyncio.gather(
            dispatcher.dispatch("u1", _request("create_check_in", "a", mood="good")),
            dispatcher.dispatch("u1", _request("update_mood", "b", mood="okay")),
        )
        assert all(r.success for r in results)
        assert {r.data["created"] for r in results} == {True, False}
        assert len(await store.list_check_ins("u1")) == 1

    async def test_locks_are_dropped_after_use(self, dispatcher):
        await asyncio.gather(
            dispatcher.dispatch("u1", _request("log_hydration", "a", amount=250)),
            dispatcher.dispatch("u2", _request("log_hydration", "b", amount=250)),
            dispatcher.dispatch("u1", _request("update_mood", "c", mood="good")),
        )
        assert len(dispatcher._locks) == 0

    def test_check_confirmation(self, dispatcher):
        good = _request("create_reminder", title="Pills", time="08:00")
        assert dispatcher.check_confirmation("u1", good) == []

        bad = _request("create_reminder", title="Pills", time="08:00", days=[9])
        assert dispatcher.check_confirmation("u1", bad) == [
            "Reminder days must be between 0 (Sunday) and 6 (Saturday)"
        ]

        medication = _request("log_medication", medication_name="Aspirin")
        assert dispatcher.check_confirmation("u1", medication) == []

    def test_check_confirmation_reads_prepared_fields(self, dispatcher):
        visit = _request("log_doctor_visit_outcome", text="Saw the doctor")
        visit.prepared = {"visit_date": "2024-06-12", "follow_up_date": "soon"}
        assert dispatcher.check_confirmation("u1", visit) == [
            "follow_up_date must be a date in YYYY-MM-DD format"
        ]

        reminder = _request("schedule_reminder", text="remind me tomorrow")
        reminder.prepared = {"title": "Call", "time": "9:30", "date": "2024-06-13"}
        assert dispatcher.check_confirmation("u1", reminder) == []


# =============================================================================
# Health logging
# =============================================================================


class TestHealthHandlers:
    async def test_log_medication(self, dispatcher, store):
        result = await dispatcher.dispatch(
            "u1", _request("log_medication", medication_name="Aspirin", dose="81mg")
        )
        assert result.success
        assert result.message == "Logged Aspirin"

        entries = await store.list_health_entries("u1", entry_type="medication")
        assert len(entries) == 1
        assert entries[0].id == result.data["entry_id"]
        assert entries[0].source == "ai_inferred"
        assert entries[0].data == {
            "medication_name": "Aspirin",
            "dose": "81mg",
            "logged_at": "2024-06-12T10:30:00+00:00",
        }

    async def test_log_medication_defaults_dose(self, dispatcher, store):
        await dispatcher.dispatch("u1", _request("log_medication", medication_name="Ibuprofen"))
        entries = await store.list_health_entries("u1")
        assert entries[0].data["dose"] == "Unknown"

    async def test_log_medication_explicit_time(self, dispatcher, store):
        await dispatcher.dispatch(
            "u1",
            _request("log_medication", medication_name="Aspirin", taken_at="2024-06-12T07:00:00Z"),
        )
        entries = await store.list_health_entries("u1")
        assert entries[0].data["logged_at"] == "2024-06-12T07:00:00+00:00"

    async def test_check_in_then_mood_update(self, dispatcher, store):
        created = await dispatcher.dispatch(
            "u1",
            _request(
                "create_check_in",
                mood="good",
                symptoms=["headache"],
                medication_taken=True,
            ),
        )
        assert created.message == "Created check-in for today"
        assert created.data["created"] is True

        updated = await dispatcher.dispatch("u1", _request("update_mood", "call-2", mood="poor"))
        assert updated.message == "Updated mood to poor"
        assert updated.data["created"] is False

        check_in = await store.get_check_in("u1", TODAY)
        assert check_in.mood == "poor"
        assert check_in.symptoms == ["headache"]
        assert check_in.medication_taken is True

    async def test_second_check_in_updates(self, dispatcher):
        await dispatcher.dispatch("u1", _request("create_check_in", notes="slept well"))
        result = await dispatcher.dispatch("u1", _request("create_check_in", "call-2", mood="great"))
        assert result.message == "Updated today's check-in"

    async def test_empty_check_in(self, dispatcher, store):
        result = await dispatcher.dispatch("u1", _request("create_check_in"))
        assert not result.success
        assert result.message == "Nothing to record for today's check-in"
        assert await store.get_check_in("u1", TODAY) is None

    async def test_save_health_entry(self, dispatcher, store):
        result = await dispatcher.dispatch(
            "u1",
            _request("save_health_entry", entry_type="symptom", data={"symptom": "dizziness"}),
        )
        assert result.message == "Saved health entry"
        entries = await store.list_health_entries("u1", entry_type="symptom")
        assert entries[0].data == {"symptom": "dizziness"}

    async def test_save_health_entry_needs_data(self, dispatcher):
        result = await dispatcher.dispatch(
            "u1", _request("save_health_entry", entry_type="note", data={})
        )
        assert result.message == "data must be a non-empty object"


# =============================================================================
# Vitals
# =============================================================================


class TestBloodPressureHandler:
    async def test_normal_reading(self, dispatcher, store):
        result = await dispatcher.dispatch(
            "u1", _request("log_blood_pressure", systolic=115, diastolic=75, pulse=70)
        )
        assert result.message == "Logged blood pressure: 115/75"
        assert result.data["category"] == "normal"
        assert result.data["is_abnormal"] is False

        readings = await store.list_blood_pressure("u1")
        assert readings[0].pulse == 70

    async def test_abnormal_reading(self, dispatcher):
        result = await dispatcher.dispatch(
            "u1", _request("log_blood_pressure", systolic=185, diastolic=125)
        )
        assert result.message == "Logged blood pressure: 185/125 (unusual value detected)"
        assert result.data["category"] == "crisis"
        assert result.data["abnormal_reason"] == "both_high"

    @pytest.mark.parametrize(
        ("params", "message"),
        [
            ({"systolic": 400, "diastolic": 80}, "Systolic must be between 1 and 300"),
            ({"systolic": 80, "diastolic": 120}, "Diastolic must be less than systolic"),
            (
                {"systolic": 120, "diastolic": 80, "pulse": 20},
                "Pulse must be between 40 and 200 if provided",
            ),
            ({"diastolic": 80}, "Systolic value is required"),
        ],
    )
    async def test_rejects_implausible_values(self, dispatcher, store, params, message):
        result = await dispatcher.dispatch("u1", _request("log_blood_pressure", **params))
        assert not result.success
        assert result.message == message
        assert await store.list_blood_pressure("u1") == []


class TestHydrationHandler:
    async def test_running_total(self, dispatcher, store):
        first = await dispatcher.dispatch("u1", _request("log_hydration", amount=250))
        second = await dispatcher.dispatch("u1", _request("log_hydration", "call-2", amount=250))

        assert first.data["total"] == 250
        assert second.message == "Logged 250ml of water (500ml of 2000ml today)"
        assert second.data["progress"] == 25.0
        assert second.data["goal_reached"] is False

        entries = await store.list_hydration("u1", TODAY)
        assert [e.daily_total_ml for e in entries] == [250, 500]

    async def test_goal_reached(self, dispatcher):
        result = await dispatcher.dispatch("u1", _request("log_hydration", amount=2000))
        assert result.data["goal_reached"] is True
        assert result.data["progress"] == 100.0

    async def test_numeric_string_amount(self, dispatcher):
        result = await dispatcher.dispatch("u1", _request("log_hydration", amount="300"))
        assert result.data["amount"] == 300

    async def test_out_of_range(self, dispatcher):
        result = await dispatcher.dispatch("u1", _request("log_hydration", amount=20000))
        assert result.message == "Amount must be between 1 and 10000ml"


# =============================================================================
# Reminders
# =============================================================================


class TestReminderHandlers:
    async def test_create_reminder_defaults(self, dispatcher, store):
        result = await dispatcher.dispatch(
            "u1", _request("create_reminder", title="Take vitamins", time="9:00")
        )
        assert result.message == "Created reminder: Take vitamins"
        assert result.data["time"] == "09:00"
        assert result.data["days"] == [0, 1, 2, 3, 4, 5, 6]

        reminders = await store.list_reminders("u1")
        assert reminders[0].reminder_type == "medication"

    async def test_create_reminder_invalid(self, dispatcher, store):
        result = await dispatcher.dispatch(
            "u1", _request("create_reminder", title="Pills", time="25:00", days=[9])
        )
        assert not result.success
        assert result.message == (
            "Invalid reminder time: 25:00; "
            "Reminder days must be between 0 (Sunday) and 6 (Saturday)"
        )
        assert await store.list_reminders("u1") == []

    async def test_schedule_reminder_preview_then_execute(self, dispatcher, store):
        request = _request(
            "schedule_reminder", text="remind me to call the clinic tomorrow at 3pm"
        )
        preview = await dispatcher.preview("u1", request)
        assert preview.prompt == (
            "Reminder 'Call the clinic': Thursday, June 13 at 15:00. Should I set this up?"
        )
        assert preview.prepared["date"] == "2024-06-13"

        request.prepared = preview.prepared
        result = await dispatcher.dispatch("u1", request)
        assert result.message == "Scheduled: Reminder 'Call the clinic': Thursday, June 13 at 15:00"
        assert result.data["date"] == "2024-06-13"

        reminders = await store.list_reminders("u1")
        assert reminders[0].on_date == date(2024, 6, 13)
        assert reminders[0].reminder_type == "appointment"

    async def test_schedule_reminder_unparseable(self, dispatcher):
        request = _request("schedule_reminder", text="hello there")
        with pytest.raises(ActionError) as exc_info:
            await dispatcher.preview("u1", request)
        assert str(exc_info.value) == UNPARSEABLE_REMINDER

        result = await dispatcher.dispatch("u1", request)
        assert result.message == UNPARSEABLE_REMINDER

    async def test_doctor_recommendation(self, dispatcher, store):
        request = _request(
            "parse_doctor_recommendation", text="Check your blood pressure daily"
        )
        preview = await dispatcher.preview("u1", request)
        assert preview.prompt.endswith("Would you like me to set up this reminder?")
        assert preview.prepared["description"] == (
            'Doctor recommendation: "Check your blood pressure daily"'
        )
        assert preview.prepared["action"] == "Check your blood pressure"

        request.prepared = preview.prepared
        result = await dispatcher.dispatch("u1", request)
        assert result.message == (
            "Created reminder from your doctor's recommendation: Check your blood pressure"
        )
        reminders = await store.list_reminders("u1")
        assert reminders[0].days == [0, 1, 2, 3, 4, 5, 6]
        assert reminders[0].description.startswith("Doctor recommendation")


# =============================================================================
# Care records
# =============================================================================


class TestCareHandlers:
    async def test_care_log(self, dispatcher, store):
        result = await dispatcher.dispatch(
            "u1",
            _request(
                "create_care_log",
                log_type="test",
                title="Blood panel",
                occurred_at="2024-06-10T09:00:00Z",
            ),
        )
        assert result.message == "Created care log: Blood panel"
        logs = await store.list_care_logs("u1")
        assert logs[0].occurred_at == "2024-06-10T09:00:00Z"

    async def test_care_log_bad_timestamp(self, dispatcher, store):
        result = await dispatcher.dispatch(
            "u1",
            _request("create_care_log", log_type="test", title="Bloods", occurred_at="yesterday"),
        )
        assert result.message == "occurred_at must be an ISO 8601 timestamp"
        assert await store.list_care_logs("u1") == []

    async def test_doctor_visit(self, dispatcher, store):
        result = await dispatcher.dispatch(
            "u1", _request("log_doctor_visit", visit_type="follow_up", date="2024-06-10")
        )
        assert result.message == "Logged doctor visit: follow up"
        entries = await store.list_health_entries("u1", entry_type="note")
        assert entries[0].data["visit_date"] == "2024-06-10"
        assert entries[0].data["notes"] == "Doctor visit on 2024-06-10"

    async def test_visit_outcome_with_follow_up(self, dispatcher, store):
        request = _request(
            "log_doctor_visit_outcome",
            text="Saw the doctor today, diagnosed with mild asthma. Come back in 3 weeks.",
        )
        preview = await dispatcher.preview("u1", request)
        assert preview.prompt == (
            "Doctor visit (appointment) on 2024-06-12; diagnosis: mild asthma; "
            "follow-up on 2024-07-03. Should I save this to your care records?"
        )

        request.prepared = preview.prepared
        result = await dispatcher.dispatch("u1", request)
        assert result.message == (
            "Logged doctor visit and set a follow-up reminder for 2024-07-03"
        )

        logs = await store.list_care_logs("u1")
        assert logs[0].title == "Doctor visit - appointment"
        assert logs[0].log_type == "visit"
        assert logs[0].diagnosis == "mild asthma"
        assert logs[0].occurred_at == "2024-06-12"

        reminders = await store.list_reminders("u1")
        assert reminders[0].title == "Follow-up doctor appointment"
        assert reminders[0].on_date == date(2024, 7, 3)
        assert reminders[0].days == [3]
        assert reminders[0].time == "09:00"

    async def test_visit_outcome_without_follow_up(self, dispatcher, store):
        result = await dispatcher.dispatch(
            "u1",
            _request(
                "log_doctor_visit_outcome",
                text="Went to the emergency room, diagnosis was normal",
            ),
        )
        assert result.message == "Logged doctor visit"
        logs = await store.list_care_logs("u1")
        assert logs[0].log_type == "emergency_visit"
        assert await store.list_reminders("u1") == []

    async def test_reminder_failure_keeps_care_log(self, config, clock):
        store = BrokenReminderStore()
        dispatcher = Dispatcher(
            build_default_registry(), default_handlers(), store, config, clock
        )
        result = await dispatcher.dispatch(
            "u1",
            _request(
                "log_doctor_visit_outcome",
                text="Saw the doctor today, come back in 2 weeks",
            ),
        )
        assert result.success
        assert result.message == (
            "Logged doctor visit, but the follow-up reminder could not be created"
        )
        assert result.data["follow_up_date"] == "2024-06-26"
        assert len(await store.list_care_logs("u1")) == 1

    async def test_clinical_date(self, dispatcher, store):
        result = await dispatcher.dispatch(
            "u1",
            _request("add_clinical_date", clinical_date="2024-07-01", description="Blood test"),
        )
        assert result.message == "Added clinical date: Blood test on 2024-07-01"
        records = await store.list_clinical_dates("u1")
        assert records[0].reminder_enabled is True
        assert records[0].clinical_type == "other"


# =============================================================================
# Today's summary
# =============================================================================


class TestTodaySummary:
    async def test_empty_day(self, dispatcher):
        result = await dispatcher.dispatch("u1", _request("get_today_summary"))
        assert result.message.startswith("Today (2024-06-12):")
        assert "- No check-in yet" in result.message
        assert "- Medications logged: none" in result.message
        assert "- Water: 0ml of 2000ml" in result.message
        assert result.data["checked_in"] is False

    async def test_reports_logged_records(self, dispatcher):
        await dispatcher.dispatch("u1", _request("update_mood", "a", mood="good"))
        await dispatcher.dispatch("u1", _request("log_medication", "b", medication_name="Aspirin"))
        await dispatcher.dispatch("u1", _request("log_hydration", "c", amount=500))
        await dispatcher.dispatch(
            "u1", _request("log_blood_pressure", "d", systolic=118, diastolic=76)
        )

        result = await dispatcher.dispatch("u1", _request("get_today_summary", "e"))
        assert "- Mood: good" in result.message
        assert "- Medications logged: Aspirin" in result.message
        assert "- Blood pressure: 1 reading(s), latest 118/76" in result.message
        assert "- Water: 500ml of 2000ml" in result.message
        assert result.data["medications"] == ["Aspirin"]
        assert result.data["water_ml"] == 500
