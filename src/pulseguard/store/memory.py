"""In-process HealthStore used by tests and the CLI demo mode."""

import copy
from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime
from typing import Any, TypeVar

from pulseguard.store.types import (
    BloodPressureReading,
    CareLog,
    ChatMessage,
    CheckIn,
    ClinicalDate,
    ConversationSummary,
    HealthEntry,
    HydrationEntry,
    LocationCircle,
    PendingConfirmation,
    Reminder,
    UserProfile,
    utc_now,
)

CHECK_IN_FIELDS = frozenset({"mood", "symptoms", "medication_taken", "notes"})

T = TypeVar("T")


def _limit(items: list[T], limit: int | None) -> list[T]:
    return items if limit is None else items[:limit]


class InMemoryHealthStore:
    """Dict-backed store. Returned records are copies, as a database would give."""

    def __init__(self) -> None:
        self._health_entries: dict[str, list[HealthEntry]] = defaultdict(list)
        self._check_ins: dict[tuple[str, date], CheckIn] = {}
        self._blood_pressure: dict[str, list[BloodPressureReading]] = defaultdict(list)
        self._hydration: dict[str, list[HydrationEntry]] = defaultdict(list)
        self._reminders: dict[str, list[Reminder]] = defaultdict(list)
        self._care_logs: dict[str, list[CareLog]] = defaultdict(list)
        self._clinical_dates: dict[str, list[ClinicalDate]] = defaultdict(list)
        self._messages: dict[str, list[ChatMessage]] = defaultdict(list)
        self._summaries: dict[str, ConversationSummary] = {}
        self._pending: dict[tuple[str, str], PendingConfirmation] = {}
        self._profiles: dict[str, UserProfile] = {}
        self._locations: dict[str, list[LocationCircle]] = defaultdict(list)

    # -- health records --------------------------------------------------------

    async def add_health_entry(self, entry: HealthEntry) -> HealthEntry:
        self._health_entries[entry.user_id].append(copy.deepcopy(entry))
        return entry

    async def list_health_entries(
        self,
        user_id: str,
        entry_type: str | None = None,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[HealthEntry]:
        entries = [
            copy.deepcopy(e)
            for e in self._health_entries[user_id]
            if (entry_type is None or e.entry_type == entry_type)
            and (since is None or e.created_at >= since)
        ]
        entries.sort(key=lambda e: e.created_at, reverse=True)
        return _limit(entries, limit)

    async def get_check_in(self, user_id: str, day: date) -> CheckIn | None:
        check_in = self._check_ins.get((user_id, day))
        return copy.deepcopy(check_in) if check_in else None

    async def upsert_check_in(
        self, user_id: str, day: date, updates: dict[str, Any]
    ) -> tuple[CheckIn, bool]:
        unknown = set(updates) - CHECK_IN_FIELDS
        if unknown:
            raise ValueError(f"Unknown check-in fields: {', '.join(sorted(unknown))}")

        existing = self._check_ins.get((user_id, day))
        if existing is None:
            check_in = CheckIn(user_id=user_id, day=day, **updates)
            created = True
        else:
            check_in = replace(existing, **updates, updated_at=utc_now())
            created = False
        self._check_ins[(user_id, day)] = check_in
        return copy.deepcopy(check_in), created

    async def list_check_ins(
        self, user_id: str, since: date | None = None, limit: int | None = None
    ) -> list[CheckIn]:
        check_ins = [
            copy.deepcopy(c)
            for (uid, day), c in self._check_ins.items()
            if uid == user_id and (since is None or day >= since)
        ]
        check_ins.sort(key=lambda c: c.day, reverse=True)
        return _limit(check_ins, limit)

    async def add_blood_pressure(
        self, reading: BloodPressureReading
    ) -> BloodPressureReading:
        self._blood_pressure[reading.user_id].append(copy.deepcopy(reading))
        return reading

    async def list_blood_pressure(
        self, user_id: str, since: datetime | None = None, limit: int | None = None
    ) -> list[BloodPressureReading]:
        readings = [
            copy.deepcopy(r)
            for r in self._blood_pressure[user_id]
            if since is None or r.recorded_at >= since
        ]
        readings.sort(key=lambda r: r.recorded_at, reverse=True)
        return _limit(readings, limit)

    async def add_hydration(self, entry: HydrationEntry) -> HydrationEntry:
        self._hydration[entry.user_id].append(copy.deepcopy(entry))
        return entry

    async def list_hydration(self, user_id: str, day: date) -> list[HydrationEntry]:
        return [copy.deepcopy(e) for e in self._hydration[user_id] if e.day == day]

    # -- care ------------------------------------------------------------------

    async def add_reminder(self, reminder: Reminder) -> Reminder:
        self._reminders[reminder.user_id].append(copy.deepcopy(reminder))
        return reminder

    async def list_reminders(
        self, user_id: str, active_only: bool = True
    ) -> list[Reminder]:
        return [
            copy.deepcopy(r)
            for r in self._reminders[user_id]
            if r.is_active or not active_only
        ]

    async def add_care_log(self, log: CareLog) -> CareLog:
        self._care_logs[log.user_id].append(copy.deepcopy(log))
        return log

    async def list_care_logs(
        self, user_id: str, limit: int | None = None
    ) -> list[CareLog]:
        logs = sorted(
            (copy.deepcopy(log) for log in self._care_logs[user_id]),
            key=lambda log: log.created_at,
            reverse=True,
        )
        return _limit(logs, limit)

    async def add_clinical_date(self, clinical_date: ClinicalDate) -> ClinicalDate:
        self._clinical_dates[clinical_date.user_id].append(copy.deepcopy(clinical_date))
        return clinical_date

    async def list_clinical_dates(
        self, user_id: str, from_day: date | None = None
    ) -> list[ClinicalDate]:
        dates = [
            copy.deepcopy(d)
            for d in self._clinical_dates[user_id]
            if from_day is None or d.clinical_date >= from_day
        ]
        dates.sort(key=lambda d: d.clinical_date)
        return dates

    # -- conversation ----------------------------------------------------------

    async def add_message(self, message: ChatMessage) -> ChatMessage:
        self._messages[message.user_id].append(copy.deepcopy(message))
        return message

    async def list_recent_messages(self, user_id: str, limit: int) -> list[ChatMessage]:
        if limit <= 0:
            return []
        return [copy.deepcopy(m) for m in self._messages[user_id][-limit:]]

    async def count_messages(self, user_id: str) -> int:
        return len(self._messages[user_id])

    async def get_summary(self, user_id: str) -> ConversationSummary | None:
        summary = self._summaries.get(user_id)
        return copy.deepcopy(summary) if summary else None

    async def save_summary(self, summary: ConversationSummary) -> None:
        self._summaries[summary.user_id] = copy.deepcopy(summary)

    # -- confirmations ---------------------------------------------------------

    async def save_pending_confirmation(self, pending: PendingConfirmation) -> None:
        self._pending[(pending.user_id, pending.request_id)] = copy.deepcopy(pending)

    async def get_pending_confirmation(
        self, user_id: str, request_id: str
    ) -> PendingConfirmation | None:
        pending = self._pending.get((user_id, request_id))
        return copy.deepcopy(pending) if pending else None

    async def delete_pending_confirmation(self, user_id: str, request_id: str) -> bool:
        return self._pending.pop((user_id, request_id), None) is not None

    async def list_pending_confirmations(
        self, user_id: str
    ) -> list[PendingConfirmation]:
        pending = [copy.deepcopy(p) for (uid, _), p in self._pending.items() if uid == user_id]
        pending.sort(key=lambda p: p.created_at)
        return pending

    # -- profile ---------------------------------------------------------------

    async def get_profile(self, user_id: str) -> UserProfile | None:
        profile = self._profiles.get(user_id)
        return copy.deepcopy(profile) if profile else None

    async def save_profile(self, profile: UserProfile) -> None:
        self._profiles[profile.user_id] = copy.deepcopy(profile)

    async def get_active_location(self, user_id: str) -> LocationCircle | None:
        for location in self._locations[user_id]:
            if location.is_active:
                return copy.deepcopy(location)
        return None

    async def save_location(self, location: LocationCircle) -> None:
        circles = [c for c in self._locations[location.user_id] if c.id != location.id]
        circles.append(copy.deepcopy(location))
        self._locations[location.user_id] = circles
