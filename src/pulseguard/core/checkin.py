"""Daily check-in tracking.

Works out whether the companion should weave a check-in into the
conversation, and which parts of today's check-in are still missing.
"""

import json
import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from pulseguard.store.protocols import HealthRecordStore

DOCTOR_VISIT_LOOKBACK_DAYS = 7
_VISIT_WORDS = re.compile(r"\b(?:doctor|appointment|visit|clinic|hospital)", re.IGNORECASE)


@dataclass
class CheckInStatus:
    needs_check_in: bool
    last_check_in_date: date | None = None
    days_since_last: int | None = None
    missing_mood: bool = False
    missing_medication: bool = False
    missing_doctor_visit: bool = False

    @property
    def missing(self) -> list[str]:
        items = []
        if self.missing_mood:
            items.append("mood/feeling")
        if self.missing_medication:
            items.append("medications")
        if self.missing_doctor_visit:
            items.append("doctor visit")
        return items


async def check_in_status(
    store: HealthRecordStore, user_id: str, today: date
) -> CheckInStatus:
    """Compute today's check-in status. Store errors propagate."""
    today_check_in = await store.get_check_in(user_id, today)
    latest = await store.list_check_ins(user_id, limit=1)
    last_date = latest[0].day if latest else None
    days_since = (today - last_date).days if last_date else None

    since = datetime.combine(today - timedelta(days=DOCTOR_VISIT_LOOKBACK_DAYS), time.min, tzinfo=UTC)
    entries = await store.list_health_entries(user_id, since=since)
    saw_doctor = any(
        e.entry_type in ("note", "symptom") and _VISIT_WORDS.search(json.dumps(e.data))
        for e in entries
    )

    missing_mood = today_check_in is None or not today_check_in.mood
    missing_medication = today_check_in is None or today_check_in.medication_taken is None
    return CheckInStatus(
        needs_check_in=today_check_in is None or missing_mood or missing_medication,
        last_check_in_date=last_date,
        days_since_last=days_since,
        missing_mood=missing_mood,
        missing_medication=missing_medication,
        missing_doctor_visit=not saw_doctor
        and (days_since is None or days_since >= DOCTOR_VISIT_LOOKBACK_DAYS),
    )


def check_in_prompt(status: CheckInStatus) -> str | None:
    """A single natural check-in question, or None when nothing is missing."""
    if not status.needs_check_in:
        return None
    questions = []
    if status.missing_mood:
        questions.append("how are you feeling today")
    if status.missing_medication:
        questions.append("have you taken your medications")
    if status.missing_doctor_visit:
        questions.append("have you visited the doctor lately")
    if not questions:
        return None
    return f"Quick check-in: {', '.join(questions)}?"
