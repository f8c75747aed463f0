"""Reminder extraction from free text."""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from pulseguard.extraction.dates import (
    DEFAULT_REMINDER_TIME,
    MONTH_PATTERN,
    WEEKDAY_PATTERN,
    day_of_week,
    describe_days,
    parse_date,
    parse_recurrence,
    parse_time_of_day,
)
from pulseguard.extraction.numbers import NUMBER_PATTERN, UNIT_PATTERN

REMINDER_TYPES = ("medication", "check_in", "appointment", "other")

DEFAULT_TITLES = {
    "medication": "Take medication",
    "check_in": "Daily check-in",
    "appointment": "Doctor appointment",
    "other": "Reminder",
}

_RECURRING = re.compile(r"\b(?:every|daily|weekly|monthly|each|nightly)\b", re.IGNORECASE)
_MEDICATION = re.compile(r"\b(?:medication|medicine|meds|pills?|drugs?|dose|tablets?)\b", re.IGNORECASE)
_CHECK_IN = re.compile(r"\b(?:check[\s-]?in|mood)\b", re.IGNORECASE)
_APPOINTMENT = re.compile(r"\b(?:appointment|doctor|visit|clinic|checkup|check-up)\b", re.IGNORECASE)

_TITLE_PATTERNS = [
    re.compile(r"\bremind\s+me\s+(?:to|about|that)\s+(.+)", re.IGNORECASE),
    re.compile(r"\bremember\s+to\s+(.+)", re.IGNORECASE),
    re.compile(r"\bdon'?t\s+(?:let\s+me\s+)?forget\s+(?:to\s+|about\s+)?(.+)", re.IGNORECASE),
]
# Schedule words that trail the task in "remind me to X every day at 9am".
# Prepositions only count when a date or time follows them, so the "on" in
# "turn on the heater" stays part of the task.
_STANDALONE_SCHEDULE = (
    rf"(?:noon|midnight|(?:{WEEKDAY_PATTERN})s?|"
    rf"(?:next|this)\s+(?:{WEEKDAY_PATTERN}|week|month|year))\b"
)
_SCHEDULE_AFTER_PREPOSITION = (
    rf"(?:\d|(?:{MONTH_PATTERN})\b|(?:{NUMBER_PATTERN})\s+{UNIT_PATTERN}\b|"
    r"(?:the\s+)?(?:morning|afternoon|evening|night)\b)"
)
_TITLE_TAIL = re.compile(
    r"\s+(?:(?:every|daily|weekly|monthly|each|nightly|tomorrow|today|tonight)\b|"
    rf"{_STANDALONE_SCHEDULE}|"
    rf"(?:at|on|in|by|before|after|around)\s+"
    rf"(?={_STANDALONE_SCHEDULE}|{_SCHEDULE_AFTER_PREPOSITION})).*$",
    re.IGNORECASE | re.DOTALL,
)
_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


@dataclass
class ReminderExtraction:
    """A reminder proposal built from free text."""

    title: str
    reminder_type: str
    time: str
    days: list[int]
    is_recurring: bool
    confidence: float
    on_date: date | None = None
    interval_days: int | None = None
    description: str | None = None
    source_text: str = field(default="", repr=False)

    def summary(self) -> str:
        if self.is_recurring:
            schedule = describe_days(self.days)
            if self.interval_days and self.interval_days > 7:
                schedule = f"Every {self.interval_days} days"
            return f"Reminder '{self.title}': {schedule.lower()} at {self.time}"
        when = self.on_date.strftime("%A, %B %d") if self.on_date else "an unknown date"
        return f"Reminder '{self.title}': {when} at {self.time}"

    def to_parameters(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "title": self.title,
            "time": self.time,
            "days": list(self.days),
            "reminder_type": self.reminder_type,
        }
        if self.description:
            params["description"] = self.description
        if self.on_date is not None:
            params["date"] = self.on_date.isoformat()
        if self.interval_days:
            params["interval_days"] = self.interval_days
        return params


def detect_reminder_type(text: str) -> str:
    if _MEDICATION.search(text):
        return "medication"
    if _CHECK_IN.search(text):
        return "check_in"
    if _APPOINTMENT.search(text):
        return "appointment"
    return "other"


def extract_title(text: str, reminder_type: str) -> str:
    """Take the task from "remind me to ..." phrasing, minus schedule words."""
    for pattern in _TITLE_PATTERNS:
        if match := pattern.search(text):
            title = _TITLE_TAIL.sub("", match.group(1)).strip(" .,!?;:")
            if title:
                return title[0].upper() + title[1:]
    return DEFAULT_TITLES[reminder_type]


def parse_reminder(text: str, reference: date | datetime) -> ReminderExtraction | None:
    """Build a reminder from text such as "remind me to take my pills every
    weekday at 8am" or "remind me to call the clinic tomorrow at 3pm".

    Returns None when a recurring phrase has no resolvable schedule or a
    one-time phrase has no resolvable date.
    """
    if not text or not text.strip():
        return None

    reminder_type = detect_reminder_type(text)
    title = extract_title(text, reminder_type)

    if _RECURRING.search(text):
        recurrence = parse_recurrence(text)
        if recurrence is None:
            return None
        return ReminderExtraction(
            title=title,
            reminder_type=reminder_type,
            time=recurrence.time,
            days=list(recurrence.days),
            is_recurring=True,
            confidence=0.85,
            interval_days=recurrence.interval_days,
            source_text=text,
        )

    match = parse_date(text, reference)
    if match is None:
        return None
    return ReminderExtraction(
        title=title,
        reminder_type=reminder_type,
        time=match.time or parse_time_of_day(text) or DEFAULT_REMINDER_TIME,
        days=[day_of_week(match.date)],
        is_recurring=False,
        confidence=0.9,
        on_date=match.date,
        source_text=text,
    )


def validate_reminder(extraction: ReminderExtraction, today: date) -> list[str]:
    """Return a list of problems; empty means the reminder can be saved."""
    errors: list[str] = []
    if not extraction.title.strip():
        errors.append("Reminder title is required")
    if not _HHMM.match(extraction.time):
        errors.append(f"Invalid reminder time: {extraction.time}")
    if extraction.reminder_type not in REMINDER_TYPES:
        errors.append(f"Unknown reminder type: {extraction.reminder_type}")

    if extraction.is_recurring:
        if not extraction.days:
            errors.append("Recurring reminders need at least one day")
        elif any(d not in range(7) for d in extraction.days):
            errors.append("Reminder days must be between 0 (Sunday) and 6 (Saturday)")
    elif extraction.on_date is None:
        errors.append("One-time reminders need a date")
    elif extraction.on_date < today:
        errors.append("Reminder date is in the past")

    return errors
