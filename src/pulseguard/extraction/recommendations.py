"""Doctor recommendation parsing ("check your BP daily for two weeks")."""

import re
from dataclasses import dataclass
from datetime import date, datetime

from pulseguard.extraction.dates import (
    ALL_DAYS,
    DEFAULT_REMINDER_TIME,
    as_date,
    day_of_week,
    parse_time_of_day,
    shift_days,
)
from pulseguard.extraction.numbers import (
    NUMBER_PATTERN,
    UNIT_PATTERN,
    interval_to_days,
    normalize_unit,
    parse_quantity,
)
from pulseguard.extraction.reminders import ReminderExtraction, validate_reminder

_STOP = r"(?=\s+(?:in|after|for|every|daily|weekly|monthly|each|twice|once)\b|[.,!?]|$)"
_ACTION_PATTERNS = [
    re.compile(rf"\b((?:check|monitor|track|measure|test)\s+.+?){_STOP}", re.IGNORECASE),
    re.compile(rf"\b((?:take|use|apply)\s+.+?){_STOP}", re.IGNORECASE),
    re.compile(r"\b(return|come\s+back|follow[\s-]?up|schedule|book)\b", re.IGNORECASE),
]
_INTERVAL = re.compile(rf"\b(?:in|after)\s+({NUMBER_PATTERN})\s+({UNIT_PATTERN})\b", re.IGNORECASE)
_EVERY_N = re.compile(rf"\bevery\s+({NUMBER_PATTERN})\s+({UNIT_PATTERN})\b", re.IGNORECASE)
_DURATION = re.compile(
    rf"\bfor\s+(?:the\s+next\s+|the\s+)?({NUMBER_PATTERN})\s+({UNIT_PATTERN})\b",
    re.IGNORECASE,
)
_DAILY = re.compile(r"\b(?:daily|every\s*day|each\s+day|once\s+a\s+day|twice\s+a\s+day)\b", re.IGNORECASE)
_WEEKLY = re.compile(r"\b(?:weekly|every\s+week|once\s+a\s+week)\b", re.IGNORECASE)
_MONTHLY = re.compile(r"\b(?:monthly|every\s+month|once\s+a\s+month)\b", re.IGNORECASE)
_RETURN_WORDS = re.compile(r"\b(?:return|come\s+back|follow[\s-]?up|appointment)\b", re.IGNORECASE)


@dataclass
class Span:
    amount: int
    unit: str
    days: int


@dataclass
class RecommendationExtraction:
    """Structured form of a doctor's instruction."""

    action: str | None
    confidence: float
    interval: Span | None = None
    frequency: str | None = None
    frequency_days: int | None = None
    duration: Span | None = None
    reminder: ReminderExtraction | None = None

    def summary(self) -> str:
        parts = [self.action or "Doctor recommendation"]
        if self.frequency:
            parts.append(self.frequency)
        if self.interval:
            parts.append(f"in {self.interval.amount} {self.interval.unit}(s)")
        if self.duration:
            parts.append(f"for {self.duration.amount} {self.duration.unit}(s)")
        text = " ".join(parts)
        if self.reminder:
            text += f". {self.reminder.summary()}"
        return text


def _span(pattern: re.Pattern[str], text: str) -> Span | None:
    match = pattern.search(text)
    if not match:
        return None
    amount = parse_quantity(match.group(1))
    unit = normalize_unit(match.group(2))
    days = interval_to_days(amount, match.group(2)) if amount else None
    if amount is None or unit is None or days is None:
        return None
    return Span(int(amount), unit, days)


def extract_action(text: str) -> str | None:
    for pattern in _ACTION_PATTERNS:
        if match := pattern.search(text):
            action = match.group(1).strip()
            return action[0].upper() + action[1:]
    return None


def _frequency(text: str) -> tuple[str, int] | None:
    if every := _span(_EVERY_N, text):
        return f"every {every.amount} {every.unit}(s)", every.days
    if _DAILY.search(text):
        return "daily", 1
    if _WEEKLY.search(text):
        return "weekly", 7
    if _MONTHLY.search(text):
        return "monthly", 30
    return None


def _proposed_reminder(
    text: str,
    action: str | None,
    interval: Span | None,
    frequency: tuple[str, int] | None,
    reference: date,
) -> ReminderExtraction | None:
    time = parse_time_of_day(text) or DEFAULT_REMINDER_TIME
    reminder_type = "appointment" if _RETURN_WORDS.search(text) else "other"

    if frequency is not None:
        label, every_days = frequency
        # Weekly and monthly schedules anchor to Monday
        days = list(ALL_DAYS) if every_days < 7 else [1]
        return ReminderExtraction(
            title=action or "Doctor recommendation reminder",
            reminder_type=reminder_type,
            time=time,
            days=days,
            is_recurring=True,
            confidence=0.9,
            interval_days=every_days,
            description="Doctor recommendation",
        )

    if interval is not None:
        target = shift_days(reference, interval.days)
        if target is None:
            return None
        return ReminderExtraction(
            title=action or "Follow-up reminder",
            reminder_type=reminder_type,
            time=time,
            days=[day_of_week(target)],
            is_recurring=False,
            confidence=0.9,
            on_date=target,
            description="Doctor recommendation",
        )
    return None


def parse_recommendation(
    text: str, reference: date | datetime
) -> RecommendationExtraction | None:
    """Parse a recommendation; None when it carries no interval or frequency."""
    if not text or not text.strip():
        return None

    ref = as_date(reference)
    interval = _span(_INTERVAL, text)
    frequency = _frequency(text)
    if interval is None and frequency is None:
        return None

    action = extract_action(text)
    return RecommendationExtraction(
        action=action,
        confidence=0.9,
        interval=interval,
        frequency=frequency[0] if frequency else None,
        frequency_days=frequency[1] if frequency else None,
        duration=_span(_DURATION, text),
        reminder=_proposed_reminder(text, action, interval, frequency, ref),
    )


def validate_recommendation(
    extraction: RecommendationExtraction, today: date
) -> list[str]:
    errors: list[str] = []
    if extraction.interval is None and extraction.frequency is None:
        errors.append("Recommendation needs a timing (interval or frequency)")
    if extraction.reminder is not None:
        errors.extend(validate_reminder(extraction.reminder, today))
    return errors
