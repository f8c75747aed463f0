"""Relative dates, recurrence and time-of-day parsing.

Every parser takes free text and, where the phrase is relative, a reference
instant supplied by the caller. Nothing here reads the clock. A phrase that
cannot be resolved unambiguously yields None.

Day-of-week numbers follow the reminder store: 0=Sunday .. 6=Saturday.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from pulseguard.extraction.numbers import (
    NUMBER_PATTERN,
    UNIT_PATTERN,
    interval_to_days,
    parse_quantity,
)

WEEKDAY_NAMES = [
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
]
ALL_DAYS = [0, 1, 2, 3, 4, 5, 6]
WEEKDAYS = [1, 2, 3, 4, 5]
WEEKEND = [0, 6]
DEFAULT_REMINDER_TIME = "09:00"

MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

WEEKDAY_PATTERN = "|".join(WEEKDAY_NAMES)
MONTH_PATTERN = (
    r"jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|"
    r"aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?"
)

_TWELVE_HOUR = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*([ap])\.?\s?m\b\.?", re.IGNORECASE)
_TWENTY_FOUR_HOUR = re.compile(r"\b(\d{1,2}):(\d{2})\b")
_NOON = re.compile(r"\bnoon\b|\bmidday\b", re.IGNORECASE)
_MIDNIGHT = re.compile(r"\bmidnight\b", re.IGNORECASE)

_TOMORROW = re.compile(r"\btomorrow\b", re.IGNORECASE)
_TODAY = re.compile(r"\b(?:today|tonight)\b", re.IGNORECASE)
_IN_OFFSET = re.compile(
    rf"\bin\s+({NUMBER_PATTERN})\s+({UNIT_PATTERN})\b", re.IGNORECASE
)
_NAMED_WEEKDAY = re.compile(rf"\b(?:next|on|this)\s+({WEEKDAY_PATTERN})\b", re.IGNORECASE)
_NEXT_UNIT = re.compile(r"\bnext\s+(week|month|year)\b", re.IGNORECASE)
_ISO_DATE = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
_SLASH_DATE = re.compile(r"(?<![\d/])(\d{1,2})/(\d{1,2})(?:/(\d{2}|\d{4}))?(?![\d/])")
_MONTH_DAY = re.compile(
    rf"\b({MONTH_PATTERN})\.?\s+(\d{{1,2}})(?:st|nd|rd|th)?(?:,?\s+(\d{{4}}))?\b",
    re.IGNORECASE,
)
_DAY_MONTH = re.compile(
    rf"\b(\d{{1,2}})(?:st|nd|rd|th)?\s+(?:of\s+)?({MONTH_PATTERN})\b\.?(?:,?\s+(\d{{4}}))?",
    re.IGNORECASE,
)

_EVERY_N = re.compile(
    rf"\bevery\s+({NUMBER_PATTERN})\s+({UNIT_PATTERN})\b", re.IGNORECASE
)
_EVERY_DAY = re.compile(r"\b(?:every\s*day|daily|each\s+day|every\s+morning|every\s+night|every\s+evening|nightly)\b", re.IGNORECASE)
_WEEKDAY_SET = re.compile(r"\bweekdays?\b", re.IGNORECASE)
_WEEKEND_SET = re.compile(r"\bweekends?\b", re.IGNORECASE)
_DAY_NAMES = re.compile(rf"\b({WEEKDAY_PATTERN})s?\b", re.IGNORECASE)
_WEEKLY = re.compile(r"\b(?:weekly|every\s+week)\b", re.IGNORECASE)
_MONTHLY = re.compile(r"\b(?:monthly|every\s+month)\b", re.IGNORECASE)


@dataclass(frozen=True)
class DateMatch:
    """A concrete date resolved from text."""

    date: date
    confidence: float
    time: str | None = None
    phrase: str = ""


@dataclass(frozen=True)
class Recurrence:
    """A repeating schedule: day-of-week set plus optional day interval."""

    days: tuple[int, ...]
    time: str
    interval_days: int | None = None
    confidence: float = 0.85


def day_of_week(value: date) -> int:
    """Return 0=Sunday .. 6=Saturday."""
    return (value.weekday() + 1) % 7


def as_date(reference: date | datetime) -> date:
    return reference.date() if isinstance(reference, datetime) else reference


def shift_days(reference: date, days: int) -> date | None:
    """reference + days, or None past the calendar's range."""
    try:
        return reference + timedelta(days=days)
    except OverflowError:
        return None


def _format_time(hour: int, minute: int) -> str | None:
    if 0 <= hour <= 23 and 0 <= minute <= 59:
        return f"{hour:02d}:{minute:02d}"
    return None


def parse_time_of_day(text: str) -> str | None:
    """Find a time of day and return it as "HH:MM".

    Accepts "9am", "9:30 pm", "12 a.m." (hour 1-12) and 24-hour "14:05".
    Out-of-range values give None rather than a clamped guess.
    """
    if match := _TWELVE_HOUR.search(text):
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        if not 1 <= hour <= 12:
            return None
        if match.group(3).lower() == "p":
            hour = 12 if hour == 12 else hour + 12
        elif hour == 12:
            hour = 0
        return _format_time(hour, minute)

    if match := _TWENTY_FOUR_HOUR.search(text):
        return _format_time(int(match.group(1)), int(match.group(2)))

    if _NOON.search(text):
        return "12:00"
    if _MIDNIGHT.search(text):
        return "00:00"
    return None


def _month_number(token: str) -> int:
    return MONTHS[token.lower()[:3]]


def _calendar_date(
    year: int | None, month: int, day: int, reference: date
) -> date | None:
    """Build a date; a yearless date resolves to its next occurrence."""
    try:
        if year is not None:
            if year < 100:
                year += 2000
            return date(year, month, day)
        candidate = date(reference.year, month, day)
        if candidate < reference:
            candidate = date(reference.year + 1, month, day)
        return candidate
    except ValueError:
        return None


def _explicit_date(text: str, reference: date) -> date | None:
    if match := _ISO_DATE.search(text):
        return _calendar_date(
            int(match.group(1)), int(match.group(2)), int(match.group(3)), reference
        )

    if match := _MONTH_DAY.search(text):
        year = int(match.group(3)) if match.group(3) else None
        return _calendar_date(
            year, _month_number(match.group(1)), int(match.group(2)), reference
        )

    if match := _DAY_MONTH.search(text):
        year = int(match.group(3)) if match.group(3) else None
        return _calendar_date(
            year, _month_number(match.group(2)), int(match.group(1)), reference
        )

    if match := _SLASH_DATE.search(text):
        year = int(match.group(3)) if match.group(3) else None
        return _calendar_date(year, int(match.group(1)), int(match.group(2)), reference)

    return None


def parse_relative_offset(text: str) -> tuple[float, str, int] | None:
    """Find "in N <unit>" and return (amount, unit, days)."""
    match = _IN_OFFSET.search(text)
    if not match:
        return None
    amount = parse_quantity(match.group(1))
    if amount is None:
        return None
    days = interval_to_days(amount, match.group(2))
    if days is None:
        return None
    return amount, match.group(2).lower().rstrip("s"), days


def parse_date(text: str, reference: date | datetime) -> DateMatch | None:
    """Resolve a date phrase against the reference instant.

    Checked in order: tomorrow, today, "in N units", named weekday
    ("next Monday", always strictly after the reference day), "next
    week/month/year", then explicit calendar dates.
    """
    ref = as_date(reference)
    time = parse_time_of_day(text)

    def shifted(days: int, confidence: float, phrase: str) -> DateMatch | None:
        target = shift_days(ref, days)
        return DateMatch(target, confidence, time, phrase) if target else None

    if match := _TOMORROW.search(text):
        return shifted(1, 0.9, match.group(0))

    if match := _TODAY.search(text):
        return DateMatch(ref, 0.9, time, match.group(0))

    if offset := parse_relative_offset(text):
        return shifted(offset[2], 0.9, f"in {offset[0]:g} {offset[1]}")

    if match := _NAMED_WEEKDAY.search(text):
        target = WEEKDAY_NAMES.index(match.group(1).lower())
        ahead = (target - day_of_week(ref)) % 7 or 7
        return shifted(ahead, 0.9, match.group(0))

    if match := _NEXT_UNIT.search(text):
        days = interval_to_days(1, match.group(1))
        if days is not None:
            return shifted(days, 0.8, match.group(0))

    if explicit := _explicit_date(text, ref):
        return DateMatch(explicit, 0.95, time, explicit.isoformat())

    return None


def parse_recurrence(text: str) -> Recurrence | None:
    """Resolve a repeating schedule.

    "every day"/"daily" -> all days, "weekdays" -> Mon-Fri, "weekends" ->
    Sat+Sun, named weekdays -> that set, "every N units" -> interval plus all
    days. "weekly"/"monthly" without a named day anchor to Monday.
    Time defaults to 09:00.
    """
    time = parse_time_of_day(text) or DEFAULT_REMINDER_TIME

    if match := _EVERY_N.search(text):
        amount = parse_quantity(match.group(1))
        days = interval_to_days(amount, match.group(2)) if amount else None
        if days is None:
            return None
        return Recurrence(tuple(ALL_DAYS), time, interval_days=days)

    if _EVERY_DAY.search(text):
        return Recurrence(tuple(ALL_DAYS), time, interval_days=1)

    if _WEEKDAY_SET.search(text):
        return Recurrence(tuple(WEEKDAYS), time)

    if _WEEKEND_SET.search(text):
        return Recurrence(tuple(WEEKEND), time)

    named = sorted({WEEKDAY_NAMES.index(m.lower()) for m in _DAY_NAMES.findall(text)})
    if named:
        return Recurrence(tuple(named), time, interval_days=7 if len(named) == 1 else None)

    if _WEEKLY.search(text):
        return Recurrence((1,), time, interval_days=7, confidence=0.75)

    if _MONTHLY.search(text):
        return Recurrence((1,), time, interval_days=30, confidence=0.7)

    return None


def describe_days(days: list[int] | tuple[int, ...]) -> str:
    """Human-readable day set: "Every day", "Weekdays", "Mon, Wed"."""
    unique = sorted(set(days))
    if unique == ALL_DAYS:
        return "Every day"
    if unique == WEEKDAYS:
        return "Weekdays"
    if unique == WEEKEND:
        return "Weekends"
    return ", ".join(WEEKDAY_NAMES[d][:3].capitalize() for d in unique)
