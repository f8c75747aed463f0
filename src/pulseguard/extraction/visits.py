"""Doctor visit outcome parsing.

Diagnosis, treatment and medication changes are only filled in when the text
states them explicitly; the parser never infers clinical facts.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from pulseguard.extraction.dates import as_date, shift_days
from pulseguard.extraction.numbers import (
    NUMBER_PATTERN,
    UNIT_PATTERN,
    interval_to_days,
    normalize_unit,
    parse_quantity,
)

VISIT_TYPES = ("appointment", "follow_up", "consultation", "emergency")
MEDICATION_ACTIONS = ("added", "changed", "removed", "increased", "decreased")

_FOLLOW_UP_PATTERNS = [
    re.compile(
        rf"\b(?:come\s+back|return|follow[\s-]?up|next\s+appointment|see\s+(?:me|him|her|them)\s+again)\b.*?"
        rf"\bin\s+({NUMBER_PATTERN})\s+({UNIT_PATTERN})\b",
        re.IGNORECASE | re.DOTALL,
    ),
    re.compile(rf"\bin\s+({NUMBER_PATTERN})\s+({UNIT_PATTERN})\b", re.IGNORECASE),
]
_VISIT_DATE_PATTERNS = [
    re.compile(r"\b(\d{4}-\d{1,2}-\d{1,2})\b"),
    re.compile(
        r"\b(?:visit|appointment|went|saw)\b.*?\b(?:on|was|is)\s+(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})\b",
        re.IGNORECASE | re.DOTALL,
    ),
]
_DIAGNOSIS_PATTERNS = [
    re.compile(r"\b(?:diagnosis|diagnosed|found|discovered)\b.*?\bis\s+([^.,!?]+)", re.IGNORECASE),
    re.compile(r"\b(?:diagnosis|diagnosed)\b\s*(?:with|as|:)?\s*([^.,!?]+)", re.IGNORECASE),
]
_TREATMENT_PATTERNS = [
    re.compile(r"\b(?:treatment|treated)\b\s*(?:with|is|was|:)?\s*([^.,!?]+)", re.IGNORECASE),
    re.compile(r"\b(?:will|going\s+to|plans?\s+to)\b.*?\b(?:treat|do|give)\s+([^.,!?]+)", re.IGNORECASE),
]
_MEDICATION_PATTERNS = [
    re.compile(
        r"\b(?:changed|switched(?:\s+to)?|now\s+taking|prescribed|added|increased|decreased|"
        r"reduced|stopped|removed|discontinued)\s+(?:my\s+)?(?:medication|meds?|medicine|pills?|drugs?)?\s*"
        r"(?:to|:)?\s*([^.,!?]+)",
        re.IGNORECASE,
    ),
    re.compile(r"\bmedication\s+(?:changed|switched|is\s+now)\s+(?:to|:)?\s*([^.,!?]+)", re.IGNORECASE),
]
_NEGATIVE_FINDINGS = ("nothing", "normal", "fine")


@dataclass
class MedicationChange:
    action: str
    medication: str | None = None
    details: str | None = None


@dataclass
class FollowUp:
    amount: int
    unit: str
    date: date


@dataclass
class VisitOutcomeExtraction:
    """What the user reported about a visit."""

    visit_date: date
    visit_type: str
    confidence: float
    follow_up: FollowUp | None = None
    diagnosis: str | None = None
    treatment: str | None = None
    medication_changes: list[MedicationChange] = field(default_factory=list)
    notes: str | None = None

    def summary(self) -> str:
        parts = [f"Doctor visit ({self.visit_type.replace('_', ' ')}) on {self.visit_date.isoformat()}"]
        if self.diagnosis:
            parts.append(f"diagnosis: {self.diagnosis}")
        if self.treatment:
            parts.append(f"treatment: {self.treatment}")
        if self.medication_changes:
            changes = ", ".join(
                f"{c.action} {c.medication or 'medication'}" for c in self.medication_changes
            )
            parts.append(f"medication changes: {changes}")
        if self.follow_up:
            parts.append(f"follow-up on {self.follow_up.date.isoformat()}")
        return "; ".join(parts)

    def to_parameters(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "visit_date": self.visit_date.isoformat(),
            "visit_type": self.visit_type,
        }
        if self.follow_up:
            params["follow_up_date"] = self.follow_up.date.isoformat()
        for key in ("diagnosis", "treatment", "notes"):
            if value := getattr(self, key):
                params[key] = value
        return params


def parse_follow_up(text: str, reference: date) -> FollowUp | None:
    for pattern in _FOLLOW_UP_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        amount = parse_quantity(match.group(1))
        unit = normalize_unit(match.group(2))
        days = interval_to_days(amount, match.group(2)) if amount else None
        if amount is None or unit is None or days is None:
            continue
        follow_up_date = shift_days(reference, days)
        if follow_up_date is None:
            continue
        return FollowUp(int(amount), unit, follow_up_date)
    return None


def _parse_visit_date(text: str, reference: date) -> date:
    for pattern in _VISIT_DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        try:
            if match.lastindex == 1:
                return date.fromisoformat(_pad_iso(match.group(1)))
            month, day, year = (int(g) for g in match.groups())
            return date(year + 2000 if year < 100 else year, month, day)
        except ValueError:
            continue
    return reference


def _pad_iso(value: str) -> str:
    year, month, day = value.split("-")
    return f"{year}-{int(month):02d}-{int(day):02d}"


def _first_finding(patterns: list[re.Pattern[str]], text: str) -> str | None:
    for pattern in patterns:
        if match := pattern.search(text):
            finding = match.group(1).strip()
            if finding and not any(neg in finding.lower() for neg in _NEGATIVE_FINDINGS):
                return finding
    return None


def parse_medication_changes(text: str) -> list[MedicationChange]:
    lower = text.lower()
    for pattern in _MEDICATION_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        if any(w in lower for w in ("added", "prescribed", "new")):
            action = "added"
        elif any(w in lower for w in ("stopped", "removed", "discontinued")):
            action = "removed"
        elif "increased" in lower:
            action = "increased"
        elif "decreased" in lower or "reduced" in lower:
            action = "decreased"
        else:
            action = "changed"
        medication = match.group(1).strip() or None
        return [MedicationChange(action=action, medication=medication, details=match.group(0).strip())]
    return []


def _visit_type(lower: str) -> str:
    if "emergency" in lower or "urgent" in lower:
        return "emergency"
    if "follow" in lower:
        return "follow_up"
    if "consultation" in lower:
        return "consultation"
    return "appointment"


def parse_visit_outcome(text: str, reference: date | datetime) -> VisitOutcomeExtraction:
    """Extract a visit report. The visit date falls back to the reference date."""
    ref = as_date(reference)
    lower = text.lower()
    visit_date = _parse_visit_date(text, ref)
    follow_up = parse_follow_up(text, visit_date)

    result = VisitOutcomeExtraction(
        visit_date=visit_date,
        visit_type=_visit_type(lower),
        confidence=0.9 if follow_up else 0.8,
        follow_up=follow_up,
        diagnosis=_first_finding(_DIAGNOSIS_PATTERNS, text),
        treatment=_first_finding(_TREATMENT_PATTERNS, text),
        medication_changes=parse_medication_changes(text),
    )

    notes: list[str] = []
    if result.diagnosis:
        notes.append(f"Diagnosis: {result.diagnosis}")
    if result.treatment:
        notes.append(f"Treatment: {result.treatment}")
    if result.medication_changes:
        changes = ", ".join(
            f"{c.action} {c.medication or 'medication'}" for c in result.medication_changes
        )
        notes.append(f"Medication changes: {changes}")
    result.notes = ". ".join(notes) or None
    return result


def validate_visit_outcome(extraction: VisitOutcomeExtraction) -> list[str]:
    errors: list[str] = []
    if extraction.visit_type not in VISIT_TYPES:
        errors.append(f"Unknown visit type: {extraction.visit_type}")
    if extraction.follow_up is not None:
        if extraction.follow_up.amount <= 0:
            errors.append("Follow-up timing amount must be positive")
        if extraction.follow_up.date < extraction.visit_date:
            errors.append("Follow-up date is before the visit")
    return errors
