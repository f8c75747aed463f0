"""Blood pressure parsing and classification."""

import re
from dataclasses import dataclass
from enum import Enum

SYSTOLIC_RANGE = (50, 300)
DIASTOLIC_RANGE = (30, 200)
PULSE_RANGE = (40, 200)
# Diastolic may exceed systolic by at most this much before we refuse to guess
REVERSAL_TOLERANCE = 5

POSITIONS = ("sitting", "standing", "lying", "other")

_VALUE = r"(?:is|was|of|at|:|=)?\s*(\d{2,3})\b"
_SYS = r"\b(?:systolic|sys)\b"
_DIA = r"\b(?:diastolic|dia)\b"

_SYSTOLIC_FIRST = re.compile(rf"{_SYS}\s*{_VALUE}.*?{_DIA}\s*{_VALUE}", re.IGNORECASE | re.DOTALL)
_DIASTOLIC_FIRST = re.compile(rf"{_DIA}\s*{_VALUE}.*?{_SYS}\s*{_VALUE}", re.IGNORECASE | re.DOTALL)
_SLASH = re.compile(r"(?<![\d/])(\d{2,3})\s*/\s*(\d{2,3})(?![\d/])")
_OVER = re.compile(r"\b(\d{2,3})\s+over\s+(\d{2,3})\b", re.IGNORECASE)

_PULSE_PATTERNS = [
    re.compile(r"\b(?:pulse|heart\s*rate|hr|bpm)\b\s*(?:is|was|of|at|:)?\s*(\d{2,3})\b", re.IGNORECASE),
    re.compile(r"\b(\d{2,3})\s*(?:bpm|beats)\b", re.IGNORECASE),
]
_NOTES = re.compile(
    r"\b(?:after|before|during|this morning|this afternoon|this evening|tonight|"
    r"just now|recently)\b[^.!?]*",
    re.IGNORECASE,
)


class BloodPressureCategory(str, Enum):
    """Fixed threshold bands for a reading."""

    NORMAL = "normal"
    ELEVATED = "elevated"
    HIGH_STAGE_1 = "high_stage_1"
    HIGH_STAGE_2 = "high_stage_2"
    CRISIS = "crisis"
    LOW = "low"


CATEGORY_LABELS = {
    BloodPressureCategory.NORMAL: "normal",
    BloodPressureCategory.ELEVATED: "elevated",
    BloodPressureCategory.HIGH_STAGE_1: "high (stage 1)",
    BloodPressureCategory.HIGH_STAGE_2: "high (stage 2)",
    BloodPressureCategory.CRISIS: "hypertensive crisis range",
    BloodPressureCategory.LOW: "low",
}


@dataclass(frozen=True)
class BloodPressureClassification:
    category: BloodPressureCategory
    abnormal_reason: str | None

    @property
    def is_abnormal(self) -> bool:
        return self.abnormal_reason is not None

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self.category]


@dataclass
class BloodPressureExtraction:
    """A reading parsed from text."""

    systolic: int
    diastolic: int
    confidence: float
    pulse: int | None = None
    position: str | None = None
    notes: str | None = None

    def summary(self) -> str:
        text = f"Blood pressure {self.systolic}/{self.diastolic}"
        if self.pulse is not None:
            text += f", pulse {self.pulse} bpm"
        if self.position:
            text += f" ({self.position})"
        return text

    def to_parameters(self) -> dict[str, int | str]:
        params: dict[str, int | str] = {
            "systolic": self.systolic,
            "diastolic": self.diastolic,
        }
        if self.pulse is not None:
            params["pulse"] = self.pulse
        if self.position:
            params["position"] = self.position
        if self.notes:
            params["notes"] = self.notes
        return params


def _in_range(value: int, bounds: tuple[int, int]) -> bool:
    return bounds[0] <= value <= bounds[1]


def _find_pair(text: str) -> tuple[int, int, bool] | None:
    """Return (systolic, diastolic, labeled)."""
    if match := _SYSTOLIC_FIRST.search(text):
        return int(match.group(1)), int(match.group(2)), True
    if match := _DIASTOLIC_FIRST.search(text):
        return int(match.group(2)), int(match.group(1)), True

    match = _SLASH.search(text) or _OVER.search(text)
    if not match:
        return None
    first, second = int(match.group(1)), int(match.group(2))
    # Unlabeled: the larger plausible number is systolic
    if second > first and second <= SYSTOLIC_RANGE[1] and first <= DIASTOLIC_RANGE[1]:
        first, second = second, first
    return first, second, False


def parse_pulse(text: str) -> int | None:
    for pattern in _PULSE_PATTERNS:
        if match := pattern.search(text):
            value = int(match.group(1))
            return value if _in_range(value, PULSE_RANGE) else None
    return None


def parse_position(text: str) -> str | None:
    lower = text.lower()
    if "sitting" in lower or "seated" in lower:
        return "sitting"
    if "standing" in lower:
        return "standing"
    if "lying" in lower or "laying" in lower:
        return "lying"
    return None


def parse_blood_pressure(text: str) -> BloodPressureExtraction | None:
    """Parse "120/80", "120 over 80" or "systolic 120 diastolic 80".

    Labeled values bind by label. Unlabeled pairs use magnitude: the larger
    number is systolic. Readings outside physiological bounds, or with the
    diastolic value more than REVERSAL_TOLERANCE above systolic, give None.
    """
    if not text:
        return None

    pair = _find_pair(text)
    if pair is None:
        return None
    systolic, diastolic, _ = pair

    if not _in_range(systolic, SYSTOLIC_RANGE) or not _in_range(diastolic, DIASTOLIC_RANGE):
        return None
    if diastolic - systolic > REVERSAL_TOLERANCE:
        return None

    notes_match = _NOTES.search(text)
    return BloodPressureExtraction(
        systolic=systolic,
        diastolic=diastolic,
        confidence=0.6 if diastolic >= systolic else 0.9,
        pulse=parse_pulse(text),
        position=parse_position(text),
        notes=notes_match.group(0).strip() if notes_match else None,
    )


def _abnormal_reason(
    systolic: int, diastolic: int, sys_limit: int, dia_limit: int
) -> str:
    if systolic >= sys_limit and diastolic >= dia_limit:
        return "both_high"
    return "high_systolic" if systolic >= sys_limit else "high_diastolic"


def classify_blood_pressure(systolic: int, diastolic: int) -> BloodPressureClassification:
    """Place a reading in its band.

    crisis: S>=180 or D>=120; stage 2: S>=140 or D>=90; stage 1: S>=130 or
    D>=80; low: S<90 or D<60; elevated: S 120-129 with D<80; else normal.
    """
    if systolic >= 180 or diastolic >= 120:
        return BloodPressureClassification(BloodPressureCategory.CRISIS, "both_high")
    if systolic >= 140 or diastolic >= 90:
        return BloodPressureClassification(
            BloodPressureCategory.HIGH_STAGE_2,
            _abnormal_reason(systolic, diastolic, 140, 90),
        )
    if systolic >= 130 or diastolic >= 80:
        return BloodPressureClassification(
            BloodPressureCategory.HIGH_STAGE_1,
            _abnormal_reason(systolic, diastolic, 130, 80),
        )
    if systolic < 90 or diastolic < 60:
        if systolic < 90 and diastolic < 60:
            reason = "both_low"
        else:
            reason = "low_systolic" if systolic < 90 else "low_diastolic"
        return BloodPressureClassification(BloodPressureCategory.LOW, reason)
    if systolic >= 120:
        return BloodPressureClassification(BloodPressureCategory.ELEVATED, None)
    return BloodPressureClassification(BloodPressureCategory.NORMAL, None)
