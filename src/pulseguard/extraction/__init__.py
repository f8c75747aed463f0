"""Natural-language extraction: dates, reminders, vitals, quantities.

Every parser returns a typed result carrying a confidence score, or None
when the text does not resolve cleanly. None of them raise on user text.
"""

from pulseguard.extraction.dates import (
    DateMatch,
    Recurrence,
    day_of_week,
    describe_days,
    parse_date,
    parse_recurrence,
    parse_time_of_day,
)
from pulseguard.extraction.hydration import HydrationExtraction, parse_hydration
from pulseguard.extraction.recommendations import (
    RecommendationExtraction,
    parse_recommendation,
    validate_recommendation,
)
from pulseguard.extraction.reminders import (
    ReminderExtraction,
    parse_reminder,
    validate_reminder,
)
from pulseguard.extraction.visits import (
    VisitOutcomeExtraction,
    parse_visit_outcome,
    validate_visit_outcome,
)
from pulseguard.extraction.vitals import (
    BloodPressureCategory,
    BloodPressureClassification,
    BloodPressureExtraction,
    classify_blood_pressure,
    parse_blood_pressure,
)

__all__ = [
    "BloodPressureCategory",
    "BloodPressureClassification",
    "BloodPressureExtraction",
    "DateMatch",
    "HydrationExtraction",
    "RecommendationExtraction",
    "Recurrence",
    "ReminderExtraction",
    "VisitOutcomeExtraction",
    "classify_blood_pressure",
    "day_of_week",
    "describe_days",
    "parse_blood_pressure",
    "parse_date",
    "parse_hydration",
    "parse_recommendation",
    "parse_recurrence",
    "parse_reminder",
    "parse_time_of_day",
    "parse_visit_outcome",
    "validate_recommendation",
    "validate_reminder",
    "validate_visit_outcome",
]
