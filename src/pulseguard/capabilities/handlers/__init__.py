"""Capability handlers."""

from pulseguard.capabilities.handlers.base import Handler, HandlerContext
from pulseguard.capabilities.handlers.care import (
    AddClinicalDateHandler,
    CreateCareLogHandler,
    LogDoctorVisitHandler,
    LogDoctorVisitOutcomeHandler,
)
from pulseguard.capabilities.handlers.health import (
    CreateCheckInHandler,
    LogMedicationHandler,
    SaveHealthEntryHandler,
    UpdateMoodHandler,
)
from pulseguard.capabilities.handlers.reminders import (
    CreateReminderHandler,
    ParseDoctorRecommendationHandler,
    ScheduleReminderHandler,
)
from pulseguard.capabilities.handlers.summary import GetTodaySummaryHandler
from pulseguard.capabilities.handlers.vitals import (
    LogBloodPressureHandler,
    LogHydrationHandler,
)


def default_handlers() -> list[Handler]:
    """One handler for each built-in capability."""
    return [
        LogMedicationHandler(),
        CreateCheckInHandler(),
        UpdateMoodHandler(),
        SaveHealthEntryHandler(),
        CreateReminderHandler(),
        ScheduleReminderHandler(),
        CreateCareLogHandler(),
        LogDoctorVisitHandler(),
        LogDoctorVisitOutcomeHandler(),
        ParseDoctorRecommendationHandler(),
        AddClinicalDateHandler(),
        LogBloodPressureHandler(),
        LogHydrationHandler(),
        GetTodaySummaryHandler(),
    ]


__all__ = [
    "AddClinicalDateHandler",
    "CreateCareLogHandler",
    "CreateCheckInHandler",
    "CreateReminderHandler",
    "GetTodaySummaryHandler",
    "Handler",
    "HandlerContext",
    "LogBloodPressureHandler",
    "LogDoctorVisitHandler",
    "LogDoctorVisitOutcomeHandler",
    "LogHydrationHandler",
    "LogMedicationHandler",
    "ParseDoctorRecommendationHandler",
    "SaveHealthEntryHandler",
    "ScheduleReminderHandler",
    "UpdateMoodHandler",
    "default_handlers",
]
