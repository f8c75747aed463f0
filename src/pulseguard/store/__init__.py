"""Data store interface and implementations."""

from pulseguard.store.memory import InMemoryHealthStore
from pulseguard.store.protocols import (
    CareStore,
    ConfirmationStore,
    ConversationStore,
    HealthRecordStore,
    HealthStore,
    ProfileStore,
    StoreError,
)
from pulseguard.store.sql import SqlHealthStore
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
)

__all__ = [
    "BloodPressureReading",
    "CareLog",
    "CareStore",
    "ChatMessage",
    "CheckIn",
    "ClinicalDate",
    "ConfirmationStore",
    "ConversationStore",
    "ConversationSummary",
    "HealthEntry",
    "HealthRecordStore",
    "HealthStore",
    "HydrationEntry",
    "InMemoryHealthStore",
    "LocationCircle",
    "PendingConfirmation",
    "ProfileStore",
    "Reminder",
    "SqlHealthStore",
    "StoreError",
    "UserProfile",
]
