"""Record types exchanged with the data store.

Every record is keyed by user id. Timestamps are timezone-aware UTC; calendar
days (check-ins, hydration totals) are plain dates in the user's timezone.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


def new_id() -> str:
    return str(uuid.uuid4())


# =============================================================================
# Health records
# =============================================================================


@dataclass
class HealthEntry:
    """Generic typed entry: medication, symptom, vital or note."""

    user_id: str
    entry_type: str
    data: dict[str, Any]
    source: str = "ai_inferred"
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class CheckIn:
    """One row per user per day."""

    user_id: str
    day: date
    mood: str | None = None
    symptoms: list[str] = field(default_factory=list)
    medication_taken: bool | None = None
    notes: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class BloodPressureReading:
    user_id: str
    systolic: int
    diastolic: int
    category: str
    is_abnormal: bool
    abnormal_reason: str | None = None
    pulse: int | None = None
    position: str | None = None
    notes: str | None = None
    id: str = field(default_factory=new_id)
    recorded_at: datetime = field(default_factory=utc_now)


@dataclass
class HydrationEntry:
    """A drink plus the day's derived running total at the time it was logged."""

    user_id: str
    day: date
    amount_ml: int
    daily_total_ml: int
    notes: str | None = None
    id: str = field(default_factory=new_id)
    recorded_at: datetime = field(default_factory=utc_now)


# =============================================================================
# Reminders and care records
# =============================================================================


@dataclass
class Reminder:
    user_id: str
    title: str
    time: str
    days: list[int]
    reminder_type: str = "medication"
    description: str | None = None
    on_date: date | None = None
    interval_days: int | None = None
    is_active: bool = True
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class CareLog:
    user_id: str
    log_type: str
    title: str
    occurred_at: str
    diagnosis: str | None = None
    treatment: str | None = None
    notes: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class ClinicalDate:
    user_id: str
    clinical_date: date
    description: str
    clinical_type: str = "other"
    location: str | None = None
    provider_name: str | None = None
    preparation_notes: str | None = None
    notes: str | None = None
    reminder_enabled: bool = False
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)


# =============================================================================
# Conversation
# =============================================================================


@dataclass
class ChatMessage:
    user_id: str
    role: str
    content: str
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class ConversationSummary:
    """Rolling summary plus the message-count watermark it covers."""

    user_id: str
    text: str
    message_count: int
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class PendingConfirmation:
    """An approved-but-unconfirmed action awaiting the user's answer."""

    user_id: str
    request_id: str
    capability_id: str
    parameters: dict[str, Any]
    prompt: str
    sensitivity: str
    confidence: float = 1.0
    reasoning: str | None = None
    prepared: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=utc_now)


# =============================================================================
# Profile
# =============================================================================


@dataclass
class UserProfile:
    user_id: str
    full_name: str | None = None
    personality: str | None = None
    conditions: list[str] = field(default_factory=list)
    medications: list[str] = field(default_factory=list)
    familiarity: str | None = None
    tone: str | None = None


@dataclass
class LocationCircle:
    user_id: str
    name: str
    is_active: bool = True
    id: str = field(default_factory=new_id)
