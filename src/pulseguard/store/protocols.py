"""Protocol definitions for the data store.

The action engine and context assembler depend only on these interfaces,
never on a storage technology. Implementations: InMemoryHealthStore for
tests and demos, SqlHealthStore for SQLite via async SQLAlchemy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import date, datetime

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


class StoreError(Exception):
    """A data-store read or write failed."""


@runtime_checkable
class HealthRecordStore(Protocol):
    """Health entries, check-ins and vitals."""

    async def add_health_entry(self, entry: HealthEntry) -> HealthEntry:
        """Insert a health entry."""
        ...

    async def list_health_entries(
        self,
        user_id: str,
        entry_type: str | None = None,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[HealthEntry]:
        """List entries, newest first."""
        ...

    async def get_check_in(self, user_id: str, day: date) -> CheckIn | None:
        """Get the check-in for a calendar day."""
        ...

    async def upsert_check_in(
        self, user_id: str, day: date, updates: dict[str, Any]
    ) -> tuple[CheckIn, bool]:
        """Create or update the day's check-in. Returns (check_in, created)."""
        ...

    async def list_check_ins(
        self, user_id: str, since: date | None = None, limit: int | None = None
    ) -> list[CheckIn]:
        """List check-ins, most recent day first."""
        ...

    async def add_blood_pressure(
        self, reading: BloodPressureReading
    ) -> BloodPressureReading:
        ...

    async def list_blood_pressure(
        self, user_id: str, since: datetime | None = None, limit: int | None = None
    ) -> list[BloodPressureReading]:
        """List readings, newest first."""
        ...

    async def add_hydration(self, entry: HydrationEntry) -> HydrationEntry:
        ...

    async def list_hydration(self, user_id: str, day: date) -> list[HydrationEntry]:
        """List a day's hydration entries in logging order."""
        ...


@runtime_checkable
class CareStore(Protocol):
    """Reminders, care logs and clinical dates."""

    async def add_reminder(self, reminder: Reminder) -> Reminder:
        ...

    async def list_reminders(
        self, user_id: str, active_only: bool = True
    ) -> list[Reminder]:
        ...

    async def add_care_log(self, log: CareLog) -> CareLog:
        ...

    async def list_care_logs(
        self, user_id: str, limit: int | None = None
    ) -> list[CareLog]:
        """List care logs, newest first."""
        ...

    async def add_clinical_date(self, clinical_date: ClinicalDate) -> ClinicalDate:
        ...

    async def list_clinical_dates(
        self, user_id: str, from_day: date | None = None
    ) -> list[ClinicalDate]:
        """List clinical dates in calendar order."""
        ...


@runtime_checkable
class ConversationStore(Protocol):
    """Chat history and the rolling summary."""

    async def add_message(self, message: ChatMessage) -> ChatMessage:
        ...

    async def list_recent_messages(self, user_id: str, limit: int) -> list[ChatMessage]:
        """Return the last ``limit`` messages, oldest first."""
        ...

    async def count_messages(self, user_id: str) -> int:
        ...

    async def get_summary(self, user_id: str) -> ConversationSummary | None:
        ...

    async def save_summary(self, summary: ConversationSummary) -> None:
        ...


@runtime_checkable
class ConfirmationStore(Protocol):
    """Pending confirmations keyed by (user id, request id)."""

    async def save_pending_confirmation(self, pending: PendingConfirmation) -> None:
        """Insert or replace the entry for this request id."""
        ...

    async def get_pending_confirmation(
        self, user_id: str, request_id: str
    ) -> PendingConfirmation | None:
        ...

    async def delete_pending_confirmation(self, user_id: str, request_id: str) -> bool:
        """Remove an entry. Returns False if nothing was pending."""
        ...

    async def list_pending_confirmations(
        self, user_id: str
    ) -> list[PendingConfirmation]:
        ...


@runtime_checkable
class ProfileStore(Protocol):
    """Stable user facts."""

    async def get_profile(self, user_id: str) -> UserProfile | None:
        ...

    async def save_profile(self, profile: UserProfile) -> None:
        ...

    async def get_active_location(self, user_id: str) -> LocationCircle | None:
        ...

    async def save_location(self, location: LocationCircle) -> None:
        ...


@runtime_checkable
class HealthStore(
    HealthRecordStore, CareStore, ConversationStore, ConfirmationStore, ProfileStore, Protocol
):
    """Everything the engine reads and writes."""
