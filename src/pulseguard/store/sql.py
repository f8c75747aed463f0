"""SQLite-backed HealthStore on async SQLAlchemy."""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from pulseguard.db.models import (
    BloodPressureRow,
    CareLogRow,
    ChatMessageRow,
    CheckInRow,
    ClinicalDateRow,
    ConversationSummaryRow,
    HealthEntryRow,
    HydrationRow,
    LocationCircleRow,
    PendingConfirmationRow,
    ReminderRow,
    UserProfileRow,
)
from pulseguard.store.memory import CHECK_IN_FIELDS
from pulseguard.store.protocols import StoreError
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
    new_id,
    utc_now,
)

if TYPE_CHECKING:
    from pulseguard.db.engine import Database

logger = logging.getLogger(__name__)


def _utc(value: datetime) -> datetime:
    """SQLite drops tzinfo; stored values are always UTC."""
    return value if value.tzinfo else value.replace(tzinfo=UTC)


# =============================================================================
# Row mappers
# =============================================================================


def row_to_health_entry(row: HealthEntryRow) -> HealthEntry:
    return HealthEntry(
        id=row.id,
        user_id=row.user_id,
        entry_type=row.entry_type,
        data=dict(row.data or {}),
        source=row.source,
        created_at=_utc(row.created_at),
    )


def row_to_check_in(row: CheckInRow) -> CheckIn:
    return CheckIn(
        id=row.id,
        user_id=row.user_id,
        day=row.day,
        mood=row.mood,
        symptoms=list(row.symptoms or []),
        medication_taken=row.medication_taken,
        notes=row.notes,
        created_at=_utc(row.created_at),
        updated_at=_utc(row.updated_at),
    )


def row_to_blood_pressure(row: BloodPressureRow) -> BloodPressureReading:
    return BloodPressureReading(
        id=row.id,
        user_id=row.user_id,
        systolic=row.systolic,
        diastolic=row.diastolic,
        category=row.category,
        is_abnormal=row.is_abnormal,
        abnormal_reason=row.abnormal_reason,
        pulse=row.pulse,
        position=row.position,
        notes=row.notes,
        recorded_at=_utc(row.recorded_at),
    )


def row_to_hydration(row: HydrationRow) -> HydrationEntry:
    return HydrationEntry(
        id=row.id,
        user_id=row.user_id,
        day=row.day,
        amount_ml=row.amount_ml,
        daily_total_ml=row.daily_total_ml,
        notes=row.notes,
        recorded_at=_utc(row.recorded_at),
    )


def row_to_reminder(row: ReminderRow) -> Reminder:
    return Reminder(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        time=row.time,
        days=[int(d) for d in row.days or []],
        reminder_type=row.reminder_type,
        description=row.description,
        on_date=row.on_date,
        interval_days=row.interval_days,
        is_active=row.is_active,
        created_at=_utc(row.created_at),
    )


def row_to_care_log(row: CareLogRow) -> CareLog:
    return CareLog(
        id=row.id,
        user_id=row.user_id,
        log_type=row.log_type,
        title=row.title,
        occurred_at=row.occurred_at,
        diagnosis=row.diagnosis,
        treatment=row.treatment,
        notes=row.notes,
        created_at=_utc(row.created_at),
    )


def row_to_clinical_date(row: ClinicalDateRow) -> ClinicalDate:
    return ClinicalDate(
        id=row.id,
        user_id=row.user_id,
        clinical_date=row.clinical_date,
        description=row.description,
        clinical_type=row.clinical_type,
        location=row.location,
        provider_name=row.provider_name,
        preparation_notes=row.preparation_notes,
        notes=row.notes,
        reminder_enabled=row.reminder_enabled,
        created_at=_utc(row.created_at),
    )


def row_to_message(row: ChatMessageRow) -> ChatMessage:
    return ChatMessage(
        id=row.id,
        user_id=row.user_id,
        role=row.role,
        content=row.content,
        created_at=_utc(row.created_at),
    )


def row_to_pending(row: PendingConfirmationRow) -> PendingConfirmation:
    return PendingConfirmation(
        user_id=row.user_id,
        request_id=row.request_id,
        capability_id=row.capability_id,
        parameters=dict(row.parameters or {}),
        prompt=row.prompt,
        sensitivity=row.sensitivity,
        confidence=row.confidence,
        reasoning=row.reasoning,
        prepared=dict(row.prepared) if row.prepared is not None else None,
        created_at=_utc(row.created_at),
    )


# =============================================================================
# Store
# =============================================================================


class SqlHealthStore:
    """HealthStore backed by a connected Database.

    Every operation runs in its own session. SQLAlchemy errors surface as
    StoreError so callers never depend on the driver.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    # -- health records --------------------------------------------------------

    async def add_health_entry(self, entry: HealthEntry) -> HealthEntry:
        await self._insert(
            HealthEntryRow(
                id=entry.id,
                user_id=entry.user_id,
                entry_type=entry.entry_type,
                data=entry.data,
                source=entry.source,
                created_at=entry.created_at,
            ),
            "health entry",
        )
        return entry

    async def list_health_entries(
        self,
        user_id: str,
        entry_type: str | None = None,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[HealthEntry]:
        stmt = select(HealthEntryRow).where(HealthEntryRow.user_id == user_id)
        if entry_type is not None:
            stmt = stmt.where(HealthEntryRow.entry_type == entry_type)
        if since is not None:
            stmt = stmt.where(HealthEntryRow.created_at >= since)
        stmt = stmt.order_by(HealthEntryRow.created_at.desc()).limit(limit)
        rows = await self._fetch(stmt, "health entries")
        return [row_to_health_entry(r) for r in rows]

    async def get_check_in(self, user_id: str, day: date) -> CheckIn | None:
        stmt = select(CheckInRow).where(
            CheckInRow.user_id == user_id, CheckInRow.day == day
        )
        rows = await self._fetch(stmt, "check-in")
        return row_to_check_in(rows[0]) if rows else None

    async def upsert_check_in(
        self, user_id: str, day: date, updates: dict[str, Any]
    ) -> tuple[CheckIn, bool]:
        unknown = set(updates) - CHECK_IN_FIELDS
        if unknown:
            raise ValueError(f"Unknown check-in fields: {', '.join(sorted(unknown))}")

        try:
            async with self._db.session() as session:
                result = await session.execute(
                    select(CheckInRow).where(
                        CheckInRow.user_id == user_id, CheckInRow.day == day
                    )
                )
                row = result.scalar_one_or_none()
                created = row is None
                if row is None:
                    row = CheckInRow(
                        id=new_id(),
                        user_id=user_id,
                        day=day,
                        symptoms=[],
                        created_at=utc_now(),
                        updated_at=utc_now(),
                    )
                    session.add(row)
                for key, value in updates.items():
                    setattr(row, key, value)
                row.updated_at = utc_now()
                await session.flush()
                check_in = row_to_check_in(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save check-in: {e}") from e
        return check_in, created

    async def list_check_ins(
        self, user_id: str, since: date | None = None, limit: int | None = None
    ) -> list[CheckIn]:
        stmt = select(CheckInRow).where(CheckInRow.user_id == user_id)
        if since is not None:
            stmt = stmt.where(CheckInRow.day >= since)
        stmt = stmt.order_by(CheckInRow.day.desc()).limit(limit)
        rows = await self._fetch(stmt, "check-ins")
        return [row_to_check_in(r) for r in rows]

    async def add_blood_pressure(
        self, reading: BloodPressureReading
    ) -> BloodPressureReading:
        await self._insert(
            BloodPressureRow(
                id=reading.id,
                user_id=reading.user_id,
                systolic=reading.systolic,
                diastolic=reading.diastolic,
                pulse=reading.pulse,
                position=reading.position,
                notes=reading.notes,
                category=reading.category,
                is_abnormal=reading.is_abnormal,
                abnormal_reason=reading.abnormal_reason,
                recorded_at=reading.recorded_at,
            ),
            "blood pressure reading",
        )
        return reading

    async def list_blood_pressure(
        self, user_id: str, since: datetime | None = None, limit: int | None = None
    ) -> list[BloodPressureReading]:
        stmt = select(BloodPressureRow).where(BloodPressureRow.user_id == user_id)
        if since is not None:
            stmt = stmt.where(BloodPressureRow.recorded_at >= since)
        stmt = stmt.order_by(BloodPressureRow.recorded_at.desc()).limit(limit)
        rows = await self._fetch(stmt, "blood pressure readings")
        return [row_to_blood_pressure(r) for r in rows]

    async def add_hydration(self, entry: HydrationEntry) -> HydrationEntry:
        await self._insert(
            HydrationRow(
                id=entry.id,
                user_id=entry.user_id,
                day=entry.day,
                amount_ml=entry.amount_ml,
                daily_total_ml=entry.daily_total_ml,
                notes=entry.notes,
                recorded_at=entry.recorded_at,
            ),
            "hydration entry",
        )
        return entry

    async def list_hydration(self, user_id: str, day: date) -> list[HydrationEntry]:
        stmt = (
            select(HydrationRow)
            .where(HydrationRow.user_id == user_id, HydrationRow.day == day)
            .order_by(HydrationRow.recorded_at)
        )
        rows = await self._fetch(stmt, "hydration entries")
        return [row_to_hydration(r) for r in rows]

    # -- care ------------------------------------------------------------------

    async def add_reminder(self, reminder: Reminder) -> Reminder:
        await self._insert(
            ReminderRow(
                id=reminder.id,
                user_id=reminder.user_id,
                title=reminder.title,
                time=reminder.time,
                days=list(reminder.days),
                reminder_type=reminder.reminder_type,
                description=reminder.description,
                on_date=reminder.on_date,
                interval_days=reminder.interval_days,
                is_active=reminder.is_active,
                created_at=reminder.created_at,
            ),
            "reminder",
        )
        return reminder

    async def list_reminders(
        self, user_id: str, active_only: bool = True
    ) -> list[Reminder]:
        stmt = select(ReminderRow).where(ReminderRow.user_id == user_id)
        if active_only:
            stmt = stmt.where(ReminderRow.is_active.is_(True))
        rows = await self._fetch(stmt.order_by(ReminderRow.created_at), "reminders")
        return [row_to_reminder(r) for r in rows]

    async def add_care_log(self, log: CareLog) -> CareLog:
        await self._insert(
            CareLogRow(
                id=log.id,
                user_id=log.user_id,
                log_type=log.log_type,
                title=log.title,
                occurred_at=log.occurred_at,
                diagnosis=log.diagnosis,
                treatment=log.treatment,
                notes=log.notes,
                created_at=log.created_at,
            ),
            "care log",
        )
        return log

    async def list_care_logs(
        self, user_id: str, limit: int | None = None
    ) -> list[CareLog]:
        stmt = (
            select(CareLogRow)
            .where(CareLogRow.user_id == user_id)
            .order_by(CareLogRow.created_at.desc())
            .limit(limit)
        )
        rows = await self._fetch(stmt, "care logs")
        return [row_to_care_log(r) for r in rows]

    async def add_clinical_date(self, clinical_date: ClinicalDate) -> ClinicalDate:
        await self._insert(
            ClinicalDateRow(
                id=clinical_date.id,
                user_id=clinical_date.user_id,
                clinical_date=clinical_date.clinical_date,
                description=clinical_date.description,
                clinical_type=clinical_date.clinical_type,
                location=clinical_date.location,
                provider_name=clinical_date.provider_name,
                preparation_notes=clinical_date.preparation_notes,
                notes=clinical_date.notes,
                reminder_enabled=clinical_date.reminder_enabled,
                created_at=clinical_date.created_at,
            ),
            "clinical date",
        )
        return clinical_date

    async def list_clinical_dates(
        self, user_id: str, from_day: date | None = None
    ) -> list[ClinicalDate]:
        stmt = select(ClinicalDateRow).where(ClinicalDateRow.user_id == user_id)
        if from_day is not None:
            stmt = stmt.where(ClinicalDateRow.clinical_date >= from_day)
        rows = await self._fetch(
            stmt.order_by(ClinicalDateRow.clinical_date), "clinical dates"
        )
        return [row_to_clinical_date(r) for r in rows]

    # -- conversation ----------------------------------------------------------

    async def add_message(self, message: ChatMessage) -> ChatMessage:
        await self._insert(
            ChatMessageRow(
                id=message.id,
                user_id=message.user_id,
                role=message.role,
                content=message.content,
                created_at=message.created_at,
            ),
            "chat message",
        )
        return message

    async def list_recent_messages(self, user_id: str, limit: int) -> list[ChatMessage]:
        if limit <= 0:
            return []
        stmt = (
            select(ChatMessageRow)
            .where(ChatMessageRow.user_id == user_id)
            .order_by(ChatMessageRow.created_at.desc())
            .limit(limit)
        )
        rows = await self._fetch(stmt, "chat messages")
        return [row_to_message(r) for r in reversed(rows)]

    async def count_messages(self, user_id: str) -> int:
        stmt = select(func.count()).select_from(ChatMessageRow).where(
            ChatMessageRow.user_id == user_id
        )
        try:
            async with self._db.session() as session:
                return (await session.execute(stmt)).scalar_one()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to count messages: {e}") from e

    async def get_summary(self, user_id: str) -> ConversationSummary | None:
        rows = await self._fetch(
            select(ConversationSummaryRow).where(
                ConversationSummaryRow.user_id == user_id
            ),
            "summary",
        )
        if not rows:
            return None
        row = rows[0]
        return ConversationSummary(
            user_id=row.user_id,
            text=row.summary_text,
            message_count=row.message_count,
            updated_at=_utc(row.updated_at),
        )

    async def save_summary(self, summary: ConversationSummary) -> None:
        try:
            async with self._db.session() as session:
                await session.merge(
                    ConversationSummaryRow(
                        user_id=summary.user_id,
                        summary_text=summary.text,
                        message_count=summary.message_count,
                        updated_at=summary.updated_at,
                    )
                )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save summary: {e}") from e

    # -- confirmations ---------------------------------------------------------

    async def save_pending_confirmation(self, pending: PendingConfirmation) -> None:
        try:
            async with self._db.session() as session:
                await session.merge(
                    PendingConfirmationRow(
                        user_id=pending.user_id,
                        request_id=pending.request_id,
                        capability_id=pending.capability_id,
                        parameters=pending.parameters,
                        prompt=pending.prompt,
                        sensitivity=pending.sensitivity,
                        confidence=pending.confidence,
                        reasoning=pending.reasoning,
                        prepared=pending.prepared,
                        created_at=pending.created_at,
                    )
                )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save pending confirmation: {e}") from e

    async def get_pending_confirmation(
        self, user_id: str, request_id: str
    ) -> PendingConfirmation | None:
        rows = await self._fetch(
            select(PendingConfirmationRow).where(
                PendingConfirmationRow.user_id == user_id,
                PendingConfirmationRow.request_id == request_id,
            ),
            "pending confirmation",
        )
        return row_to_pending(rows[0]) if rows else None

    async def delete_pending_confirmation(self, user_id: str, request_id: str) -> bool:
        try:
            async with self._db.session() as session:
                result = await session.execute(
                    delete(PendingConfirmationRow).where(
                        PendingConfirmationRow.user_id == user_id,
                        PendingConfirmationRow.request_id == request_id,
                    )
                )
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete pending confirmation: {e}") from e

    async def list_pending_confirmations(
        self, user_id: str
    ) -> list[PendingConfirmation]:
        rows = await self._fetch(
            select(PendingConfirmationRow)
            .where(PendingConfirmationRow.user_id == user_id)
            .order_by(PendingConfirmationRow.created_at),
            "pending confirmations",
        )
        return [row_to_pending(r) for r in rows]

    # -- profile ---------------------------------------------------------------

    async def get_profile(self, user_id: str) -> UserProfile | None:
        rows = await self._fetch(
            select(UserProfileRow).where(UserProfileRow.user_id == user_id), "profile"
        )
        if not rows:
            return None
        row = rows[0]
        return UserProfile(
            user_id=row.user_id,
            full_name=row.full_name,
            personality=row.personality,
            conditions=list(row.conditions or []),
            medications=list(row.medications or []),
            familiarity=row.familiarity,
            tone=row.tone,
        )

    async def save_profile(self, profile: UserProfile) -> None:
        try:
            async with self._db.session() as session:
                await session.merge(
                    UserProfileRow(
                        user_id=profile.user_id,
                        full_name=profile.full_name,
                        personality=profile.personality,
                        conditions=list(profile.conditions),
                        medications=list(profile.medications),
                        familiarity=profile.familiarity,
                        tone=profile.tone,
                    )
                )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save profile: {e}") from e

    async def get_active_location(self, user_id: str) -> LocationCircle | None:
        rows = await self._fetch(
            select(LocationCircleRow)
            .where(
                LocationCircleRow.user_id == user_id,
                LocationCircleRow.is_active.is_(True),
            )
            .limit(1),
            "location",
        )
        if not rows:
            return None
        row = rows[0]
        return LocationCircle(
            id=row.id, user_id=row.user_id, name=row.name, is_active=row.is_active
        )

    async def save_location(self, location: LocationCircle) -> None:
        try:
            async with self._db.session() as session:
                await session.merge(
                    LocationCircleRow(
                        id=location.id,
                        user_id=location.user_id,
                        name=location.name,
                        is_active=location.is_active,
                    )
                )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save location: {e}") from e

    # -- helpers ---------------------------------------------------------------

    async def _insert(self, row: Any, what: str) -> None:
        try:
            async with self._db.session() as session:
                session.add(row)
        except SQLAlchemyError as e:
            logger.warning("store_insert_failed", extra={"record": what})
            raise StoreError(f"Failed to save {what}: {e}") from e

    async def _fetch(self, stmt: Any, what: str) -> list[Any]:
        try:
            async with self._db.session() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.warning("store_read_failed", extra={"record": what})
            raise StoreError(f"Failed to load {what}: {e}") from e
