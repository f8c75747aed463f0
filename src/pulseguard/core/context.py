"""Context assembly for each conversation turn.

Every tier is read fresh from the store. A tier that fails to load is logged
and replaced by its empty form, so the companion can always answer.
"""

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import TypeVar

from pulseguard.config.models import MemoryConfig
from pulseguard.core.checkin import CheckInStatus, check_in_status
from pulseguard.core.intent import Intent, detect_intent
from pulseguard.core.memory import (
    LastMedication,
    LongTermMemory,
    MoodTrend,
    ShortTermMemory,
    WorkingMemory,
    mood_pattern,
)
from pulseguard.store.protocols import HealthStore
from pulseguard.store.types import ConversationSummary

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class MemoryContext:
    """Everything known about the user for one turn."""

    long_term: LongTermMemory
    working: WorkingMemory = field(default_factory=WorkingMemory)
    short_term: ShortTermMemory = field(default_factory=ShortTermMemory)
    summary: ConversationSummary | None = None
    mood_trend: MoodTrend | None = None
    check_in: CheckInStatus | None = None
    intent: Intent = field(default_factory=Intent)
    has_profile: bool = False


async def _tier(name: str, loader: Awaitable[T], default: T) -> T:
    try:
        return await loader
    except Exception:
        logger.warning("context_tier_failed", extra={"tier": name}, exc_info=True)
        return default


class ContextAssembler:
    """Loads memory tiers for a user, fetching only what the message needs."""

    def __init__(self, store: HealthStore, config: MemoryConfig | None = None) -> None:
        self._store = store
        self._config = config or MemoryConfig()

    async def assemble(
        self,
        user_id: str,
        user_message: str,
        now: datetime,
        *,
        emergency: bool = False,
    ) -> MemoryContext:
        """Gather context for one message.

        Args:
            user_id: Whose memory to load.
            user_message: The incoming message, used for intent detection.
            now: Current time in the user's timezone.
            emergency: Skip the optional tiers.

        Returns:
            A context that is always usable, even when the store is failing.
        """
        intent = detect_intent(user_message)
        today = now.date()

        long_term, working, summary, short_term = await asyncio.gather(
            _tier("long_term", self._load_long_term(user_id), None),
            _tier("working", self._load_working(user_id, today, intent), WorkingMemory()),
            _tier("summary", self._store.get_summary(user_id), None),
            _tier("short_term", self._load_short_term(user_id), ShortTermMemory()),
        )

        mood_trend = None
        check_in = None
        if not emergency:
            if intent.mood or intent.health_history:
                mood_trend = await _tier("mood_trend", self._load_mood_trend(user_id, today), None)
            check_in = await _tier(
                "check_in", check_in_status(self._store, user_id, today), None
            )

        return MemoryContext(
            long_term=long_term or LongTermMemory.minimal(),
            working=working,
            short_term=short_term,
            summary=summary,
            mood_trend=mood_trend,
            check_in=check_in,
            intent=intent,
            has_profile=long_term is not None,
        )

    async def _load_long_term(self, user_id: str) -> LongTermMemory | None:
        profile = await self._store.get_profile(user_id)
        if profile is None:
            return None
        return LongTermMemory.from_profile(profile)

    async def _load_working(self, user_id: str, today: date, intent: Intent) -> WorkingMemory:
        working = WorkingMemory()

        check_in = await self._store.get_check_in(user_id, today)
        if check_in is not None and check_in.mood:
            working.today_mood = check_in.mood

        latest = await self._store.list_check_ins(user_id, limit=1)
        if latest:
            working.last_check_in_date = latest[0].day

        location = await self._store.get_active_location(user_id)
        if location is not None:
            working.active_location = location.name

        if intent.medication:
            entries = await self._store.list_health_entries(
                user_id, entry_type="medication", limit=1
            )
            if entries and entries[0].data.get("medication_name"):
                working.last_medication = LastMedication(
                    name=str(entries[0].data["medication_name"]),
                    taken_at=entries[0].created_at,
                )
        return working

    async def _load_short_term(self, user_id: str) -> ShortTermMemory:
        messages = await self._store.list_recent_messages(
            user_id, self._config.short_term_limit
        )
        return ShortTermMemory(messages=messages)

    async def _load_mood_trend(self, user_id: str, today: date) -> MoodTrend | None:
        since = today - timedelta(days=self._config.mood_trend_days)
        check_ins = await self._store.list_check_ins(
            user_id, since=since, limit=self._config.mood_trend_limit
        )
        recent = [c.mood for c in check_ins if c.mood]
        if not recent:
            return None
        return MoodTrend(recent=recent, pattern=mood_pattern(recent))
