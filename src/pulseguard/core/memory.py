"""Memory tiers assembled for each turn.

- Short-term: the last few messages of the conversation.
- Working: today's state (mood, last medication, active location).
- Long-term: stable facts from the user's profile.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from pulseguard.store.types import ChatMessage, UserProfile

DEFAULT_FIRST_NAME = "there"
DEFAULT_PERSONALITY = "friendly"


@dataclass
class ShortTermMemory:
    messages: list[ChatMessage] = field(default_factory=list)

    @property
    def message_count(self) -> int:
        return len(self.messages)


@dataclass
class LastMedication:
    name: str
    taken_at: datetime


@dataclass
class WorkingMemory:
    today_mood: str | None = None
    last_medication: LastMedication | None = None
    active_location: str | None = None
    last_check_in_date: date | None = None


@dataclass
class RelationshipState:
    familiarity: str = "familiar"
    tone: str = "casual"


@dataclass
class LongTermMemory:
    first_name: str
    personality: str
    conditions: list[str] = field(default_factory=list)
    medications: list[str] = field(default_factory=list)
    relationship: RelationshipState = field(default_factory=RelationshipState)

    @classmethod
    def minimal(cls) -> "LongTermMemory":
        """Stand-in when no profile exists yet."""
        return cls(
            first_name=DEFAULT_FIRST_NAME,
            personality=DEFAULT_PERSONALITY,
            relationship=RelationshipState(familiarity="new"),
        )

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "LongTermMemory":
        name = (profile.full_name or "").split()
        return cls(
            first_name=name[0] if name else DEFAULT_FIRST_NAME,
            personality=profile.personality or DEFAULT_PERSONALITY,
            conditions=list(profile.conditions),
            medications=list(profile.medications),
            relationship=RelationshipState(
                familiarity=profile.familiarity or "familiar",
                tone=profile.tone or "casual",
            ),
        )


@dataclass
class MoodTrend:
    recent: list[str]
    pattern: str


def mood_pattern(recent: list[str]) -> str:
    """Classify moods ordered most recent first.

    Only the latest mood is weighed: poor or crisis reads as declining,
    great or good as improving.
    """
    if len(recent) < 2:
        return "stable"
    latest = recent[0]
    if latest in ("crisis", "poor"):
        return "declining"
    if latest in ("great", "good"):
        return "improving"
    return "stable"
