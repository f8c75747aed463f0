"""Rolling conversation summary.

The summary is refreshed sparingly: every N messages, or when recent
messages move onto health topics the current summary does not cover, or
touch on a crisis. It is never refreshed during an emergency.
"""

import logging
import re
from dataclasses import dataclass, field

from pulseguard.config.models import MemoryConfig
from pulseguard.llm.base import LLMProvider, ProviderError
from pulseguard.llm.types import Message, Role
from pulseguard.store.protocols import ConversationStore, StoreError
from pulseguard.store.types import ChatMessage, ConversationSummary

logger = logging.getLogger(__name__)

NO_UPDATE = "NO_UPDATE"
MIN_SUMMARY_LENGTH = 20
DELTA_MESSAGES = 10
SHIFT_WINDOW = 5

REFRESH_INTERVAL = "interval"
REFRESH_TOPIC_SHIFT = "topic_shift"

DEFAULT_TOPICS: dict[str, tuple[str, ...]] = {
    "medication": ("medication", "med", "meds", "pill", "pills"),
    "symptom": ("symptom", "symptoms", "pain", "episode", "attack"),
    "mood": ("mood", "feel", "feeling", "felt"),
    "emergency": ("emergency",),
    "doctor": ("doctor", "appointment"),
}
DEFAULT_CRISIS_WORDS = ("emergency", "911", "urgent", "help", "crisis", "panic")

SUMMARY_SYSTEM_PROMPT = """You are a conversation summarizer. Write a VERY concise summary \
(at most {max_tokens} tokens, 2-3 sentences) that captures:
- Communication patterns (tone, style)
- Health-related patterns (adherence, stress trends)
- Relationship context (familiarity, comfort topics)
- Recurring themes

Do NOT quote messages. Describe patterns only."""


def _words(words: tuple[str, ...]) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(re.escape(w) for w in words) + r")\b", re.IGNORECASE)


@dataclass
class SummaryPolicy:
    """Decides when a summary refresh is worth a completion call.

    Topic and crisis word lists are tunable; they are a rough proxy for
    "something meaningful changed".
    """

    interval: int = 10
    min_messages_for_shift: int = 3
    topics: dict[str, tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_TOPICS))
    crisis_words: tuple[str, ...] = DEFAULT_CRISIS_WORDS

    def __post_init__(self) -> None:
        self._topic_patterns = {name: _words(words) for name, words in self.topics.items()}
        self._crisis = _words(self.crisis_words)

    @classmethod
    def from_config(cls, config: MemoryConfig) -> "SummaryPolicy":
        return cls(
            interval=config.summary_interval,
            min_messages_for_shift=config.summary_min_messages_for_shift,
        )

    def topics_in(self, text: str) -> set[str]:
        return {name for name, pattern in self._topic_patterns.items() if pattern.search(text)}

    def is_topic_shift(self, recent_messages: list[str], previous_summary: str | None) -> bool:
        if len(recent_messages) < self.min_messages_for_shift:
            return False
        text = " ".join(recent_messages[-SHIFT_WINDOW:])
        if self._crisis.search(text):
            return True
        if not previous_summary:
            return False
        previous = self.topics_in(previous_summary)
        current = self.topics_in(text)
        return bool(previous) and bool(current - previous) and len(current) > len(previous)

    def refresh_reason(
        self,
        messages_since: int,
        recent_messages: list[str],
        previous_summary: str | None,
        *,
        emergency: bool = False,
    ) -> str | None:
        """Why a refresh is due, or None when it is not."""
        if emergency:
            return None
        if messages_since >= self.interval:
            return REFRESH_INTERVAL
        if messages_since >= self.min_messages_for_shift and self.is_topic_shift(
            recent_messages, previous_summary
        ):
            return REFRESH_TOPIC_SHIFT
        return None

    def should_refresh(
        self,
        messages_since: int,
        recent_messages: list[str],
        previous_summary: str | None,
        *,
        emergency: bool = False,
    ) -> bool:
        return (
            self.refresh_reason(
                messages_since, recent_messages, previous_summary, emergency=emergency
            )
            is not None
        )


def _transcript(messages: list[ChatMessage]) -> str:
    return "\n".join(f"{m.role}: {m.content}" for m in messages)


class SummaryManager:
    def __init__(
        self,
        store: ConversationStore,
        llm: LLMProvider,
        config: MemoryConfig | None = None,
        *,
        model: str | None = None,
        policy: SummaryPolicy | None = None,
    ) -> None:
        self._store = store
        self._llm = llm
        self._config = config or MemoryConfig()
        self._model = model
        self._policy = policy or SummaryPolicy.from_config(self._config)

    @property
    def policy(self) -> SummaryPolicy:
        return self._policy

    async def refresh_if_needed(
        self, user_id: str, message_count: int, *, emergency: bool = False
    ) -> ConversationSummary | None:
        """Refresh the summary when the policy fires.

        Returns the saved summary, or None when nothing was written. Failures
        are logged and the previous summary stays in place.
        """
        if emergency:
            return None
        try:
            existing = await self._store.get_summary(user_id)
            since = message_count - existing.message_count if existing else message_count
            recent = await self._store.list_recent_messages(user_id, DELTA_MESSAGES)
            reason = self._policy.refresh_reason(
                since,
                [m.content for m in recent],
                existing.text if existing else None,
            )
            if reason is None or not recent:
                return None

            text = await self._generate(recent, existing.text if existing else None)
            if text and (existing is None or text != existing.text):
                summary = ConversationSummary(user_id, text, message_count)
            elif reason == REFRESH_INTERVAL:
                # Advance the watermark so the interval does not fire every turn
                summary = ConversationSummary(
                    user_id, existing.text if existing else "", message_count
                )
            else:
                return None

            await self._store.save_summary(summary)
            logger.info(
                "summary_refreshed",
                extra={"reason": reason, "message_count": message_count, "changed": bool(text)},
            )
            return summary
        except StoreError:
            logger.warning("summary_refresh_failed", exc_info=True)
            return None

    async def _generate(self, recent: list[ChatMessage], previous: str | None) -> str | None:
        if previous:
            content = (
                f"Previous summary: {previous}\n\n"
                f"Update ONLY if something meaningful changed. If not, return \"{NO_UPDATE}\". "
                f"Recent messages:\n{_transcript(recent)}"
            )
        else:
            content = (
                f"Create a concise summary (max {self._config.summary_max_tokens} tokens) "
                f"based on:\n{_transcript(recent)}"
            )

        try:
            response = await self._llm.complete(
                [Message(role=Role.USER, content=content)],
                model=self._model,
                system=SUMMARY_SYSTEM_PROMPT.format(max_tokens=self._config.summary_max_tokens),
                max_tokens=self._config.summary_max_tokens,
                temperature=0.2,
            )
        except ProviderError:
            logger.warning("summary_generation_failed", exc_info=True)
            return None

        text = response.text.strip()
        if NO_UPDATE in text.upper() or len(text) < MIN_SUMMARY_LENGTH:
            return None
        return text
