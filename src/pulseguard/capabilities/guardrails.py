"""Safety guardrails applied before any action runs."""

import re
from dataclasses import dataclass, field

from pulseguard.capabilities.types import (
    ActionRequest,
    CapabilityDefinition,
    Sensitivity,
)
from pulseguard.config.models import GuardrailConfig

CRISIS_FLAG = "crisis"
# Capabilities whose mood parameter can carry a crisis value
MOOD_CAPABILITIES = frozenset({"update_mood", "create_check_in"})

LOW_CONFIDENCE_REASON = "Confidence too low; ask the user instead of guessing"
MISSING_INTENT_REASON = (
    "Critical actions need an explicit request from the user "
    "(for example 'log' or 'record'); ask the user to confirm"
)
UNCLEAR_INTENT_REASON = (
    "The user's message does not clearly ask for this; "
    "ask the user instead of guessing"
)


@dataclass
class GuardrailDecision:
    allowed: bool
    reason: str | None = None
    flags: set[str] = field(default_factory=set)

    @property
    def crisis(self) -> bool:
        return CRISIS_FLAG in self.flags


def _keyword_pattern(keywords: list[str]) -> re.Pattern[str] | None:
    if not keywords:
        return None
    alternatives = "|".join(re.escape(k) for k in keywords)
    # Whole words plus simple inflections: pill/pills, log/logged, visit/visited
    return re.compile(
        rf"\b(?:{alternatives})(?:s|es|d|ed|ged|ing|ging)?\b", re.IGNORECASE
    )


class GuardrailEvaluator:
    """Decides whether a valid request may run.

    Denies whenever evidence is missing; the caller then asks the user.
    """

    def __init__(self, config: GuardrailConfig | None = None) -> None:
        self._config = config or GuardrailConfig()
        self._explicit = _keyword_pattern(self._config.explicit_intent_keywords)
        self._capability_patterns = {
            capability_id: _keyword_pattern(keywords)
            for capability_id, keywords in self._config.capability_keywords.items()
        }

    @property
    def min_confidence(self) -> float:
        return self._config.min_confidence

    def evaluate(
        self,
        request: ActionRequest,
        definition: CapabilityDefinition,
        user_message: str | None,
    ) -> GuardrailDecision:
        if request.confidence < self._config.min_confidence:
            return GuardrailDecision(False, LOW_CONFIDENCE_REASON)

        message = user_message or ""

        if definition.sensitivity == Sensitivity.CRITICAL:
            if self._explicit is None or not self._explicit.search(message):
                return GuardrailDecision(False, MISSING_INTENT_REASON)

        if definition.sensitivity == Sensitivity.HIGH:
            pattern = self._capability_patterns.get(definition.id)
            if pattern is not None and not pattern.search(message):
                return GuardrailDecision(False, UNCLEAR_INTENT_REASON)

        return GuardrailDecision(True, flags=self.flags(request, definition))

    def flags(self, request: ActionRequest, definition: CapabilityDefinition) -> set[str]:
        """Flags that travel with an allowed request. Never blocks."""
        flags: set[str] = set()
        if definition.id in MOOD_CAPABILITIES:
            mood = request.parameters.get("mood")
            if isinstance(mood, str) and mood.lower() in self._config.crisis_values:
                flags.add(CRISIS_FLAG)
        return flags
