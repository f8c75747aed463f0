"""System prompt builder for the companion."""

from datetime import datetime

from pulseguard.capabilities.prompt import build_capability_prompt
from pulseguard.capabilities.registry import CapabilityRegistry
from pulseguard.config.models import PulseGuardConfig
from pulseguard.core.checkin import check_in_prompt
from pulseguard.core.context import MemoryContext
from pulseguard.core.metadata import RequestMetadata, format_metadata

MEMORY_RULES = [
    "- You do NOT have perfect memory. Use phrases like \"last time you mentioned...\" "
    "or \"from what I remember...\"",
    "- If context is unclear, ask clarifying questions instead of guessing.",
    "- Never claim to remember something you're not certain about.",
    "- Reference the conversation summary for patterns, not specific quotes.",
]


def format_hours_ago(then: datetime, now: datetime) -> int:
    return int((now - then).total_seconds() // 3600)


def build_context_prompt(context: MemoryContext, now: datetime) -> str:
    """Render the "User Context" block plus memory rules."""
    long_term = context.long_term
    working = context.working
    lines = [
        f"You're chatting with {long_term.first_name}.",
        f"Your personality mode: {long_term.personality}.",
    ]

    if long_term.conditions:
        conditions = ", ".join(c.replace("_", " ") for c in long_term.conditions)
        lines.append(f"They manage: {conditions}.")
    if long_term.medications:
        lines.append(f"Current medications: {', '.join(long_term.medications)}.")

    if working.last_medication is not None:
        hours = format_hours_ago(working.last_medication.taken_at, now)
        if 0 <= hours < 24:
            lines.append(f"Last medication taken: {working.last_medication.name} ({hours}h ago).")
    if working.today_mood:
        lines.append(f"Today's mood: {working.today_mood}.")
    if context.mood_trend is not None:
        trend = context.mood_trend
        lines.append(f"Recent mood trend: {', '.join(trend.recent)} ({trend.pattern}).")
    if working.active_location:
        lines.append(f"Currently at: {working.active_location}.")

    if context.summary is not None and context.summary.text:
        lines.append(f"\nConversation context:\n{context.summary.text}")

    if context.check_in is not None and (prompt := check_in_prompt(context.check_in)):
        lines.append(
            f"\nCheck-in reminder: consider naturally asking: {prompt} "
            "Work this into the conversation, not as a checklist."
        )

    relationship = long_term.relationship
    lines.append(
        f"Relationship: {relationship.familiarity} familiarity, {relationship.tone} tone."
    )

    return "\n".join(
        ["## User Context", "", *lines, "", "## Memory Rules", "", *MEMORY_RULES]
    )


class SystemPromptBuilder:
    def __init__(self, registry: CapabilityRegistry, config: PulseGuardConfig) -> None:
        self._registry = registry
        self._config = config

    def build(self, context: MemoryContext, now: datetime, *, emergency: bool = False) -> str:
        sections = [
            self._build_persona_section(),
            self._build_safety_section(emergency),
            build_context_prompt(context, now),
            format_metadata(RequestMetadata.at(now)),
            build_capability_prompt(self._registry, self._config.guardrails.min_confidence),
        ]
        return "\n\n".join(s for s in sections if s)

    def _build_persona_section(self) -> str:
        name = self._config.persona
        return "\n".join(
            [
                f"You are {name}, a warm health companion.",
                "",
                "- Be brief and kind. One or two short paragraphs at most.",
                "- You help people keep track of medications, moods, vitals and appointments.",
                "- You are not a doctor. Never diagnose, never adjust doses, never interpret results.",
            ]
        )

    def _build_safety_section(self, emergency: bool) -> str:
        lines = [
            "## Safety",
            "",
            "If the user describes chest pain, trouble breathing, thoughts of self-harm "
            "or any other emergency, tell them to contact emergency services now.",
            "Only record what the user actually said. When unsure, ask.",
        ]
        if emergency:
            lines.append(
                "EMERGENCY MODE: keep replies very short and focused on getting help."
            )
        return "\n".join(lines)
