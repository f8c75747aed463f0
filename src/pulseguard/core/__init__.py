"""Conversation core: memory, context and the turn loop."""

from pulseguard.core.checkin import CheckInStatus, check_in_prompt, check_in_status
from pulseguard.core.companion import Companion, TurnReply
from pulseguard.core.context import ContextAssembler, MemoryContext
from pulseguard.core.intent import Intent, detect_intent
from pulseguard.core.memory import (
    LastMedication,
    LongTermMemory,
    MoodTrend,
    RelationshipState,
    ShortTermMemory,
    WorkingMemory,
)
from pulseguard.core.metadata import RequestMetadata, format_metadata
from pulseguard.core.prompt import SystemPromptBuilder, build_context_prompt
from pulseguard.core.summary import SummaryManager, SummaryPolicy

__all__ = [
    "CheckInStatus",
    "Companion",
    "ContextAssembler",
    "Intent",
    "LastMedication",
    "LongTermMemory",
    "MemoryContext",
    "MoodTrend",
    "RelationshipState",
    "RequestMetadata",
    "ShortTermMemory",
    "SummaryManager",
    "SummaryPolicy",
    "SystemPromptBuilder",
    "TurnReply",
    "WorkingMemory",
    "build_context_prompt",
    "check_in_prompt",
    "check_in_status",
    "detect_intent",
    "format_metadata",
]
