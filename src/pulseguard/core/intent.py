"""Cheap keyword intent detection that decides which context to load."""

import re
from dataclasses import dataclass

_MEDICATION = re.compile(r"\b(?:med|pill|tak|took|dose)", re.IGNORECASE)
_MOOD = re.compile(r"\b(?:feel|mood|emotion|sad|happy|anxious)", re.IGNORECASE)
_LOCATION = re.compile(r"\b(?:location|place|where|home|work)\b", re.IGNORECASE)
_HEALTH_HISTORY = re.compile(
    r"\b(?:symptom|episode|attack|yesterday|last\s+week)", re.IGNORECASE
)


@dataclass(frozen=True)
class Intent:
    medication: bool = False
    mood: bool = False
    location: bool = False
    health_history: bool = False


def detect_intent(message: str) -> Intent:
    return Intent(
        medication=bool(_MEDICATION.search(message)),
        mood=bool(_MOOD.search(message)),
        location=bool(_LOCATION.search(message)),
        health_history=bool(_HEALTH_HISTORY.search(message)),
    )
