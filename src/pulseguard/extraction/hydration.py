"""Hydration quantity parsing.

Container words map to fixed milliliter sizes; explicit units win over
containers, and a bare number is only accepted as a low-confidence fallback.
"""

import re
from dataclasses import dataclass

from pulseguard.extraction.numbers import NUMBER_PATTERN, parse_quantity

MIN_AMOUNT_ML = 1
MAX_AMOUNT_ML = 10000

CONTAINER_ML: dict[str, int] = {
    "cup": 250,
    "glass": 250,
    "mug": 350,
    "bottle": 500,
    "liter": 1000,
    "litre": 1000,
    "gallon": 3785,
    "shot": 30,
    "sip": 50,
    "gulp": 100,
}
SMALL_BOTTLE_ML = 330
LARGE_BOTTLE_ML = 750

# Longest phrase first so "three quarters" is not read as "quarter"
FRACTIONS: list[tuple[str, float]] = [
    ("three quarters", 0.75),
    ("three-quarters", 0.75),
    ("three quarter", 0.75),
    ("half", 0.5),
    ("quarter", 0.25),
    ("third", 1 / 3),
]

_CONTAINER_GROUP = "|".join(
    sorted((f"{name}e?s?" if name == "glass" else f"{name}s?" for name in CONTAINER_ML), key=len, reverse=True)
)

_MILLILITERS = re.compile(r"\b(\d+(?:\.\d+)?)\s*(?:ml|milliliters?|millilitres?)\b", re.IGNORECASE)
_LITERS = re.compile(r"\b(\d+(?:\.\d+)?)\s*(?:l|liters?|litres?)\b", re.IGNORECASE)
# Multiplier then container within three words: "two big glasses", "3 cups"
_COUNTED = re.compile(
    rf"\b({NUMBER_PATTERN})\s+(?:[a-z-]+\s+){{0,2}}?(small\s+|large\s+|big\s+)?({_CONTAINER_GROUP})\b",
    re.IGNORECASE,
)
_FRACTION = re.compile(
    rf"\b(three[\s-]quarters?|half|quarter|third)\s+(?:of\s+)?(?:an?\s+)?(small\s+|large\s+|big\s+)?({_CONTAINER_GROUP})\b",
    re.IGNORECASE,
)
_SINGLE = re.compile(
    rf"\b(small\s+|large\s+|big\s+)?({_CONTAINER_GROUP})\b",
    re.IGNORECASE,
)
_BARE_NUMBER = re.compile(r"\b(\d{2,5})\b")


@dataclass
class HydrationExtraction:
    amount_ml: int
    confidence: float
    source: str

    def summary(self) -> str:
        return f"{self.amount_ml}ml of water"


def _container_ml(word: str, size: str | None) -> int | None:
    lower = word.lower()
    if lower in CONTAINER_ML:
        base = lower
    elif lower.endswith("sses"):
        base = lower[:-2]
    else:
        base = lower.removesuffix("s")
    if base not in CONTAINER_ML:
        return None
    size = (size or "").strip().lower()
    if base == "bottle" and size == "small":
        return SMALL_BOTTLE_ML
    if base == "bottle" and size in ("large", "big"):
        return LARGE_BOTTLE_ML
    return CONTAINER_ML[base]


def _fraction_value(phrase: str) -> float:
    normalized = phrase.lower().replace("-", " ")
    for name, value in FRACTIONS:
        if normalized.startswith(name.replace("-", " ")):
            return value
    return 1.0


def _accept(amount: float, confidence: float, source: str) -> HydrationExtraction | None:
    rounded = round(amount)
    if not MIN_AMOUNT_ML <= rounded <= MAX_AMOUNT_ML:
        return None
    return HydrationExtraction(amount_ml=rounded, confidence=confidence, source=source)


def parse_hydration(text: str) -> HydrationExtraction | None:
    """Convert "two bottles", "half a bottle" or "1.5 liters" to milliliters.

    Results outside 1..10000 ml give None.
    """
    if not text:
        return None

    if match := _MILLILITERS.search(text):
        return _accept(float(match.group(1)), 0.95, match.group(0))

    if match := _LITERS.search(text):
        return _accept(float(match.group(1)) * 1000, 0.95, match.group(0))

    if match := _FRACTION.search(text):
        size = _container_ml(match.group(3), match.group(2))
        if size is not None:
            return _accept(size * _fraction_value(match.group(1)), 0.85, match.group(0))

    if match := _COUNTED.search(text):
        count = parse_quantity(match.group(1))
        size = _container_ml(match.group(3), match.group(2))
        if count is not None and size is not None:
            return _accept(count * size, 0.85, match.group(0))

    if match := _SINGLE.search(text):
        size = _container_ml(match.group(2), match.group(1))
        if size is not None:
            return _accept(size, 0.85, match.group(0))

    if match := _BARE_NUMBER.search(text):
        value = int(match.group(1))
        if 50 <= value <= MAX_AMOUNT_ML:
            return _accept(value, 0.7, match.group(0))

    return None
