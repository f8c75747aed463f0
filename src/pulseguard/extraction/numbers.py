"""Number words and interval units shared by the extractors."""

import re

NUMBER_WORDS: dict[str, int] = {
    "zero": 0,
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "thirteen": 13,
    "fourteen": 14,
    "fifteen": 15,
    "sixteen": 16,
    "seventeen": 17,
    "eighteen": 18,
    "nineteen": 19,
    "twenty": 20,
    "thirty": 30,
    "forty": 40,
    "fifty": 50,
    "sixty": 60,
    "seventy": 70,
    "eighty": 80,
    "ninety": 90,
    "hundred": 100,
}

ARTICLES: dict[str, int] = {"a": 1, "an": 1}

# Month and year are fixed day counts
UNIT_DAYS: dict[str, int] = {
    "day": 1,
    "week": 7,
    "month": 30,
    "year": 365,
}

# Upper bound for any parsed interval (about a century)
MAX_INTERVAL_DAYS = 36500

_WORD_ALTERNATION = "|".join(
    sorted((*NUMBER_WORDS, *ARTICLES), key=len, reverse=True)
)

# Digits, decimals, number words ("twenty-five" included) and articles
NUMBER_PATTERN = (
    rf"(?:\d+(?:\.\d+)?|(?:{_WORD_ALTERNATION})(?:[\s-](?:{_WORD_ALTERNATION}))?)"
)
UNIT_PATTERN = r"(?:day|week|month|year)s?"

_DIGITS = re.compile(r"^\d+(?:\.\d+)?$")


def parse_quantity(token: str) -> float | None:
    """Convert a digit string or number phrase to a number.

    "3" -> 3.0, "twenty-five" -> 25.0, "an" -> 1.0. Unknown words give None.
    """
    text = token.strip().lower()
    if not text:
        return None
    if _DIGITS.match(text):
        return float(text)

    parts = re.split(r"[\s-]+", text)
    if len(parts) == 1:
        word = parts[0]
        if word in NUMBER_WORDS:
            return float(NUMBER_WORDS[word])
        if word in ARTICLES:
            return float(ARTICLES[word])
        return None

    if len(parts) == 2 and all(p in NUMBER_WORDS for p in parts):
        tens, ones = NUMBER_WORDS[parts[0]], NUMBER_WORDS[parts[1]]
        if tens >= 20 and tens % 10 == 0 and 0 < ones < 10:
            return float(tens + ones)
        if ones == 100 and 0 < tens < 10:
            return float(tens * 100)
    return None


def normalize_unit(unit: str) -> str | None:
    """Map "weeks" / "Week" to "week"; unknown units give None."""
    singular = unit.strip().lower().rstrip("s")
    return singular if singular in UNIT_DAYS else None


def interval_to_days(amount: float, unit: str) -> int | None:
    """Convert an (amount, unit) pair to whole days using UNIT_DAYS.

    Non-positive amounts and spans beyond MAX_INTERVAL_DAYS give None.
    """
    normalized = normalize_unit(unit)
    if normalized is None or amount <= 0:
        return None
    days = round(amount * UNIT_DAYS[normalized])
    if days > MAX_INTERVAL_DAYS:
        return None
    return days
