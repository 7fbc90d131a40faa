"""Detection of highest/lowest requests in English and romanized Hindi."""

import re
from dataclasses import dataclass
from enum import Enum


class Direction(str, Enum):
    """Which extreme a superlative query asks for."""

    HIGHEST = "highest"
    LOWEST = "lowest"


HIGHEST_TERMS = [
    "highest",
    "maximum",
    "max",
    "best",
    "most",
    "top",
    "greatest",
    "largest",
    "sabse zyada",
    "sabse jyada",
    "sabse bada",
    "sabse ucha",
]

LOWEST_TERMS = [
    "lowest",
    "minimum",
    "min",
    "worst",
    "least",
    "bottom",
    "smallest",
    "sabse kam",
    "sabse chota",
    "sabse neeche",
]


def _vocabulary_pattern(terms: list[str]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(term).replace(r"\ ", r"\s+") for term in terms)
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


_HIGHEST_RE = _vocabulary_pattern(HIGHEST_TERMS)
_LOWEST_RE = _vocabulary_pattern(LOWEST_TERMS)


@dataclass(frozen=True)
class Superlative:
    """Outcome of superlative detection."""

    is_superlative: bool
    direction: Direction | None = None


def detect_superlative(query: str) -> Superlative:
    """Detect whether a query asks for a single extreme record.

    Highest vocabulary is checked first, so a query mixing both directions is
    treated as a highest request.

    Args:
        query: Free-text query

    Returns:
        Superlative with the detected direction, or a negative result
    """
    if _HIGHEST_RE.search(query):
        return Superlative(is_superlative=True, direction=Direction.HIGHEST)
    if _LOWEST_RE.search(query):
        return Superlative(is_superlative=True, direction=Direction.LOWEST)
    return Superlative(is_superlative=False)
