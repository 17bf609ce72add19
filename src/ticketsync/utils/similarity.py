"""Name similarity scoring."""

from difflib import SequenceMatcher
from typing import Callable

SimilarityFunc = Callable[[str, str], float]


def character_similarity(first: str, second: str) -> float:
    """Character-overlap similarity of two strings as a percentage (0-100).

    Comparison is case-insensitive.
    """
    first = first.lower().strip()
    second = second.lower().strip()
    if not first and not second:
        return 100.0
    return SequenceMatcher(None, first, second).ratio() * 100
