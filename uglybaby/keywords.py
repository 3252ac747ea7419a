"""Case-insensitive substring matching against keyword lists."""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TypeVar

K = TypeVar("K")


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    lower = text.lower()
    return any(k in lower for k in keywords)


def matched_keywords(text: str, keywords: Sequence[str]) -> list[str]:
    """Return every keyword contained in *text*, in list order."""
    lower = text.lower()
    return [k for k in keywords if k in lower]


def matching_sets(text: str, keyword_sets: Sequence[tuple[K, Sequence[str]]]) -> list[K]:
    """Return the keys of all ``(key, keywords)`` sets with at least one hit.

    Keys come back in the order the sets were given.
    """
    lower = text.lower()
    return [key for key, keywords in keyword_sets if any(k in lower for k in keywords)]


def first_matching_set(text: str, keyword_sets: Sequence[tuple[K, Sequence[str]]]) -> K | None:
    lower = text.lower()
    for key, keywords in keyword_sets:
        if any(k in lower for k in keywords):
            return key
    return None
