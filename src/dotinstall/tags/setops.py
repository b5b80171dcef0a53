"""
Merge-based set operations on sorted sequences of package IDs.

All inputs must already be sorted by plain string comparison. Both operations
walk the inputs once, like ``join`` and ``sort -m`` on sorted files, and
always return a sorted list without duplicates, even when an input repeats
an entry.
"""

from typing import Iterable, List, Sequence


def dedupe_sorted(items: Iterable[str]) -> List[str]:
    """Collapse runs of equal entries in an already sorted iterable."""
    result: List[str] = []
    for item in items:
        if not result or result[-1] != item:
            result.append(item)
    return result


def normalize(items: Iterable[str]) -> List[str]:
    """Sort and dedupe arbitrary input, dropping blank entries."""
    return dedupe_sorted(sorted(item for item in items if item))


def is_normalized(items: Sequence[str]) -> bool:
    """True when items are strictly increasing (sorted, no duplicates)."""
    return all(a < b for a, b in zip(items, items[1:]))


def sorted_intersect(left: Sequence[str], right: Sequence[str]) -> List[str]:
    """
    Intersect two sorted sequences.

    Args:
        left: Sorted package IDs
        right: Sorted package IDs

    Returns:
        Sorted IDs present in both inputs, each listed once
    """
    result: List[str] = []
    i = j = 0
    while i < len(left) and j < len(right):
        a, b = left[i], right[j]
        if a < b:
            i += 1
        elif b < a:
            j += 1
        else:
            if not result or result[-1] != a:
                result.append(a)
            i += 1
            j += 1
    return result


def sorted_union_dedup(left: Sequence[str], right: Sequence[str]) -> List[str]:
    """
    Merge two sorted sequences into their union.

    Args:
        left: Sorted package IDs
        right: Sorted package IDs

    Returns:
        Sorted IDs present in either input, each listed once
    """
    result: List[str] = []

    def emit(item: str) -> None:
        if not result or result[-1] != item:
            result.append(item)

    i = j = 0
    while i < len(left) and j < len(right):
        if right[j] < left[i]:
            emit(right[j])
            j += 1
        else:
            emit(left[i])
            i += 1
    for item in left[i:]:
        emit(item)
    for item in right[j:]:
        emit(item)
    return result
