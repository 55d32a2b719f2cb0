# ABOUTME: Shared ordering helpers for time-stamped, keyed records.
# ABOUTME: Provides latest-per-key collapse, newest-first sort, and key filtering.

from __future__ import annotations

from typing import Any, Callable, Dict, Hashable, Iterable, List, TypeVar

T = TypeVar("T")

ALL = "ALL"


def latest_per_key(
    items: Iterable[T],
    key: Callable[[T], Hashable],
    timestamp: Callable[[T], Any],
) -> Dict[Hashable, T]:
    """
    Keep one item per key: the one with the greatest timestamp.

    A later item replaces the current best only when its timestamp is strictly
    greater, so exact ties keep the earlier-encountered item.
    """

    best: Dict[Hashable, T] = {}
    for item in items:
        k = key(item)
        current = best.get(k)
        if current is None or timestamp(item) > timestamp(current):
            best[k] = item
    return best


def sort_newest_first(items: Iterable[T], timestamp: Callable[[T], Any]) -> List[T]:
    # sorted() is stable, so equal timestamps keep input order.
    return sorted(items, key=timestamp, reverse=True)


def filter_by_key(
    items: Iterable[T],
    key: Callable[[T], Any],
    value: Any,
    wildcard: Any = ALL,
) -> List[T]:
    if value == wildcard:
        return list(items)
    return [item for item in items if key(item) == value]
