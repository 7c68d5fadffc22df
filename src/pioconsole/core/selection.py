"""Pick the current app, environment or profile from competing sources."""

from __future__ import annotations

from typing import Sequence, TypeVar

T = TypeVar("T")


def resolve_selection(
    primary: T | None,
    persisted: T | None,
    available: Sequence[T],
    fallback: T | None = None,
) -> T | None:
    """Return the first valid candidate.

    Precedence: *primary* if available, then *persisted*, then *fallback*,
    then the first available item. With nothing available, *fallback* is
    returned as-is (it may be None).
    """
    if primary and primary in available:
        return primary
    if persisted and persisted in available:
        return persisted
    if fallback and fallback in available:
        return fallback
    if available:
        return available[0]
    return fallback
