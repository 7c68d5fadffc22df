"""Observable state container read by the presentation layer."""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from pioconsole.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class Store(Generic[T]):
    """Holds one snapshot value and notifies subscribers when it is replaced.

    Snapshots are treated as immutable: mutate by building a new value and
    passing it to :meth:`set` or :meth:`update`.
    """

    def __init__(self, value: T) -> None:
        self._value = value
        self._subscribers: list[Callable[[T], None]] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        for callback in list(self._subscribers):
            try:
                callback(value)
            except Exception:
                logger.exception("store_subscriber_error")

    def update(self, fn: Callable[[T], T]) -> None:
        self.set(fn(self._value))

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register *callback* for future changes; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
