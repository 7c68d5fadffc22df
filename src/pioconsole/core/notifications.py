"""Ephemeral, independently timed user-facing notifications."""

from __future__ import annotations

import uuid
from enum import StrEnum

from pydantic import BaseModel, Field

from pioconsole.core.store import Store
from pioconsole.core.timers import CallLater, TimerHandle, loop_call_later
from pioconsole.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DURATION_MS = 4000


class Severity(StrEnum):
    """Notification severity class."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    """A single message shown to the operator."""

    id: str
    message: str
    severity: Severity = Severity.INFO
    duration_ms: int = Field(default=DEFAULT_DURATION_MS, ge=0)


class NotificationScheduler:
    """Keeps the notification list and expires entries on their own timers.

    A duration of zero means the entry stays until dismissed.
    """

    def __init__(
        self,
        store: Store[list[Notification]] | None = None,
        call_later: CallLater = loop_call_later,
        default_duration_ms: int = DEFAULT_DURATION_MS,
    ) -> None:
        self.store: Store[list[Notification]] = store if store is not None else Store([])
        self._call_later = call_later
        self._default_duration_ms = default_duration_ms
        self._timers: dict[str, TimerHandle] = {}

    @property
    def notifications(self) -> list[Notification]:
        return self.store.get()

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def push(
        self,
        message: str,
        severity: Severity | str = Severity.INFO,
        duration_ms: int | None = None,
    ) -> str:
        """Append a notification and return its id.

        A duration of zero or less keeps the entry until it is dismissed.
        """
        duration = self._default_duration_ms if duration_ms is None else max(duration_ms, 0)
        notification = Notification(
            id=uuid.uuid4().hex,
            message=message,
            severity=Severity(severity),
            duration_ms=duration,
        )
        self.store.update(lambda items: [*items, notification])
        logger.debug(
            "notification_pushed",
            notification_id=notification.id,
            severity=notification.severity.value,
        )

        if duration > 0:
            nid = notification.id
            self._timers[nid] = self._call_later(duration / 1000, lambda: self._expire(nid))
        return notification.id

    def dismiss(self, notification_id: str) -> bool:
        """Remove one notification now. Returns False if it was already gone."""
        timer = self._timers.pop(notification_id, None)
        if timer is not None:
            timer.cancel()
        return self._remove(notification_id)

    def clear_all(self) -> None:
        """Cancel every pending expiry; the entries themselves stay listed."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    def dismiss_all(self) -> None:
        """Cancel pending expiries and empty the list."""
        self.clear_all()
        self.store.set([])

    def _expire(self, notification_id: str) -> None:
        if self._timers.pop(notification_id, None) is None:
            return
        self._remove(notification_id)

    def _remove(self, notification_id: str) -> bool:
        current = self.store.get()
        remaining = [n for n in current if n.id != notification_id]
        if len(remaining) == len(current):
            return False
        self.store.set(remaining)
        return True
