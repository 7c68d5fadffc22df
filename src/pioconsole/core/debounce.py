"""Trailing-edge debounce on top of an injectable timer."""

from __future__ import annotations

from typing import Any, Callable

from pioconsole.core.timers import CallLater, TimerHandle, loop_call_later


class Debouncer:
    """Call *fn* once, *wait_ms* after the most recent invocation."""

    def __init__(
        self,
        fn: Callable[..., None],
        wait_ms: int,
        call_later: CallLater = loop_call_later,
    ) -> None:
        self._fn = fn
        self._wait_ms = wait_ms
        self._call_later = call_later
        self._handle: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self, *args: Any) -> None:
        self.cancel()

        def fire() -> None:
            self._handle = None
            self._fn(*args)

        self._handle = self._call_later(self._wait_ms / 1000, fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
