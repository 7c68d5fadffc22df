"""Command gateway: one backend request raced against a hard timeout.

The backend's ``invoke`` has no timeout of its own. ``CommandGateway.call``
starts the request as a task and arms a loop timer; whichever finishes
first settles the caller's future and the loser is discarded. A backend
result that lands after the timeout never reaches the caller, and its
exception (if any) is retrieved so asyncio does not report it as unhandled.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

from pioconsole.backend import Backend
from pioconsole.exceptions import BackendError, ConsoleError, TimeoutError
from pioconsole.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_MS = 30_000


class _PendingCall:
    """Settlement bookkeeping for a single gateway call."""

    def __init__(
        self,
        command: str,
        timeout_ms: int,
        outcome: asyncio.Future,
    ) -> None:
        self.command = command
        self.timeout_ms = timeout_ms
        self.outcome = outcome
        self.settled = False
        self.timer: asyncio.TimerHandle | None = None
        self.started = time.monotonic()

    def on_timeout(self) -> None:
        self.timer = None
        if self.settled:
            return
        self.settled = True
        logger.warning("command_timeout", command=self.command, timeout_ms=self.timeout_ms)
        if not self.outcome.done():
            self.outcome.set_exception(TimeoutError(self.command, self.timeout_ms))

    def on_backend_done(self, task: asyncio.Task) -> None:
        if self.settled:
            # Late settlement: consume it so nothing escapes as "never retrieved".
            if not task.cancelled():
                exc = task.exception()
                logger.debug(
                    "command_late_settlement",
                    command=self.command,
                    error=str(exc) if exc else None,
                )
            return
        self.settled = True
        self.cancel_timer()
        if self.outcome.done():
            return

        if task.cancelled():
            self.outcome.set_exception(
                BackendError(f"Command '{self.command}' was cancelled", command=self.command)
            )
            return

        exc = task.exception()
        if exc is None:
            logger.debug(
                "command_completed",
                command=self.command,
                elapsed_ms=round((time.monotonic() - self.started) * 1000),
            )
            self.outcome.set_result(task.result())
        elif isinstance(exc, ConsoleError):
            self.outcome.set_exception(exc)
        else:
            err = BackendError(str(exc) or type(exc).__name__, command=self.command)
            err.__cause__ = exc
            self.outcome.set_exception(err)

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class CommandGateway:
    """Issues backend commands with a bounded wait and exactly one outcome."""

    def __init__(self, backend: Backend, default_timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        self._backend = backend
        self._default_timeout_ms = default_timeout_ms
        self._active: set[_PendingCall] = set()
        # Backend tasks abandoned by a timeout keep running; hold a reference
        # until they finish.
        self._orphans: set[asyncio.Task] = set()

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def active_timers(self) -> int:
        """Number of armed timeout timers (zero once every call has returned)."""
        return sum(1 for call in self._active if call.timer is not None)

    @property
    def orphaned_calls(self) -> int:
        """Backend requests still running after their caller gave up."""
        return len(self._orphans)

    async def call(
        self,
        command: str,
        args: dict[str, Any] | None = None,
        timeout_ms: int | None = None,
    ) -> Any:
        """Invoke *command* and wait at most *timeout_ms* for its result.

        Raises:
            TimeoutError: The timer fired before the backend settled.
            BackendError: The backend rejected the command.
        """
        bound = self._default_timeout_ms if timeout_ms is None else timeout_ms
        loop = asyncio.get_running_loop()
        pending = _PendingCall(command, bound, loop.create_future())

        logger.debug("command_invoked", command=command, timeout_ms=bound)
        task = loop.create_task(self._backend.invoke(command, args))
        pending.timer = loop.call_later(bound / 1000, pending.on_timeout)
        task.add_done_callback(pending.on_backend_done)
        self._active.add(pending)

        try:
            return await pending.outcome
        finally:
            # Covers caller cancellation as well: the backend may still finish,
            # but nothing it produces can reach the caller from here on.
            pending.settled = True
            pending.cancel_timer()
            self._active.discard(pending)
            if not task.done():
                self._orphans.add(task)
                task.add_done_callback(self._orphans.discard)
