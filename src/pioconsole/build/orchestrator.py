"""Single-flight build/upload/test orchestrator.

State transitions come from pushed ``build-event`` payloads (``started``,
``output``, ``error``, ``complete``). The imperative operations only start
the backend command; when that command itself fails (timeout, rejection
before a ``started`` event) the failure is written to the log, the record
is forced to a failed, idle state and the operation returns False. Build
failures are an ordinary outcome here, so nothing is raised.
"""

from __future__ import annotations

from contextlib import AsyncExitStack
from typing import Any, Mapping

import pydantic

from pioconsole import backend as commands
from pioconsole.build.models import (
    BuildCompleteEvent,
    BuildErrorEvent,
    BuildEvent,
    BuildOutputEvent,
    BuildStartedEvent,
    BuildState,
    build_event_adapter,
)
from pioconsole.core.gateway import CommandGateway
from pioconsole.core.store import Store
from pioconsole.exceptions import ConsoleError
from pioconsole.serial.manager import SerialSessionManager
from pioconsole.utils.logging import get_logger

logger = get_logger(__name__)

MAX_LOG_LINES = 5000
BUILD_TIMEOUT_MS = 10 * 60 * 1000
CLEAN_TIMEOUT_MS = 5 * 60 * 1000


class BuildOrchestrator:
    """Owns the build state record and runs one backend operation at a time."""

    def __init__(
        self,
        gateway: CommandGateway,
        serial: SerialSessionManager | None = None,
        store: Store[BuildState] | None = None,
        max_lines: int = MAX_LOG_LINES,
        build_timeout_ms: int = BUILD_TIMEOUT_MS,
        clean_timeout_ms: int = CLEAN_TIMEOUT_MS,
    ) -> None:
        self._gateway = gateway
        self._serial = serial
        self.store: Store[BuildState] = store if store is not None else Store(BuildState())
        self._max_lines = max_lines
        self._build_timeout_ms = build_timeout_ms
        self._clean_timeout_ms = clean_timeout_ms
        self._in_flight: str | None = None

    @property
    def state(self) -> BuildState:
        return self.store.get()

    @property
    def in_flight(self) -> str | None:
        """Label of the imperative operation currently awaiting the backend."""
        return self._in_flight

    # --- Log and status management ---

    def add_line(self, line: str) -> None:
        """Append to the scrollback, dropping the oldest lines past the bound."""
        def append(state: BuildState) -> BuildState:
            lines = [*state.lines, line]
            if len(lines) > self._max_lines:
                lines = lines[len(lines) - self._max_lines:]
            return state.model_copy(update={"lines": lines})

        self.store.update(append)

    def clear_log(self) -> None:
        """Empty the scrollback; outcome and duration are kept."""
        self.store.update(lambda s: s.model_copy(update={"lines": []}))

    def clear_status(self) -> None:
        """Forget the outcome and duration; the scrollback is kept."""
        self.store.update(lambda s: s.model_copy(update={"success": None, "duration_ms": None}))

    def reset(self) -> None:
        """Start fresh, e.g. after switching build targets."""
        self.store.update(
            lambda s: s.model_copy(
                update={"is_building": False, "success": None, "duration_ms": None, "lines": []}
            )
        )

    # --- Pushed events ---

    def handle_event(self, event: BuildEvent | Mapping[str, Any]) -> None:
        """Apply one pushed build event to the state record."""
        if isinstance(event, Mapping):
            try:
                event = build_event_adapter.validate_python(event)
            except pydantic.ValidationError as exc:
                logger.warning("build_event_invalid", error=str(exc))
                return

        match event:
            case BuildStartedEvent(app_name=app_name, environment=environment):
                self.store.update(
                    lambda s: s.model_copy(
                        update={
                            "is_building": True,
                            "app_name": app_name,
                            "environment": environment,
                            "success": None,
                            "duration_ms": None,
                            "lines": [],
                        }
                    )
                )
                logger.info("build_started", app=app_name, environment=environment)
            case BuildOutputEvent(line=line):
                if line:
                    self.add_line(line)
            case BuildErrorEvent(message=message):
                if message:
                    self.add_line(f"ERROR: {message}")
            case BuildCompleteEvent(success=success, duration_ms=duration_ms):
                outcome = bool(success)
                self.store.update(
                    lambda s: s.model_copy(
                        update={
                            "is_building": False,
                            "success": outcome,
                            "duration_ms": duration_ms,
                        }
                    )
                )
                logger.info("build_complete", success=outcome, duration_ms=duration_ms)

    # --- Imperative operations ---

    async def run_build(self, app_name: str, environment: str, build_flags: list[str]) -> bool:
        return await self._run(
            "Build",
            commands.RUN_BUILD,
            {"app_name": app_name, "environment": environment, "build_flags": build_flags},
        )

    async def run_upload(
        self,
        app_name: str,
        environment: str,
        build_flags: list[str],
        upload_port: str | None = None,
    ) -> bool:
        """Build and flash; holds the upload lock on *upload_port* when one is given."""
        return await self._run(
            "Upload",
            commands.RUN_UPLOAD,
            {
                "app_name": app_name,
                "environment": environment,
                "build_flags": build_flags,
                "upload_port": upload_port,
            },
            lock_port=upload_port,
        )

    async def run_tests(self, app_name: str, environment: str) -> bool:
        return await self._run(
            "Tests",
            commands.RUN_TESTS,
            {"app_name": app_name, "environment": environment},
        )

    async def clean_build(self, app_name: str, environment: str | None = None) -> bool:
        """Clean build artifacts.

        Clean may not emit ``started``, so ``is_building`` is raised up front
        and always lowered afterwards. A failure is logged but does not set
        the outcome.
        """
        if self._reject_if_busy("Clean"):
            return False
        self._in_flight = "Clean"
        self.store.update(lambda s: s.model_copy(update={"is_building": True}))
        try:
            result = await self._gateway.call(
                commands.CLEAN_BUILD,
                {"app_name": app_name, "environment": environment},
                self._clean_timeout_ms,
            )
            return bool(result)
        except ConsoleError as exc:
            logger.error("clean_failed", app=app_name, environment=environment, error=str(exc))
            self.add_line(f"Clean failed: {exc}")
            return False
        finally:
            self._in_flight = None
            self.store.update(lambda s: s.model_copy(update={"is_building": False}))

    async def _run(
        self,
        label: str,
        command: str,
        args: dict[str, Any],
        lock_port: str | None = None,
    ) -> bool:
        if self._reject_if_busy(label):
            return False
        self._in_flight = label
        try:
            async with AsyncExitStack() as stack:
                if lock_port and self._serial is not None:
                    await stack.enter_async_context(self._serial.upload_lock(lock_port))
                result = await self._gateway.call(command, args, self._build_timeout_ms)
            return bool(result)
        except ConsoleError as exc:
            logger.error(f"{label.lower()}_failed", command=command, error=str(exc))
            self.add_line(f"{label} failed: {exc}")
            self.store.update(
                lambda s: s.model_copy(update={"is_building": False, "success": False})
            )
            return False
        finally:
            self._in_flight = None

    def _reject_if_busy(self, label: str) -> bool:
        if self._in_flight is None:
            return False
        logger.warning("operation_rejected_busy", operation=label, running=self._in_flight)
        self.add_line(f"{label} skipped: another operation is already running")
        return True
