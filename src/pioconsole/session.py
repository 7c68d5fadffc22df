"""Composition root: one instance of every component, wired to one backend."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from pioconsole.apps.catalog import AppCatalog, SelectionPersister
from pioconsole.apps.preferences import PreferenceStore
from pioconsole.backend import BUILD_EVENT_CHANNEL, SERIAL_EVENT_CHANNEL, Backend
from pioconsole.build.orchestrator import BuildOrchestrator
from pioconsole.config.profiles import ProfileManager
from pioconsole.config.state import ConfigState
from pioconsole.core.gateway import CommandGateway
from pioconsole.core.notifications import NotificationScheduler
from pioconsole.core.timers import CallLater, loop_call_later
from pioconsole.serial.manager import SerialSessionManager
from pioconsole.settings import ConsoleSettings, load_settings
from pioconsole.utils.logging import get_logger
from pioconsole.validation.pins import PinValidator

logger = get_logger(__name__)


class ConsoleSession:
    """Owns the core components for one operator console.

    Usage:
        session = ConsoleSession(backend)
        session.attach()          # start routing pushed events
        ok = await session.build.run_build("led-panel", "esp32", [])
        session.close()
    """

    def __init__(
        self,
        backend: Backend,
        settings: ConsoleSettings | None = None,
        preferences: PreferenceStore | None = None,
        call_later: CallLater = loop_call_later,
    ) -> None:
        self.settings = settings or load_settings()
        s = self.settings

        self.gateway = CommandGateway(backend, default_timeout_ms=s.default_timeout_ms)
        self.notifications = NotificationScheduler(
            call_later=call_later, default_duration_ms=s.notification_duration_ms
        )
        self.serial = SerialSessionManager(
            self.gateway,
            self.notifications,
            max_lines=s.max_serial_lines,
            command_timeout_ms=s.serial_command_timeout_ms,
            list_timeout_ms=s.serial_list_timeout_ms,
        )
        self.build = BuildOrchestrator(
            self.gateway,
            serial=self.serial,
            max_lines=s.max_build_lines,
            build_timeout_ms=s.build_timeout_ms,
            clean_timeout_ms=s.clean_timeout_ms,
        )
        self.config = ConfigState()
        self.profiles = ProfileManager(
            self.gateway, self.config, self.notifications, timeout_ms=s.profile_timeout_ms
        )
        self.pins = PinValidator(self.gateway, self.notifications, timeout_ms=s.pin_timeout_ms)

        self.preferences = preferences if preferences is not None else PreferenceStore(s.state_dir)
        self.apps = AppCatalog(self.gateway, self.preferences, timeout_ms=s.discover_timeout_ms)
        self._persister = SelectionPersister(
            self.apps.selected_app_name,
            self.preferences,
            debounce_ms=s.persist_debounce_ms,
            call_later=call_later,
        )
        self._unsubscribers: list[Callable[[], None]] = []

    @property
    def backend(self) -> Backend:
        return self.gateway.backend

    @property
    def attached(self) -> bool:
        return bool(self._unsubscribers)

    def attach(self) -> None:
        """Subscribe the build and serial handlers to the backend's push channels."""
        if self._unsubscribers:
            return
        backend = self.gateway.backend
        self._unsubscribers = [
            backend.subscribe(BUILD_EVENT_CHANNEL, self.build.handle_event),
            backend.subscribe(SERIAL_EVENT_CHANNEL, self.serial.on_event),
        ]
        logger.info("session_attached")

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def dispatch(self, channel: str, payload: Mapping[str, Any]) -> None:
        """Route one pushed event by channel name; unknown channels are ignored."""
        if channel == BUILD_EVENT_CHANNEL:
            self.build.handle_event(payload)
        elif channel == SERIAL_EVENT_CHANNEL:
            self.serial.on_event(payload)
        else:
            logger.debug("event_channel_unknown", channel=channel)

    def close(self) -> None:
        """Stop event routing and cancel every pending timer."""
        self.detach()
        self._persister.close()
        self.notifications.clear_all()
        logger.info("session_closed")
