"""Abstract interface to the process that builds, flashes and talks serial."""

from __future__ import annotations

import abc
from typing import Any, Callable, Mapping

# Push-event channels
BUILD_EVENT_CHANNEL = "build-event"
SERIAL_EVENT_CHANNEL = "serial-event"

# Serial commands
OPEN_SERIAL = "open_serial"
CLOSE_SERIAL = "close_serial"
WRITE_SERIAL = "write_serial"
LIST_SERIAL_PORTS = "list_serial_ports"
LIST_SERIAL_CONNECTIONS = "list_serial_connections"
ACQUIRE_PORT_FOR_UPLOAD = "acquire_port_for_upload"
RELEASE_UPLOAD_LOCK = "release_upload_lock"
GET_PORT_LOCK_STATUS = "get_port_lock_status"

# Build commands
RUN_BUILD = "run_build"
RUN_UPLOAD = "run_upload"
RUN_TESTS = "run_tests"
CLEAN_BUILD = "clean_build"

# Config commands
DISCOVER_APPS = "discover_apps"
LIST_PROFILES = "list_profiles"
SAVE_PROFILE = "save_profile"
LOAD_PROFILE = "load_profile"
DELETE_PROFILE = "delete_profile"
VALIDATE_PIN = "validate_pin"
GET_SAFE_PINS = "get_safe_pins"

EventHandler = Callable[[Mapping[str, Any]], None]


class Backend(abc.ABC):
    """Base class for backends consumed by the command gateway.

    ``invoke`` has no timeout of its own; bounding it is the gateway's job.
    """

    @abc.abstractmethod
    async def invoke(self, command: str, args: dict[str, Any] | None = None) -> Any:
        """Run *command* with *args* and return its result or raise."""

    @abc.abstractmethod
    def subscribe(self, channel: str, handler: EventHandler) -> Callable[[], None]:
        """Deliver pushed events on *channel* to *handler*.

        Returns a callable that removes the subscription.
        """
