"""Serial session manager.

Owns every open serial connection and its line buffer, turns pushed
``serial-event`` payloads into buffer updates, and brackets firmware
uploads with the backend's advisory per-port upload lock.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping

import pydantic

from pioconsole import backend as commands
from pioconsole.core.gateway import CommandGateway
from pioconsole.core.notifications import NotificationScheduler, Severity
from pioconsole.core.store import Store
from pioconsole.exceptions import ConsoleError, ValidationError
from pioconsole.serial.lines import append_chunk
from pioconsole.serial.models import (
    VALID_BAUD_RATES,
    PortInfo,
    SerialBuffer,
    SerialClosedEvent,
    SerialConnection,
    SerialDataEvent,
    SerialErrorEvent,
    SerialEvent,
    SerialState,
    serial_event_adapter,
)
from pioconsole.utils.logging import get_logger

logger = get_logger(__name__)

MAX_SERIAL_LINES = 10_000
SERIAL_CMD_TIMEOUT_MS = 10_000
SERIAL_LIST_TIMEOUT_MS = 5_000


def validate_port_path(port_path: str) -> None:
    """Reject empty paths and paths with NUL or parent-directory segments.

    Raises:
        ValidationError: If *port_path* cannot name a serial device.
    """
    if not isinstance(port_path, str) or not port_path.strip():
        raise ValidationError("Port path cannot be empty")
    if "\0" in port_path or ".." in port_path:
        raise ValidationError("Port path contains invalid characters")


def validate_baud_rate(baud_rate: int) -> None:
    """Raises ValidationError unless *baud_rate* is one of VALID_BAUD_RATES."""
    if baud_rate not in VALID_BAUD_RATES:
        raise ValidationError(
            f"Invalid baud rate: {baud_rate}. Valid rates: {list(VALID_BAUD_RATES)}"
        )


def _without_connection(state: SerialState, connection_id: str) -> SerialState:
    connections = {k: v for k, v in state.connections.items() if k != connection_id}
    active = state.active_connection_id
    if active == connection_id:
        active = next(iter(connections), None)
    return state.model_copy(update={"connections": connections, "active_connection_id": active})


class SerialSessionManager:
    """Tracks serial connections and reassembles their output into lines.

    ``state`` carries ports and connections; ``buffers`` carries line
    buffers separately so high-rate output does not churn connection state.
    """

    def __init__(
        self,
        gateway: CommandGateway,
        notifications: NotificationScheduler,
        max_lines: int = MAX_SERIAL_LINES,
        command_timeout_ms: int = SERIAL_CMD_TIMEOUT_MS,
        list_timeout_ms: int = SERIAL_LIST_TIMEOUT_MS,
    ) -> None:
        self._gateway = gateway
        self._notifications = notifications
        self._max_lines = max_lines
        self._command_timeout_ms = command_timeout_ms
        self._list_timeout_ms = list_timeout_ms
        self.state: Store[SerialState] = Store(SerialState())
        self.buffers: Store[dict[str, SerialBuffer]] = Store({})

    # --- Queries ---

    @property
    def connections(self) -> dict[str, SerialConnection]:
        return self.state.get().connections

    @property
    def active_connection_id(self) -> str | None:
        return self.state.get().active_connection_id

    def is_known(self, connection_id: str) -> bool:
        return connection_id in self.state.get().connections

    def get_buffer(self, connection_id: str) -> SerialBuffer | None:
        return self.buffers.get().get(connection_id)

    # --- Backend operations ---

    async def refresh_ports(self) -> list[PortInfo]:
        """Refresh the available port list; failures are notified, not raised."""
        try:
            raw = await self._gateway.call(
                commands.LIST_SERIAL_PORTS, None, self._list_timeout_ms
            )
            ports = [PortInfo.model_validate(p) for p in raw or []]
        except (ConsoleError, pydantic.ValidationError) as exc:
            logger.error("serial_list_ports_failed", error=str(exc))
            self._notifications.push("Failed to list serial ports", Severity.ERROR)
            return self.state.get().available_ports

        self.state.update(lambda s: s.model_copy(update={"available_ports": ports}))
        logger.debug("serial_ports_refreshed", count=len(ports))
        return ports

    async def open(self, port_path: str, baud_rate: int) -> str:
        """Open *port_path* and make the new connection active.

        Raises:
            ValidationError: Bad path or baud rate; no backend call is made.
            ConsoleError: Whatever the backend reported (busy, not found, ...).
        """
        validate_port_path(port_path)
        validate_baud_rate(baud_rate)

        try:
            raw_id = await self._gateway.call(
                commands.OPEN_SERIAL,
                {"port_path": port_path, "baud_rate": baud_rate},
                self._command_timeout_ms,
            )
        except ConsoleError as exc:
            logger.error("serial_open_failed", port=port_path, error=str(exc))
            raise

        connection_id = str(raw_id)
        connection = SerialConnection(
            connection_id=connection_id, port_path=port_path, baud_rate=baud_rate
        )

        def register(state: SerialState) -> SerialState:
            connections = {**state.connections, connection_id: connection}
            return state.model_copy(
                update={"connections": connections, "active_connection_id": connection_id}
            )

        self.state.update(register)
        self.buffers.update(lambda b: {**b, connection_id: SerialBuffer()})
        logger.info(
            "serial_opened", connection_id=connection_id, port=port_path, baud=baud_rate
        )
        return connection_id

    async def close(self, connection_id: str) -> None:
        """Close a connection; on failure notify the operator and re-raise."""
        try:
            await self._gateway.call(
                commands.CLOSE_SERIAL,
                {"connection_id": connection_id},
                self._command_timeout_ms,
            )
        except ConsoleError as exc:
            logger.error("serial_close_failed", connection_id=connection_id, error=str(exc))
            self._notifications.push(f"Failed to close serial port: {exc}", Severity.ERROR)
            raise

        self._forget(connection_id)
        logger.info("serial_closed", connection_id=connection_id)

    async def write(self, connection_id: str, data: str) -> None:
        """Send *data*; not retried. Failures are notified and re-raised."""
        try:
            await self._gateway.call(
                commands.WRITE_SERIAL,
                {"connection_id": connection_id, "data": data},
                self._command_timeout_ms,
            )
        except ConsoleError as exc:
            logger.error("serial_write_failed", connection_id=connection_id, error=str(exc))
            self._notifications.push(f"Failed to write to serial: {exc}", Severity.ERROR)
            raise

    # --- Upload lock ---

    async def acquire_upload_lock(self, port_path: str) -> None:
        """Take the backend's upload lock for *port_path*.

        The backend shuts down any monitor session on that port without
        pushing a ``closed`` event, so matching local connections are dropped.
        """
        validate_port_path(port_path)
        await self._gateway.call(
            commands.ACQUIRE_PORT_FOR_UPLOAD,
            {"port_path": port_path},
            self._command_timeout_ms,
        )
        logger.info("upload_lock_acquired", port=port_path)
        for connection in list(self.state.get().connections.values()):
            if connection.port_path == port_path:
                self._forget(connection.connection_id)
                logger.info(
                    "serial_superseded_by_upload",
                    connection_id=connection.connection_id,
                    port=port_path,
                )

    async def release_upload_lock(self, port_path: str) -> None:
        validate_port_path(port_path)
        await self._gateway.call(
            commands.RELEASE_UPLOAD_LOCK,
            {"port_path": port_path},
            self._command_timeout_ms,
        )
        logger.info("upload_lock_released", port=port_path)

    @asynccontextmanager
    async def upload_lock(self, port_path: str) -> AsyncIterator[None]:
        """Hold the upload lock for the body; release is attempted on every exit.

        A failed release is logged and notified but never replaces the
        body's own outcome.
        """
        await self.acquire_upload_lock(port_path)
        try:
            yield
        finally:
            try:
                await self.release_upload_lock(port_path)
            except ConsoleError as exc:
                logger.error("upload_lock_release_failed", port=port_path, error=str(exc))
                self._notifications.push(
                    f"Failed to release upload lock on {port_path}: {exc}", Severity.ERROR
                )

    async def list_backend_connections(self) -> list[str]:
        """Connection ids the backend currently holds open, known locally or not."""
        ids = await self._gateway.call(
            commands.LIST_SERIAL_CONNECTIONS, None, self._list_timeout_ms
        )
        return [str(i) for i in ids or []]

    async def get_port_lock_status(self, port_path: str) -> str | None:
        """Return ``"upload"``, ``"monitor:<id>"`` or None for *port_path*."""
        validate_port_path(port_path)
        return await self._gateway.call(
            commands.GET_PORT_LOCK_STATUS,
            {"port_path": port_path},
            self._command_timeout_ms,
        )

    # --- Local state ---

    def clear_buffer(self, connection_id: str) -> None:
        if connection_id not in self.buffers.get():
            return
        self.buffers.update(lambda b: {**b, connection_id: SerialBuffer()})

    def set_active(self, connection_id: str | None) -> None:
        self.state.update(
            lambda s: s.model_copy(update={"active_connection_id": connection_id})
        )

    # --- Pushed events ---

    def on_event(self, event: SerialEvent | Mapping[str, Any]) -> None:
        """Apply one pushed serial event."""
        if isinstance(event, Mapping):
            try:
                event = serial_event_adapter.validate_python(event)
            except pydantic.ValidationError as exc:
                logger.warning("serial_event_invalid", error=str(exc))
                return

        match event:
            case SerialDataEvent(connection_id=cid, text=text):
                if not self.is_known(cid):
                    logger.debug("serial_event_unknown_connection", connection_id=cid)
                    return
                self.buffers.update(lambda b: self._with_chunk(b, cid, text))
            case SerialErrorEvent(connection_id=cid, message=message):
                logger.error("serial_device_error", connection_id=cid, error=message)
                self._notifications.push(
                    f"Serial error: {message or 'Unknown error'}", Severity.ERROR
                )
            case SerialClosedEvent(connection_id=cid):
                if self.is_known(cid):
                    self._forget(cid)
                    logger.info("serial_closed_by_backend", connection_id=cid)

    def _with_chunk(
        self, buffers: dict[str, SerialBuffer], connection_id: str, text: str
    ) -> dict[str, SerialBuffer]:
        current = buffers.get(connection_id) or SerialBuffer()
        return {**buffers, connection_id: append_chunk(current, text, self._max_lines)}

    def _forget(self, connection_id: str) -> None:
        if self.is_known(connection_id):
            self.state.update(lambda s: _without_connection(s, connection_id))
        if connection_id in self.buffers.get():
            self.buffers.update(
                lambda b: {k: v for k, v in b.items() if k != connection_id}
            )
