"""Unit tests for pioconsole.serial.manager -- connections, events, upload lock."""

from __future__ import annotations

import pytest

from pioconsole.core.notifications import Severity
from pioconsole.exceptions import BackendError, ValidationError
from pioconsole.serial.manager import SerialSessionManager, validate_baud_rate, validate_port_path
from pioconsole.serial.models import SerialDataEvent

PORT = "/dev/ttyUSB0"


@pytest.fixture
def manager(gateway, notifications) -> SerialSessionManager:
    return SerialSessionManager(gateway, notifications, max_lines=5)


async def _open(manager, backend, cid="conn-1", port=PORT, baud=115200) -> str:
    backend.responses["open_serial"] = cid
    return await manager.open(port, baud)


class TestValidation:
    @pytest.mark.parametrize("path", ["", "   ", "/dev/../etc/passwd", "COM3\0"])
    def test_bad_paths(self, path):
        with pytest.raises(ValidationError):
            validate_port_path(path)

    def test_bad_baud(self):
        with pytest.raises(ValidationError, match="Invalid baud rate: 12345"):
            validate_baud_rate(12345)

    @pytest.mark.asyncio
    async def test_open_rejects_baud_before_backend(self, manager, backend):
        with pytest.raises(ValidationError):
            await manager.open(PORT, 250000)
        assert backend.calls == []


class TestOpenClose:
    @pytest.mark.asyncio
    async def test_open_registers_and_activates(self, manager, backend):
        cid = await _open(manager, backend)

        assert cid == "conn-1"
        assert backend.args_for("open_serial") == {"port_path": PORT, "baud_rate": 115200}
        conn = manager.connections[cid]
        assert conn.port_path == PORT
        assert conn.baud_rate == 115200
        assert manager.active_connection_id == cid
        buffer = manager.get_buffer(cid)
        assert buffer.lines == [] and buffer.partial_line == ""

    @pytest.mark.asyncio
    async def test_open_coerces_numeric_connection_id(self, manager, backend):
        backend.responses["open_serial"] = 7

        cid = await manager.open(PORT, 9600)

        assert cid == "7"
        assert manager.connections["7"].connection_id == "7"
        assert manager.active_connection_id == "7"
        assert manager.get_buffer("7") is not None

    @pytest.mark.asyncio
    async def test_open_failure_propagates_without_registering(self, manager, backend, notifications):
        backend.responses["open_serial"] = RuntimeError("Port busy")

        with pytest.raises(BackendError, match="Port busy"):
            await manager.open(PORT, 9600)

        assert manager.connections == {}
        assert notifications.notifications == []

    @pytest.mark.asyncio
    async def test_close_removes_and_moves_active(self, manager, backend):
        await _open(manager, backend, "a", "/dev/ttyUSB0")
        await _open(manager, backend, "b", "/dev/ttyUSB1")
        assert manager.active_connection_id == "b"

        await manager.close("b")

        assert "b" not in manager.connections
        assert manager.get_buffer("b") is None
        assert manager.active_connection_id == "a"

    @pytest.mark.asyncio
    async def test_close_last_leaves_no_active(self, manager, backend):
        cid = await _open(manager, backend)
        await manager.close(cid)
        assert manager.active_connection_id is None

    @pytest.mark.asyncio
    async def test_close_inactive_keeps_active(self, manager, backend):
        await _open(manager, backend, "a", "/dev/ttyUSB0")
        await _open(manager, backend, "b", "/dev/ttyUSB1")

        await manager.close("a")

        assert manager.active_connection_id == "b"

    @pytest.mark.asyncio
    async def test_close_failure_notifies_and_raises(self, manager, backend, notifications):
        cid = await _open(manager, backend)
        backend.responses["close_serial"] = RuntimeError("device gone")

        with pytest.raises(BackendError):
            await manager.close(cid)

        assert cid in manager.connections
        [note] = notifications.notifications
        assert note.severity is Severity.ERROR
        assert "Failed to close serial port" in note.message


class TestWrite:
    @pytest.mark.asyncio
    async def test_write_sends_data(self, manager, backend):
        cid = await _open(manager, backend)

        await manager.write(cid, "help\n")

        assert backend.args_for("write_serial") == {"connection_id": cid, "data": "help\n"}

    @pytest.mark.asyncio
    async def test_write_failure_notifies_and_raises_once(self, manager, backend, notifications):
        cid = await _open(manager, backend)
        backend.responses["write_serial"] = RuntimeError("write timeout")

        with pytest.raises(BackendError):
            await manager.write(cid, "x")

        assert backend.commands().count("write_serial") == 1
        assert "Failed to write to serial" in notifications.notifications[0].message


class TestEvents:
    @pytest.mark.asyncio
    async def test_data_for_unknown_connection_dropped(self, manager, notifications):
        manager.on_event({"type": "data", "connection_id": "ghost", "text": "hi\n"})

        assert manager.buffers.get() == {}
        assert notifications.notifications == []

    @pytest.mark.asyncio
    async def test_data_reassembles_lines(self, manager, backend):
        cid = await _open(manager, backend)

        manager.on_event({"type": "data", "connection_id": cid, "text": "AB"})
        manager.on_event(SerialDataEvent(connection_id=cid, text="CD\r\nEF"))

        buffer = manager.get_buffer(cid)
        assert buffer.lines == ["ABCD"]
        assert buffer.partial_line == "EF"

    @pytest.mark.asyncio
    async def test_buffer_bounded(self, manager, backend):
        cid = await _open(manager, backend)

        manager.on_event({"type": "data", "connection_id": cid, "text": "1\n2\n3\n4\n5\n6\n7\n"})

        assert manager.get_buffer(cid).lines == ["3", "4", "5", "6", "7"]

    @pytest.mark.asyncio
    async def test_error_event_notifies_without_closing(self, manager, backend, notifications):
        cid = await _open(manager, backend)

        manager.on_event({"type": "error", "connection_id": cid, "message": "framing error"})

        assert cid in manager.connections
        assert notifications.notifications[0].message == "Serial error: framing error"

    @pytest.mark.asyncio
    async def test_error_event_without_message(self, manager, notifications):
        manager.on_event({"type": "error", "connection_id": "x"})
        assert notifications.notifications[0].message == "Serial error: Unknown error"

    @pytest.mark.asyncio
    async def test_closed_event_is_idempotent(self, manager, backend):
        cid = await _open(manager, backend)

        manager.on_event({"type": "closed", "connection_id": cid})
        manager.on_event({"type": "closed", "connection_id": cid})

        assert manager.connections == {}
        assert manager.buffers.get() == {}
        assert manager.active_connection_id is None

    def test_malformed_event_dropped(self, manager):
        manager.on_event({"type": "bogus", "connection_id": "x"})
        manager.on_event({"type": "data"})
        assert manager.connections == {}


class TestLocalState:
    @pytest.mark.asyncio
    async def test_clear_buffer_keeps_connection(self, manager, backend):
        cid = await _open(manager, backend)
        manager.on_event({"type": "data", "connection_id": cid, "text": "a\nb"})

        manager.clear_buffer(cid)

        buffer = manager.get_buffer(cid)
        assert buffer.lines == [] and buffer.partial_line == ""
        assert cid in manager.connections

    def test_clear_unknown_buffer_is_noop(self, manager):
        manager.clear_buffer("nope")
        assert manager.buffers.get() == {}

    @pytest.mark.asyncio
    async def test_set_active_makes_no_backend_call(self, manager, backend):
        await _open(manager, backend)
        calls_before = len(backend.calls)

        manager.set_active(None)

        assert manager.active_connection_id is None
        assert len(backend.calls) == calls_before


class TestPorts:
    @pytest.mark.asyncio
    async def test_refresh_ports(self, manager, backend):
        backend.responses["list_serial_ports"] = [
            {"path": PORT, "port_type": "usb", "vid": 0x10C4, "pid": 0xEA60},
        ]

        ports = await manager.refresh_ports()

        assert [p.path for p in ports] == [PORT]
        assert manager.state.get().available_ports[0].vid == 0x10C4

    @pytest.mark.asyncio
    async def test_refresh_failure_notifies(self, manager, backend, notifications):
        backend.responses["list_serial_ports"] = RuntimeError("udev unavailable")

        ports = await manager.refresh_ports()

        assert ports == []
        assert notifications.notifications[0].message == "Failed to list serial ports"


class TestUploadLock:
    @pytest.mark.asyncio
    async def test_acquire_drops_monitor_on_same_port(self, manager, backend):
        await _open(manager, backend, "mon", PORT)
        await _open(manager, backend, "other", "/dev/ttyACM0")

        await manager.acquire_upload_lock(PORT)

        assert "mon" not in manager.connections
        assert "other" in manager.connections
        assert backend.args_for("acquire_port_for_upload") == {"port_path": PORT}

    @pytest.mark.asyncio
    async def test_context_releases_after_body_failure(self, manager, backend):
        with pytest.raises(RuntimeError):
            async with manager.upload_lock(PORT):
                raise RuntimeError("flash failed")

        assert backend.commands() == ["acquire_port_for_upload", "release_upload_lock"]

    @pytest.mark.asyncio
    async def test_release_failure_is_notified_not_raised(self, manager, backend, notifications):
        backend.responses["release_upload_lock"] = RuntimeError("lock table poisoned")

        async with manager.upload_lock(PORT):
            pass

        assert "Failed to release upload lock" in notifications.notifications[0].message

    @pytest.mark.asyncio
    async def test_failed_acquire_skips_release(self, manager, backend):
        backend.responses["acquire_port_for_upload"] = RuntimeError("busy")

        with pytest.raises(BackendError):
            async with manager.upload_lock(PORT):
                pytest.fail("body must not run")

        assert backend.commands() == ["acquire_port_for_upload"]

    @pytest.mark.asyncio
    async def test_lock_status_passthrough(self, manager, backend):
        backend.responses["get_port_lock_status"] = "upload"
        assert await manager.get_port_lock_status(PORT) == "upload"

    @pytest.mark.asyncio
    async def test_backend_connections(self, manager, backend):
        backend.responses["list_serial_connections"] = ["conn-1", "conn-7"]
        assert await manager.list_backend_connections() == ["conn-1", "conn-7"]
