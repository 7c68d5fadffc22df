"""Pydantic models for serial ports, connections, line buffers and pushed events."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

# Must match the backend's accepted set.
VALID_BAUD_RATES: tuple[int, ...] = (
    300, 1200, 2400, 4800, 9600, 14400, 19200, 38400,
    57600, 115200, 230400, 460800, 921600,
)


class PortInfo(BaseModel):
    """A serial port reported by the backend."""

    path: str
    port_type: str = ""
    manufacturer: str | None = None
    product: str | None = None
    serial_number: str | None = None
    vid: int | None = None
    pid: int | None = None


class SerialConnection(BaseModel):
    """An open serial session, keyed by the backend-assigned id."""

    connection_id: str
    port_path: str
    baud_rate: int


class SerialBuffer(BaseModel):
    """Completed lines plus the unterminated tail of the stream."""

    lines: list[str] = Field(default_factory=list)
    partial_line: str = ""


class SerialState(BaseModel):
    """Ports, connections and the active connection."""

    available_ports: list[PortInfo] = Field(default_factory=list)
    connections: dict[str, SerialConnection] = Field(default_factory=dict)
    active_connection_id: str | None = None


class SerialDataEvent(BaseModel):
    type: Literal["data"] = "data"
    connection_id: str
    text: str = ""


class SerialErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    connection_id: str
    message: str | None = None


class SerialClosedEvent(BaseModel):
    type: Literal["closed"] = "closed"
    connection_id: str


SerialEvent = Annotated[
    Union[SerialDataEvent, SerialErrorEvent, SerialClosedEvent],
    Field(discriminator="type"),
]

serial_event_adapter: TypeAdapter[SerialEvent] = TypeAdapter(SerialEvent)
