"""Serial sessions: connection registry, line reassembly and the upload lock."""

from pioconsole.serial.manager import SerialSessionManager
from pioconsole.serial.models import (
    VALID_BAUD_RATES,
    PortInfo,
    SerialBuffer,
    SerialConnection,
    SerialState,
)

__all__ = [
    "PortInfo",
    "SerialBuffer",
    "SerialConnection",
    "SerialSessionManager",
    "SerialState",
    "VALID_BAUD_RATES",
]
