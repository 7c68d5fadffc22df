"""Exception hierarchy for gateway, serial, build and profile operations."""

from __future__ import annotations


class ConsoleError(Exception):
    """Base exception for all pioconsole errors."""

    def __init__(self, message: str, command: str | None = None) -> None:
        self.command = command
        super().__init__(message)


class TimeoutError(ConsoleError):
    """A backend command did not settle within its bound."""

    def __init__(self, command: str, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Command '{command}' timed out after {timeout_ms}ms", command=command
        )


class BackendError(ConsoleError):
    """The backend rejected a command."""


class ValidationError(ConsoleError):
    """Input was rejected locally before reaching the backend."""


class ProfileError(ConsoleError):
    """A saved profile could not be listed, saved, loaded or deleted."""
