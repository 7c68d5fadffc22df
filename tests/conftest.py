"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import inspect
from collections import defaultdict
from typing import Any, Callable

import pytest

from pioconsole.backend import Backend
from pioconsole.core.gateway import CommandGateway
from pioconsole.core.notifications import NotificationScheduler
from pioconsole.settings import ConsoleSettings


class FakeBackend(Backend):
    """Backend double with scripted responses and a manual event pump.

    ``responses[command]`` may be a value, an exception instance (raised),
    or a callable taking the args dict; a callable may return an awaitable.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict | None]] = []
        self.responses: dict[str, Any] = {}
        self.handlers: dict[str, list[Callable]] = defaultdict(list)

    async def invoke(self, command: str, args: dict[str, Any] | None = None) -> Any:
        self.calls.append((command, args))
        response = self.responses.get(command)
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            response = response(args)
            if inspect.isawaitable(response):
                response = await response
        return response

    def subscribe(self, channel: str, handler: Callable) -> Callable[[], None]:
        self.handlers[channel].append(handler)
        return lambda: self.handlers[channel].remove(handler)

    def emit(self, channel: str, payload: dict) -> None:
        for handler in list(self.handlers[channel]):
            handler(payload)

    def commands(self) -> list[str]:
        return [name for name, _ in self.calls]

    def args_for(self, command: str) -> dict | None:
        for name, args in self.calls:
            if name == command:
                return args
        raise AssertionError(f"{command} was never invoked")


class _ManualHandle:
    def __init__(self, due_ms: float, callback: Callable[[], None]) -> None:
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Deterministic stand-in for ``loop.call_later``; time moves only via advance()."""

    def __init__(self) -> None:
        self.now_ms = 0.0
        self._handles: list[_ManualHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle(self.now_ms + round(delay * 1000, 6), callback)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for h in self._handles if not h.cancelled)

    def advance(self, ms: float) -> None:
        target = self.now_ms + ms
        while True:
            due = [h for h in self._handles if not h.cancelled and h.due_ms <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.due_ms)
            self._handles.remove(handle)
            self.now_ms = handle.due_ms
            handle.callback()
        self.now_ms = target


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def gateway(backend: FakeBackend) -> CommandGateway:
    return CommandGateway(backend)


@pytest.fixture
def notifications(clock: ManualClock) -> NotificationScheduler:
    return NotificationScheduler(call_later=clock.call_later)


@pytest.fixture
def settings(tmp_path) -> ConsoleSettings:
    return ConsoleSettings(state_dir=tmp_path / "state")
