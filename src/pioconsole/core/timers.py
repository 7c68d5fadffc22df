"""Timer scheduling seam so components never reach for a global clock."""

from __future__ import annotations

import asyncio
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


CallLater = Callable[[float, Callable[[], None]], TimerHandle]


def loop_call_later(delay: float, callback: Callable[[], None]) -> TimerHandle:
    """Schedule *callback* after *delay* seconds on the running event loop."""
    return asyncio.get_running_loop().call_later(delay, callback)
