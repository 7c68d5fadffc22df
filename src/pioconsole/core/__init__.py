"""Primitives shared by every component: gateway, stores, timers, notifications."""

from pioconsole.core.gateway import CommandGateway
from pioconsole.core.notifications import NotificationScheduler
from pioconsole.core.selection import resolve_selection
from pioconsole.core.store import Store

__all__ = [
    "CommandGateway",
    "NotificationScheduler",
    "Store",
    "resolve_selection",
]
