"""Runtime settings: command timeouts, retention bounds and the state directory.

Every field can be overridden with a ``PIOCONSOLE_<FIELD>`` environment
variable (for example ``PIOCONSOLE_BUILD_TIMEOUT_MS=900000``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Mapping

from pioconsole.exceptions import ValidationError

ENV_PREFIX = "PIOCONSOLE_"


def default_state_dir() -> Path:
    """Per-user directory for the preference file."""
    xdg = os.environ.get("XDG_STATE_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "state"
    return base / "pioconsole"


@dataclass(frozen=True)
class ConsoleSettings:
    """Timeouts (milliseconds), bounds and paths used by the core components."""

    default_timeout_ms: int = 30_000
    serial_command_timeout_ms: int = 10_000
    serial_list_timeout_ms: int = 5_000
    build_timeout_ms: int = 10 * 60 * 1000
    clean_timeout_ms: int = 5 * 60 * 1000
    profile_timeout_ms: int = 10_000
    pin_timeout_ms: int = 5_000
    discover_timeout_ms: int = 20_000
    max_serial_lines: int = 10_000
    max_build_lines: int = 5_000
    notification_duration_ms: int = 4_000
    persist_debounce_ms: int = 150
    state_dir: Path | None = None
    log_level: str = "INFO"
    json_logs: bool = False


def _coerce(name: str, raw: str, current: object) -> object:
    if name == "state_dir":
        return Path(raw).expanduser() if raw else None
    if isinstance(current, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(current, int):
        try:
            value = int(raw)
        except ValueError as exc:
            raise ValidationError(f"{ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}") from exc
        if value < 0:
            raise ValidationError(f"{ENV_PREFIX}{name.upper()} must not be negative")
        return value
    return raw


def load_settings(environ: Mapping[str, str] | None = None) -> ConsoleSettings:
    """Build settings from defaults plus ``PIOCONSOLE_*`` overrides."""
    env = os.environ if environ is None else environ
    settings = ConsoleSettings(state_dir=default_state_dir())
    overrides: dict[str, object] = {}
    for f in fields(ConsoleSettings):
        raw = env.get(ENV_PREFIX + f.name.upper())
        if raw is None:
            continue
        overrides[f.name] = _coerce(f.name, raw, getattr(settings, f.name))
    return replace(settings, **overrides)
