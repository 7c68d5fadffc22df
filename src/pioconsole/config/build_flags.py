"""Turn define values into ``-DNAME=value`` build flags."""

from __future__ import annotations

import re
from typing import Mapping

_NEEDS_QUOTES = re.compile(r'\s|"')


def quote_build_flag_value(value: str) -> str:
    """Quote *value* so it survives the build tool's shell-style splitting.

    Empty values become ``""``; values already wrapped in matching quotes
    are kept (trimmed); values with whitespace or double quotes are escaped
    and double-quoted; anything else passes through.
    """
    if not value:
        return '""'

    trimmed = value.strip()
    already_quoted = len(trimmed) >= 2 and (
        (trimmed.startswith('"') and trimmed.endswith('"'))
        or (trimmed.startswith("'") and trimmed.endswith("'"))
    )
    if already_quoted:
        return trimmed

    if not _NEEDS_QUOTES.search(value):
        return value

    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("$", "\\$")
        .replace("`", "\\`")
    )
    return f'"{escaped}"'


def build_flags_from_defines(defines: Mapping[str, str]) -> list[str]:
    return [f"-D{name}={quote_build_flag_value(value)}" for name, value in defines.items()]
