"""Reassemble an arbitrarily chunked text stream into discrete lines."""

from __future__ import annotations

from pioconsole.serial.models import SerialBuffer


def normalize_newlines(text: str) -> str:
    """Turn ``\\r\\n`` and bare ``\\r`` into ``\\n``."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def append_chunk(buffer: SerialBuffer, text: str, max_lines: int) -> SerialBuffer:
    """Return a new buffer with *text* appended.

    The carried-over partial line is prepended before splitting, so a line
    split across chunks comes out whole. A chunk ending exactly on a
    newline leaves an empty partial line and no spurious blank line. Only
    the newest *max_lines* completed lines are kept.

    A trailing ``\\r`` stays unnormalized in the partial line until the next
    chunk shows whether it starts a ``\\r\\n`` pair.
    """
    combined = buffer.partial_line + text
    held = ""
    if combined.endswith("\r"):
        combined, held = combined[:-1], "\r"

    normalized = normalize_newlines(combined)
    parts = normalized.split("\n")

    if normalized.endswith("\n"):
        # split() leaves one trailing "" after the final newline
        parts.pop()
        partial = ""
    else:
        partial = parts.pop()
    partial += held

    lines = [*buffer.lines, *parts]
    if len(lines) > max_lines:
        lines = lines[len(lines) - max_lines:]
    return SerialBuffer(lines=lines, partial_line=partial)
