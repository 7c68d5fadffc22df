"""Best-effort key/value preferences kept in a small JSON file.

Every failure (no directory configured, unreadable or corrupt file, disk
full) degrades to "nothing stored"; callers never see an exception.
"""

from __future__ import annotations

import json
from pathlib import Path

from pioconsole.utils.logging import get_logger

logger = get_logger(__name__)

PREFERENCES_FILE = "preferences.json"


class PreferenceStore:
    def __init__(self, state_dir: Path | None) -> None:
        self._path = state_dir / PREFERENCES_FILE if state_dir is not None else None

    @property
    def available(self) -> bool:
        return self._path is not None

    def _read(self) -> dict[str, str]:
        if self._path is None:
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.debug("preferences_read_failed", path=str(self._path), error=str(exc))
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str | None) -> None:
        """Store *value* under *key*; None removes the key."""
        if self._path is None:
            return
        data = self._read()
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as exc:
            logger.debug("preferences_write_failed", path=str(self._path), error=str(exc))
