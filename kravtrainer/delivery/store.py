"""
Key/value stores for session persistence.

- MemoryStore: process-local dict, used by tests and as the engine default
- JsonFileStore: every key in one JSON document on disk

Stores give no transactional guarantee; callers treat them as best-effort.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from loguru import logger

# Default store location
STATE_FILE = Path.home() / ".kravtrainer" / "state.json"


class KeyValueStore(Protocol):
    def save(self, key: str, value: Any) -> None: ...

    def load(self, key: str) -> Any | None: ...

    def clear(self, key: str) -> None: ...


class MemoryStore:
    """In-memory store. Values are deep-copied through JSON like a real store."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def save(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def load(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def clear(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileStore:
    """
    Store backed by a single JSON file.

    Writes go to a temporary file that replaces the original, so a crash
    mid-write leaves the previous document intact. An unreadable document is
    treated as empty.
    """

    def __init__(self, path: Path | None = None):
        self.path = path or STATE_FILE
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable state file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".state-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def save(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def load(self, key: str) -> Any | None:
        return self._read().get(key)

    def clear(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
