"""Non-secret key-value state.

A tiny ``get(key, default)`` / ``update(key, value)`` contract for
everything that is durable but not secret: profile payloads, the known
id list, the reconnect set and the auto-refresh flag. Updating a key to
``None`` removes it.
"""

from __future__ import annotations

import copy
import json
import threading
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from prophesy.errors import PersistenceError


@runtime_checkable
class StateStore(Protocol):
    """Protocol for non-secret state backends."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def update(self, key: str, value: Any) -> None: ...


class MemoryStateStore:
    """Dict-backed state store (tests, ephemeral sessions)."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if key not in self._data:
                return default
            return copy.deepcopy(self._data[key])

    def update(self, key: str, value: Any) -> None:
        with self._lock:
            if value is None:
                self._data.pop(key, None)
            else:
                self._data[key] = copy.deepcopy(value)

    def snapshot(self) -> dict[str, Any]:
        """Full copy of the stored data (for testing)."""
        with self._lock:
            return copy.deepcopy(self._data)


class JsonFileStateStore:
    """State store persisted as one JSON document.

    Every update rewrites the file atomically (write to tmp, then rename).
    Thread-safe via a lock.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read_all().get(key, default)

    def update(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read_all()
            if value is None:
                if data.pop(key, None) is None:
                    return
            else:
                data[key] = value
            self._write_all(data)

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"Cannot read state file {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceError(f"State file {self._path} is not a JSON object")
        return data

    def _write_all(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(data, sort_keys=True, indent=2), encoding="utf-8")
        tmp_path.replace(self._path)
