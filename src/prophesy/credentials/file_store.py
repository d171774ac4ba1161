"""File-backed secret store.

Keeps every secret in a single JSON object readable only by the owner
(mode 0600). Thread-safe via a lock on all operations; writes go to a
temporary file that is renamed over the original.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path

from prophesy.errors import SecretStoreError


class FileSecretStore:
    """JSON-file secret store for local single-user installs."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._read_all().get(key)

    def store(self, key: str, value: str) -> None:
        with self._lock:
            secrets = self._read_all()
            secrets[key] = value
            self._write_all(secrets)

    def delete(self, key: str) -> None:
        with self._lock:
            secrets = self._read_all()
            if secrets.pop(key, None) is not None:
                self._write_all(secrets)

    @property
    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._read_all())

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise SecretStoreError(f"Cannot read secrets file {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise SecretStoreError(f"Secrets file {self._path} is not a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def _write_all(self, secrets: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(secrets, f, sort_keys=True, indent=2)
        tmp_path.replace(self._path)
