"""In-memory secret store for tests and throwaway sessions.

Nothing is persisted: secrets live only as long as the process.
"""

from __future__ import annotations

import threading


class MemorySecretStore:
    """Secret store backed by a plain dict."""

    def __init__(self, secrets: dict[str, str] | None = None) -> None:
        self._secrets: dict[str, str] = dict(secrets or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._secrets.get(key)

    def store(self, key: str, value: str) -> None:
        with self._lock:
            self._secrets[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._secrets.pop(key, None)

    @property
    def keys(self) -> list[str]:
        """Keys currently stored (for testing)."""
        with self._lock:
            return sorted(self._secrets)
