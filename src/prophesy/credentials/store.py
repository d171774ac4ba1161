"""Secret store protocol and backend factory.

Defines the interface that all secret backends must satisfy: get, store
and delete a named secret value. Built-in backends: MemorySecretStore
(testing) and FileSecretStore (local single-user installs).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from prophesy.errors import SecretStoreError


@runtime_checkable
class SecretStore(Protocol):
    """Protocol for secret storage backends.

    Any object with ``get()``, ``store()`` and ``delete()`` methods
    satisfies this protocol.
    """

    def get(self, key: str) -> str | None:
        """Return the secret stored under *key*, or ``None``."""
        ...

    def store(self, key: str, value: str) -> None:
        """Create or overwrite the secret under *key*."""
        ...

    def delete(self, key: str) -> None:
        """Remove *key*. Deleting a missing key is not an error."""
        ...


def build_secret_store(
    config: dict[str, Any],
    default_path: str | Path | None = None,
) -> SecretStore:
    """Build a secret store from a configuration dict.

    Supported keys:
    - type: ``"file"`` (default) or ``"memory"``
    - path: secrets file location for the file backend
      (falls back to *default_path*)
    - secrets: initial key/value mapping for the memory backend
    """
    store_type = config.get("type", "file")

    if store_type == "memory":
        from prophesy.credentials.memory_store import MemorySecretStore

        return MemorySecretStore(secrets=config.get("secrets"))

    if store_type == "file":
        from prophesy.credentials.file_store import FileSecretStore

        path = config.get("path") or default_path
        if path is None:
            raise SecretStoreError("File secret store requires a 'path'")
        return FileSecretStore(Path(path).expanduser())

    raise SecretStoreError(
        f"Unknown secret store type: {store_type}. Available: 'file', 'memory'."
    )
