"""In-memory connection registry and health cache.

The registry is the single source of truth for "is this cluster
connected": at most one live handle per cluster id. The health cache
shares the registry's lock so that a snapshot can only be written while
the exact handle it was read from is still installed. A disconnect that
lands in the middle of a health poll therefore makes the late write a
no-op instead of resurrecting a stale snapshot.

Only the session manager installs or removes handles; the health
monitor and callers only read.
"""

from __future__ import annotations

import threading

from prophesy.client.cluster_client import ClusterHandle
from prophesy.models import HealthSnapshot


class ConnectionRegistry:
    """Mapping of cluster id to live client handle."""

    def __init__(self) -> None:
        self._handles: dict[str, ClusterHandle] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def install(self, cluster_id: str, handle: ClusterHandle) -> ClusterHandle | None:
        """Register *handle* for *cluster_id*. Returns the replaced handle, if any."""
        with self._lock:
            previous = self._handles.get(cluster_id)
            self._handles[cluster_id] = handle
            return previous

    def remove(self, cluster_id: str) -> ClusterHandle | None:
        with self._lock:
            return self._handles.pop(cluster_id, None)

    def get(self, cluster_id: str) -> ClusterHandle | None:
        with self._lock:
            return self._handles.get(cluster_id)

    def __contains__(self, cluster_id: object) -> bool:
        with self._lock:
            return cluster_id in self._handles

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._handles)

    def items(self) -> list[tuple[str, ClusterHandle]]:
        """Point-in-time copy of (id, handle) pairs."""
        with self._lock:
            return list(self._handles.items())

    def clear(self) -> list[ClusterHandle]:
        """Drop every handle and return them so the caller can close them."""
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
            return handles


class HealthCache:
    """Latest HealthSnapshot per connected cluster id."""

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry
        self._snapshots: dict[str, HealthSnapshot] = {}

    def record(self, cluster_id: str, handle: ClusterHandle, snapshot: HealthSnapshot) -> bool:
        """Store *snapshot* if *handle* is still the registered handle.

        Returns False (and writes nothing) when the id was disconnected or
        reconnected with a different handle since the reading was taken.
        """
        with self._registry.lock:
            if self._registry.get(cluster_id) is not handle:
                return False
            self._snapshots[cluster_id] = snapshot
            return True

    def purge(self, cluster_id: str) -> None:
        with self._registry.lock:
            self._snapshots.pop(cluster_id, None)

    def get(self, cluster_id: str) -> HealthSnapshot | None:
        with self._registry.lock:
            return self._snapshots.get(cluster_id)

    def all(self) -> dict[str, HealthSnapshot]:
        with self._registry.lock:
            return dict(self._snapshots)

    def __len__(self) -> int:
        with self._registry.lock:
            return len(self._snapshots)

    def clear(self) -> None:
        with self._registry.lock:
            self._snapshots.clear()
