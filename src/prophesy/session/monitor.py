"""Background health polling.

HealthMonitor is a two-state machine:

- ``idle``: no polling thread exists
- ``polling``: a daemon thread queries every registered cluster once on
  entry and then once per interval

Whether polling is enabled is persisted so it survives restarts. Each
tick reads health per cluster independently: a failure for one id turns
into an ``unknown`` snapshot for that id and never stops the others.
Observers are signalled once per tick.
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable

from prophesy.client.cluster_client import ClusterHandle
from prophesy.models import HealthSnapshot
from prophesy.session.registry import ConnectionRegistry, HealthCache
from prophesy.state.store import StateStore

logger = logging.getLogger(__name__)

AUTO_REFRESH_KEY = "prophesy.autoRefreshEnabled"
DEFAULT_INTERVAL = 60.0


class MonitorState(enum.StrEnum):
    IDLE = "idle"
    POLLING = "polling"


def read_health(handle: ClusterHandle) -> HealthSnapshot:
    """Query *handle* for cluster health, degrading to ``unknown`` on error."""
    try:
        return HealthSnapshot.from_health(handle.health())
    except Exception as exc:
        logger.debug("Health query failed: %s", exc)
        return HealthSnapshot.unknown()


class HealthMonitor:
    """Periodically refreshes the health cache for every connected cluster."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        cache: HealthCache,
        state: StateStore,
        *,
        interval: float = DEFAULT_INTERVAL,
        on_tick: Callable[[], None] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("Polling interval must be positive")
        self._registry = registry
        self._cache = cache
        self._state = state
        self._interval = interval
        self._on_tick = on_tick
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._stop_event: threading.Event | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def enabled(self) -> bool:
        """Persisted auto-refresh flag."""
        return bool(self._state.get(AUTO_REFRESH_KEY, False))

    @property
    def state(self) -> MonitorState:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return MonitorState.POLLING
            return MonitorState.IDLE

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def enable(self) -> None:
        self._state.update(AUTO_REFRESH_KEY, True)
        self.start()

    def disable(self) -> None:
        self._state.update(AUTO_REFRESH_KEY, False)
        self.stop()

    def toggle(self) -> bool:
        """Flip the persisted flag. Returns the new value."""
        if self.enabled:
            self.disable()
            return False
        self.enable()
        return True

    def start_if_enabled(self) -> bool:
        if self.enabled:
            self.start()
            return True
        return False

    def start(self) -> None:
        """Enter ``polling``, replacing any thread that is already running."""
        with self._lock:
            previous = self._detach_locked()
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="prophesy-health-monitor",
                daemon=True,
            )
            self._stop_event = stop_event
            self._thread = thread
            thread.start()
        self._join(previous)
        logger.debug("Health polling started (every %ss)", self._interval)

    def stop(self) -> None:
        """Enter ``idle`` without touching the persisted flag."""
        with self._lock:
            previous = self._detach_locked()
        self._join(previous)

    def _detach_locked(self) -> threading.Thread | None:
        if self._stop_event is not None:
            self._stop_event.set()
        thread = self._thread
        self._thread = None
        self._stop_event = None
        return thread

    @staticmethod
    def _join(thread: threading.Thread | None) -> None:
        # A listener may stop polling from inside the polling thread.
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            self.tick()
            if stop_event.wait(self._interval):
                break

    def tick(self) -> dict[str, HealthSnapshot]:
        """Refresh every registered cluster once.

        Returns the snapshots that were actually written. A cluster that
        was disconnected while its query was in flight is left out.
        """
        written: dict[str, HealthSnapshot] = {}
        for cluster_id, handle in self._registry.items():
            snapshot = read_health(handle)
            if self._cache.record(cluster_id, handle, snapshot):
                written[cluster_id] = snapshot
            else:
                logger.debug("Discarded health for %s: no longer connected", cluster_id)
        if self._on_tick is not None:
            self._on_tick()
        return written
