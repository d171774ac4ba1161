"""Session layer: connection registry, health polling and the session manager."""

from prophesy.session.manager import ClusterSessionManager, build_session_manager
from prophesy.session.monitor import HealthMonitor, MonitorState
from prophesy.session.registry import ConnectionRegistry, HealthCache

__all__ = [
    "ClusterSessionManager",
    "ConnectionRegistry",
    "HealthCache",
    "HealthMonitor",
    "MonitorState",
    "build_session_manager",
]
