"""prophesy: a multi-cluster connection and session manager for search clusters."""

__version__ = "0.1.0"

from prophesy.client.cluster_client import ClientOptions, ClusterClient, build_client_options
from prophesy.config import ProphesyConfig, find_config, load_config
from prophesy.credentials.resolver import CredentialResolver, CredentialStore
from prophesy.credentials.store import SecretStore, build_secret_store
from prophesy.errors import (
    ClusterConnectionError,
    ClusterNotFoundError,
    CredentialError,
    ImportFormatError,
    PersistenceError,
    ProfileValidationError,
    ProphesyError,
    SecretStoreError,
)
from prophesy.models import (
    AuthMethod,
    ClusterProfile,
    ConflictChoice,
    Credentials,
    DeploymentType,
    ExportDocument,
    HealthSnapshot,
    HealthStatus,
    ImportResult,
    ReconnectReport,
)
from prophesy.session.manager import ClusterSessionManager, build_session_manager
from prophesy.state.profiles import ProfileStore
from prophesy.state.store import JsonFileStateStore, MemoryStateStore, StateStore

__all__ = [
    "AuthMethod",
    "ClientOptions",
    "ClusterClient",
    "ClusterConnectionError",
    "ClusterNotFoundError",
    "ClusterProfile",
    "ClusterSessionManager",
    "ConflictChoice",
    "CredentialError",
    "CredentialResolver",
    "CredentialStore",
    "Credentials",
    "DeploymentType",
    "ExportDocument",
    "HealthSnapshot",
    "HealthStatus",
    "ImportFormatError",
    "ImportResult",
    "JsonFileStateStore",
    "MemoryStateStore",
    "PersistenceError",
    "ProfileStore",
    "ProfileValidationError",
    "ProphesyConfig",
    "ProphesyError",
    "ReconnectReport",
    "SecretStore",
    "SecretStoreError",
    "StateStore",
    "build_client_options",
    "build_secret_store",
    "build_session_manager",
    "find_config",
    "load_config",
    "__version__",
]
