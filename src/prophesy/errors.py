"""Exception taxonomy for prophesy.

Validation and format errors are raised synchronously to the caller.
Per-id failures during health polling or bulk reconnect are caught by
the session layer and turned into degraded state instead.
"""

from __future__ import annotations


class ProphesyError(Exception):
    """Base class for all prophesy errors."""


class ProfileValidationError(ProphesyError, ValueError):
    """Raised when a cluster profile or its credentials are malformed."""


class ClusterConnectionError(ProphesyError):
    """Raised when the ping against a cluster fails."""

    def __init__(self, message: str, cluster_id: str | None = None) -> None:
        super().__init__(message)
        self.cluster_id = cluster_id


class CredentialError(ProphesyError):
    """Raised when a required credential is missing and prompting is not allowed."""


class ClusterNotFoundError(ProphesyError):
    """Raised when an operation references an unknown cluster id."""

    def __init__(self, cluster_id: str) -> None:
        super().__init__(f"Cluster not found: {cluster_id}")
        self.cluster_id = cluster_id


class PersistenceError(ProphesyError):
    """Raised when a stored profile payload cannot be read or parsed."""


class ImportFormatError(ProphesyError):
    """Raised when an import document does not have the expected shape."""


class SecretStoreError(ProphesyError):
    """Raised when a secret store backend cannot be built or read."""
