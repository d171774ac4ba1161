"""Credential storage and resolution for cluster connections.

The resolver:
1. Reads the profile's credential fields from the secret store
2. Returns nothing for profiles that use no authentication
3. Falls back to an injected prompt when fields are missing and the
   caller allows interaction, persisting whatever the prompt returns
4. Fails with CredentialError when fields are missing and interaction
   is not allowed (the silent auto-reconnect path)

Resolved values are returned to the caller and never cached here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from prophesy.credentials.store import SecretStore
from prophesy.errors import CredentialError
from prophesy.models import (
    CREDENTIAL_FIELDS,
    REQUIRED_CREDENTIALS,
    AuthMethod,
    ClusterProfile,
    Credentials,
)

logger = logging.getLogger(__name__)

CredentialPrompt = Callable[[ClusterProfile, list[str]], Mapping[str, str] | None]
"""Asks the user for the missing fields; returns ``None`` if they decline."""


def secret_key(cluster_id: str, field: str) -> str:
    """Namespaced secret key, e.g. ``cluster.<id>.password``."""
    return f"cluster.{cluster_id}.{field}"


class CredentialStore:
    """Per-cluster view over a SecretStore."""

    def __init__(self, secrets: SecretStore) -> None:
        self._secrets = secrets

    def load(self, cluster_id: str) -> Credentials:
        fields = {f: self._secrets.get(secret_key(cluster_id, f)) for f in CREDENTIAL_FIELDS}
        return Credentials.from_fields(fields)

    def save(self, cluster_id: str, method: AuthMethod, credentials: Credentials) -> None:
        """Store the fields *method* requires and drop every other field."""
        wanted = credentials.required_for(method)
        for field in CREDENTIAL_FIELDS:
            key = secret_key(cluster_id, field)
            if field in wanted:
                self._secrets.store(key, wanted[field])
            else:
                self._secrets.delete(key)

    def delete_all(self, cluster_id: str) -> None:
        for field in CREDENTIAL_FIELDS:
            self._secrets.delete(secret_key(cluster_id, field))


class CredentialResolver:
    """Resolves the credentials a profile needs for one connection attempt."""

    def __init__(
        self,
        store: CredentialStore,
        prompt: CredentialPrompt | None = None,
    ) -> None:
        self._store = store
        self._prompt = prompt

    @property
    def store(self) -> CredentialStore:
        return self._store

    def resolve(self, profile: ClusterProfile, *, interactive: bool) -> Credentials:
        """Return the credentials for *profile*.

        Raises:
            CredentialError: If required fields are missing and cannot
                be obtained (no prompt allowed, or the prompt declined).
        """
        method = profile.auth_method
        if method == AuthMethod.NONE:
            return Credentials()

        stored = self._store.load(profile.id)
        missing = stored.missing_for(method)
        if not missing:
            return Credentials.from_fields(stored.required_for(method))

        if not interactive or self._prompt is None:
            raise CredentialError(
                f"Missing {', '.join(missing)} for cluster '{profile.name}'"
            )

        answer = self._prompt(profile, missing) or {}
        merged = dict(stored.required_for(method))
        merged.update({k: v for k, v in answer.items() if k in REQUIRED_CREDENTIALS[method] and v})
        resolved = Credentials.from_fields(merged)

        still_missing = resolved.missing_for(method)
        if still_missing:
            raise CredentialError(
                f"{', '.join(still_missing)} not provided for cluster '{profile.name}'"
            )

        self._store.save(profile.id, method, resolved)
        logger.debug("Stored prompted credentials for %s", profile.id)
        return resolved
