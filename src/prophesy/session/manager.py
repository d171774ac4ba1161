"""ClusterSessionManager: the connection and session lifecycle core.

Owns three tables (profiles, the connection registry, the health cache)
plus the active-cluster pointer, and coordinates every mutation across
them:

1. Profile CRUD against the durable ProfileStore
2. Credential resolution (secret store, then injected prompt, then persist)
3. Connect / disconnect and the durable reconnect set
4. Silent auto-reconnect on startup with an aggregate report
5. Export / import of non-secret profile fields
6. Background health polling via HealthMonitor

Observers subscribe to a single payload-less "state changed" signal and
re-read whatever they need.

Locking: a manager-wide lock guards the in-memory tables and is never
held across a network call. Operations on the same cluster id are
serialized by a per-id lock; different ids proceed independently. A
connect registers its handle only if the profile it started from is
still in the profile table, so a concurrent remove or clear_all wins.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError

from prophesy.client.cluster_client import (
    ClientFactory,
    ClusterClient,
    ClusterHandle,
    build_client_options,
)
from prophesy.config import ProphesyConfig
from prophesy.credentials.resolver import CredentialPrompt, CredentialResolver, CredentialStore
from prophesy.credentials.store import build_secret_store
from prophesy.errors import (
    ClusterConnectionError,
    ClusterNotFoundError,
    CredentialError,
    ImportFormatError,
    ProfileValidationError,
)
from prophesy.models import (
    ClusterProfile,
    ConflictChoice,
    Credentials,
    ExportDocument,
    ExportedCluster,
    HealthSnapshot,
    ImportResult,
    ReconnectReport,
)
from prophesy.session.monitor import HealthMonitor, read_health
from prophesy.session.registry import ConnectionRegistry, HealthCache
from prophesy.state.profiles import ProfileStore
from prophesy.state.store import JsonFileStateStore

logger = logging.getLogger(__name__)

CA_CERTIFICATE_KEY = "prophesy.caCertificate"
ACTIVE_CLUSTER_KEY = "prophesy.activeCluster"
PEM_MARKER = "-----BEGIN CERTIFICATE-----"

IMPORT_REQUIRED_FIELDS = ("name", "deploymentType", "authMethod")
IMPORT_PROFILE_FIELDS = ("name", "deploymentType", "nodeUrl", "cloudId", "authMethod", "disableSSL")

Listener = Callable[[], None]
ConflictResolver = Callable[[ClusterProfile, ClusterProfile], ConflictChoice]
"""Called with (incoming, existing) when an imported name is already taken."""


def _close_quietly(handle: ClusterHandle) -> None:
    try:
        handle.close()
    except Exception as exc:
        logger.debug("Error closing client: %s", exc)


class ClusterSessionManager:
    """Coordinates profiles, connections, credentials and health."""

    def __init__(
        self,
        profiles: ProfileStore,
        credentials: CredentialStore,
        *,
        client_factory: ClientFactory = ClusterClient.from_options,
        prompt: CredentialPrompt | None = None,
        refresh_interval: float = 60.0,
        request_timeout: float = 10.0,
    ) -> None:
        self._store = profiles
        self._credentials = credentials
        self._resolver = CredentialResolver(credentials, prompt=prompt)
        self._client_factory = client_factory
        self._request_timeout = request_timeout

        self._lock = threading.RLock()
        self._id_locks: dict[str, threading.Lock] = {}
        self._profiles: dict[str, ClusterProfile] = {}
        self._active_id: str | None = None
        self._listeners: list[Listener] = []

        self._registry = ConnectionRegistry()
        self._health = HealthCache(self._registry)
        self._monitor = HealthMonitor(
            self._registry,
            self._health,
            profiles.state,
            interval=refresh_interval,
            on_tick=self._notify,
        )

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def health_cache(self) -> HealthCache:
        return self._health

    @property
    def monitor(self) -> HealthMonitor:
        return self._monitor

    @property
    def profile_store(self) -> ProfileStore:
        return self._store

    @property
    def credential_store(self) -> CredentialStore:
        return self._credentials

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception("State-change listener failed")

    def _id_lock(self, cluster_id: str) -> threading.Lock:
        with self._lock:
            lock = self._id_locks.get(cluster_id)
            if lock is None:
                lock = self._id_locks[cluster_id] = threading.Lock()
            return lock

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def active_id(self) -> str | None:
        with self._lock:
            return self._active_id

    def list_profiles(self) -> list[ClusterProfile]:
        with self._lock:
            return list(self._profiles.values())

    def get_profile(self, cluster_id: str) -> ClusterProfile | None:
        with self._lock:
            return self._profiles.get(cluster_id)

    def find_profile_by_name(self, name: str) -> ClusterProfile | None:
        with self._lock:
            for profile in self._profiles.values():
                if profile.name == name:
                    return profile
        return None

    def get_active_profile(self) -> ClusterProfile | None:
        with self._lock:
            if self._active_id is None:
                return None
            return self._profiles.get(self._active_id)

    def get_client(self, cluster_id: str | None = None) -> ClusterHandle | None:
        """Live handle for *cluster_id* (default: the active cluster)."""
        target = cluster_id if cluster_id is not None else self.active_id
        if target is None:
            return None
        return self._registry.get(target)

    def is_connected(self, cluster_id: str) -> bool:
        return cluster_id in self._registry

    def connected_ids(self) -> list[str]:
        return self._registry.ids()

    def get_health(self, cluster_id: str) -> HealthSnapshot | None:
        return self._health.get(cluster_id)

    def health_snapshots(self) -> dict[str, HealthSnapshot]:
        return self._health.all()

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def add_profile(
        self,
        profile: ClusterProfile | Mapping[str, Any],
        credentials: Credentials | Mapping[str, str] | None = None,
        *,
        connect: bool = True,
    ) -> str:
        """Validate and persist a new profile, store its credentials, then connect.

        The profile stays saved even when the connect attempt fails. An
        ``id`` in mapping input is ignored; a fresh one is generated.

        Raises:
            ProfileValidationError: If the profile or credentials are malformed.
            ClusterConnectionError: If the immediate connect fails
                (``cluster_id`` carries the saved id).
        """
        if not isinstance(profile, ClusterProfile):
            try:
                profile = ClusterProfile.model_validate(
                    {k: v for k, v in profile.items() if k != "id"}
                )
            except ValidationError as exc:
                raise ProfileValidationError(str(exc)) from exc

        if credentials is None:
            creds = Credentials()
        elif isinstance(credentials, Credentials):
            creds = credentials
        else:
            creds = Credentials.from_fields(credentials)

        missing = creds.missing_for(profile.auth_method)
        if missing:
            raise ProfileValidationError(
                f"Authentication method '{profile.auth_method}' requires: {', '.join(missing)}"
            )

        with self._lock:
            if profile.id in self._profiles:
                raise ProfileValidationError(f"Cluster id already exists: {profile.id}")
            self._save_locked(profile)
        self._credentials.save(profile.id, profile.auth_method, creds)
        logger.info("Added cluster %s (%s)", profile.name, profile.id)
        self._notify()

        if connect:
            self.establish(profile.id, interactive=False)
        return profile.id

    def _save_locked(self, profile: ClusterProfile) -> None:
        self._store.save(profile)
        self._profiles[profile.id] = profile
        if self._active_id is None:
            self._set_active_locked(profile.id)

    def remove_profile(self, cluster_id: str) -> None:
        """Disconnect and delete a profile with all of its credentials.

        Removing an unknown id is a no-op.
        """
        with self._id_lock(cluster_id):
            handle = self._teardown(cluster_id)
            with self._lock:
                existed = self._profiles.pop(cluster_id, None) is not None
                self._store.delete(cluster_id)
                if self._active_id == cluster_id:
                    self._set_active_locked(next(iter(self._profiles), None))
            self._credentials.delete_all(cluster_id)
            with self._lock:
                self._id_locks.pop(cluster_id, None)
        if handle is not None:
            _close_quietly(handle)
        if existed:
            logger.info("Removed cluster %s", cluster_id)
        self._notify()

    def _teardown(self, cluster_id: str) -> ClusterHandle | None:
        with self._registry.lock:
            handle = self._registry.remove(cluster_id)
            self._health.purge(cluster_id)
        self._store.unmark_reconnect(cluster_id)
        return handle

    def set_active(self, cluster_id: str | None) -> None:
        """Point the active cluster at *cluster_id*. Callers validate the id."""
        with self._lock:
            self._set_active_locked(cluster_id)
        self._notify()

    def _set_active_locked(self, cluster_id: str | None) -> None:
        self._active_id = cluster_id
        self._store.state.update(ACTIVE_CLUSTER_KEY, cluster_id)

    def load(self) -> list[ClusterProfile]:
        """Replace the in-memory profile table with the persisted profiles.

        The persisted active pointer is restored when it still names a
        loaded profile and cleared otherwise.
        """
        loaded = self._store.load_all()
        with self._lock:
            self._profiles = {p.id: p for p in loaded}
            stored = self._store.state.get(ACTIVE_CLUSTER_KEY)
            active = stored if stored in self._profiles else None
            if active != stored or active != self._active_id:
                self._set_active_locked(active)
        self._notify()
        return loaded

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def connect(self, cluster_id: str, *, interactive: bool = True) -> bool:
        """Connect *cluster_id*. Returns False on ping or credential failure.

        Raises:
            ClusterNotFoundError: If no profile has this id.
        """
        try:
            self.establish(cluster_id, interactive=interactive)
        except (ClusterConnectionError, CredentialError) as exc:
            logger.warning("Failed to connect to %s: %s", cluster_id, exc)
            return False
        return True

    def establish(
        self,
        cluster_id: str,
        *,
        interactive: bool = True,
        remember: bool = True,
    ) -> HealthSnapshot:
        """Connect *cluster_id* and return the seeded health snapshot.

        With ``remember=False`` the handle is registered for this session
        only: the reconnect set and the active pointer are left alone.

        Raises:
            ClusterNotFoundError: If no profile has this id, including when
                the profile is removed while the connect is in flight.
            CredentialError: If required credentials cannot be resolved.
            ClusterConnectionError: If the client cannot be built or the
                ping fails. Nothing is registered in that case.
        """
        if self.get_profile(cluster_id) is None:
            raise ClusterNotFoundError(cluster_id)

        with self._id_lock(cluster_id):
            profile = self.get_profile(cluster_id)
            if profile is None:
                raise ClusterNotFoundError(cluster_id)
            creds = self._resolver.resolve(profile, interactive=interactive)
            options = build_client_options(
                profile, creds, self.ca_certificate, self._request_timeout,
            )
            try:
                handle = self._client_factory(options)
            except (ValueError, ClusterConnectionError) as exc:
                raise ClusterConnectionError(
                    f"Cannot create client for '{profile.name}': {exc}", cluster_id,
                ) from exc

            try:
                handle.ping()
            except Exception as exc:
                _close_quietly(handle)
                raise ClusterConnectionError(
                    f"Failed to connect to '{profile.name}': {exc}", cluster_id,
                ) from exc

            # The profile may have been cleared while this connect was in flight.
            with self._lock:
                current = self._profiles.get(cluster_id) is profile
                if current:
                    previous = self._registry.install(cluster_id, handle)
                    if remember:
                        if self._active_id is None:
                            self._set_active_locked(cluster_id)
                        self._store.mark_reconnect(cluster_id)
            if not current:
                _close_quietly(handle)
                self._credentials.delete_all(cluster_id)
                raise ClusterNotFoundError(cluster_id)

            snapshot = read_health(handle)
            self._health.record(cluster_id, handle, snapshot)

        if previous is not None and previous is not handle:
            _close_quietly(previous)
        logger.info("Connected to %s (%s)", profile.name, snapshot.status)
        self._notify()
        return snapshot

    def disconnect(self, cluster_id: str) -> None:
        """Drop the live handle and health snapshot. No error if not connected."""
        with self._id_lock(cluster_id):
            handle = self._teardown(cluster_id)
            with self._lock:
                if self._active_id == cluster_id:
                    self._set_active_locked(None)
        if handle is not None:
            _close_quietly(handle)
            logger.info("Disconnected from %s", cluster_id)
        self._notify()

    def load_on_startup(self) -> ReconnectReport:
        """Load profiles and silently reconnect everything in the reconnect set.

        Failed or unknown ids are dropped from the reconnect set. Starts
        health polling afterwards if it was left enabled.
        """
        self.load()
        report = ReconnectReport()
        for cluster_id in self._store.reconnect_ids():
            if self.get_profile(cluster_id) is None:
                report.failed[cluster_id] = "No stored configuration"
                self._store.unmark_reconnect(cluster_id)
                continue
            try:
                self.establish(cluster_id, interactive=False)
            except (ClusterConnectionError, ClusterNotFoundError, CredentialError) as exc:
                report.failed[cluster_id] = str(exc)
                self._store.unmark_reconnect(cluster_id)
            else:
                report.reconnected.append(cluster_id)

        if report.reconnected or report.failed:
            logger.info(report.summary())
        self._monitor.start_if_enabled()
        self._notify()
        return report

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_profiles(self) -> ExportDocument | None:
        """Non-secret export of every profile, or None when there are none."""
        profiles = self.list_profiles()
        if not profiles:
            return None
        return ExportDocument(clusters=[ExportedCluster.from_profile(p) for p in profiles])

    def import_profiles(
        self,
        document: Mapping[str, Any] | str,
        on_conflict: ConflictResolver | None = None,
    ) -> ImportResult:
        """Import profiles from an export document.

        Entries missing a required field, or that fail validation, are
        skipped. Name collisions go to *on_conflict* (skip when not
        given). Every imported profile gets a fresh id and no credentials.

        Raises:
            ImportFormatError: If the document is not an object with a
                ``clusters`` array. Nothing is imported in that case.
        """
        if isinstance(document, str):
            try:
                document = json.loads(document)
            except json.JSONDecodeError as exc:
                raise ImportFormatError(f"Import file is not valid JSON: {exc}") from exc
        if not isinstance(document, Mapping) or not isinstance(document.get("clusters"), list):
            raise ImportFormatError("Invalid import file format: expected a 'clusters' array")

        result = ImportResult()
        for entry in document["clusters"]:
            if not isinstance(entry, Mapping) or any(
                not entry.get(f) for f in IMPORT_REQUIRED_FIELDS
            ):
                result.skipped += 1
                continue
            try:
                incoming = ClusterProfile.model_validate(
                    {f: entry[f] for f in IMPORT_PROFILE_FIELDS if f in entry}
                )
            except ValidationError as exc:
                logger.warning("Skipping invalid import entry %r: %s", entry.get("name"), exc)
                result.skipped += 1
                continue

            existing = self.find_profile_by_name(incoming.name)
            if existing is not None:
                choice = on_conflict(incoming, existing) if on_conflict else ConflictChoice.SKIP
                if choice == ConflictChoice.CANCEL:
                    result.cancelled = True
                    break
                if choice == ConflictChoice.SKIP:
                    result.skipped += 1
                    continue
                self.remove_profile(existing.id)

            with self._lock:
                self._save_locked(incoming)
            result.imported.append(incoming.id)

        logger.info(result.summary())
        self._notify()
        return result

    # ------------------------------------------------------------------
    # Global settings
    # ------------------------------------------------------------------

    @property
    def ca_certificate(self) -> str | None:
        return self._store.state.get(CA_CERTIFICATE_KEY)

    def set_ca_certificate(self, pem: str) -> None:
        """Trust *pem* for subsequent TLS connections."""
        if PEM_MARKER not in pem:
            raise ProfileValidationError("CA certificate must be PEM encoded")
        self._store.state.update(CA_CERTIFICATE_KEY, pem)
        self._notify()

    def clear_ca_certificate(self) -> None:
        self._store.state.update(CA_CERTIFICATE_KEY, None)
        self._notify()

    @property
    def auto_refresh_enabled(self) -> bool:
        return self._monitor.enabled

    def enable_auto_refresh(self) -> None:
        self._monitor.enable()
        self._notify()

    def disable_auto_refresh(self) -> None:
        self._monitor.disable()
        self._notify()

    def toggle_auto_refresh(self) -> bool:
        enabled = self._monitor.toggle()
        self._notify()
        return enabled

    def refresh_health(self) -> dict[str, HealthSnapshot]:
        """Run one health poll now, independent of the background timer."""
        return self._monitor.tick()

    # ------------------------------------------------------------------
    # Bulk teardown
    # ------------------------------------------------------------------

    def clear_all(self) -> None:
        """Disconnect and delete every profile and credential; disable polling."""
        self._monitor.disable()
        with self._lock:
            ids = set(self._store.clear()) | set(self._profiles)
            self._profiles.clear()
            self._id_locks.clear()
            self._set_active_locked(None)
            self._store.clear_reconnect()
            with self._registry.lock:
                handles = self._registry.clear()
                self._health.clear()
        for cluster_id in ids:
            self._credentials.delete_all(cluster_id)
        for handle in handles:
            _close_quietly(handle)
        logger.info("Cleared %d cluster(s)", len(ids))
        self._notify()

    def close(self) -> None:
        """Stop polling and close live clients, keeping the reconnect set."""
        self._monitor.stop()
        with self._registry.lock:
            handles = self._registry.clear()
            self._health.clear()
        for handle in handles:
            _close_quietly(handle)


def build_session_manager(
    config: ProphesyConfig,
    *,
    prompt: CredentialPrompt | None = None,
    client_factory: ClientFactory | None = None,
) -> ClusterSessionManager:
    """Wire a manager from configuration: JSON state file plus secret store."""
    state = JsonFileStateStore(config.state_path)
    secrets = build_secret_store(config.secrets, default_path=config.secrets_path)
    return ClusterSessionManager(
        ProfileStore(state),
        CredentialStore(secrets),
        client_factory=client_factory or ClusterClient.from_options,
        prompt=prompt,
        refresh_interval=config.refresh_interval,
        request_timeout=config.request_timeout,
    )
