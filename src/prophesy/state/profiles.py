"""Durable profile storage on top of a StateStore.

Two records back the profile table: the ordered list of known cluster
ids and one JSON payload per id. A payload that fails to parse is logged
and skipped so that one corrupt entry never hides the rest.

The reconnect set (ids that were connected when the process last
exited) lives here as well, since it is only meaningful next to the
profiles it names.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from prophesy.errors import PersistenceError
from prophesy.models import ClusterProfile
from prophesy.state.store import StateStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "prophesy."
CLUSTER_IDS_KEY = f"{KEY_PREFIX}clusterIds"
RECONNECT_KEY = f"{KEY_PREFIX}connectedClusters"


def profile_key(cluster_id: str) -> str:
    return f"{KEY_PREFIX}cluster.{cluster_id}"


class ProfileStore:
    """Persists ClusterProfile payloads and the reconnect set."""

    def __init__(self, state: StateStore) -> None:
        self._state = state

    @property
    def state(self) -> StateStore:
        return self._state

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def known_ids(self) -> list[str]:
        return list(self._state.get(CLUSTER_IDS_KEY, []))

    def save(self, profile: ClusterProfile) -> None:
        """Write the payload and append the id to the known list if absent."""
        self._state.update(profile_key(profile.id), profile.to_payload())
        ids = self.known_ids()
        if profile.id not in ids:
            ids.append(profile.id)
            self._state.update(CLUSTER_IDS_KEY, ids)

    def delete(self, cluster_id: str) -> None:
        self._state.update(profile_key(cluster_id), None)
        ids = self.known_ids()
        if cluster_id in ids:
            self._state.update(CLUSTER_IDS_KEY, [i for i in ids if i != cluster_id])

    def load(self, cluster_id: str) -> ClusterProfile:
        """Parse one stored payload.

        Raises:
            PersistenceError: If the payload is missing or malformed.
        """
        raw = self._state.get(profile_key(cluster_id))
        if raw is None:
            raise PersistenceError(f"No stored configuration for cluster {cluster_id}")
        try:
            payload: Any = json.loads(raw) if isinstance(raw, str) else raw
            if not isinstance(payload, dict):
                raise TypeError(f"expected an object, got {type(payload).__name__}")
            return ClusterProfile.model_validate({**payload, "id": cluster_id})
        except (json.JSONDecodeError, TypeError, ValidationError) as exc:
            raise PersistenceError(
                f"Failed to parse stored configuration for cluster {cluster_id}: {exc}"
            ) from exc

    def load_all(self) -> list[ClusterProfile]:
        """Load every known profile, skipping entries that fail to parse."""
        profiles: list[ClusterProfile] = []
        for cluster_id in self.known_ids():
            try:
                profiles.append(self.load(cluster_id))
            except PersistenceError as exc:
                logger.warning("Skipping stored cluster: %s", exc)
        return profiles

    def clear(self) -> list[str]:
        """Delete every payload and the known id list. Returns the ids removed."""
        ids = self.known_ids()
        for cluster_id in ids:
            self._state.update(profile_key(cluster_id), None)
        self._state.update(CLUSTER_IDS_KEY, None)
        return ids

    # ------------------------------------------------------------------
    # Reconnect set
    # ------------------------------------------------------------------

    def reconnect_ids(self) -> list[str]:
        return list(self._state.get(RECONNECT_KEY, []))

    def mark_reconnect(self, cluster_id: str) -> None:
        ids = self.reconnect_ids()
        if cluster_id not in ids:
            ids.append(cluster_id)
            self._state.update(RECONNECT_KEY, ids)

    def unmark_reconnect(self, cluster_id: str) -> None:
        ids = self.reconnect_ids()
        if cluster_id in ids:
            self._state.update(RECONNECT_KEY, [i for i in ids if i != cluster_id])

    def clear_reconnect(self) -> None:
        self._state.update(RECONNECT_KEY, None)
