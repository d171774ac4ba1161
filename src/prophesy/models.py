"""Core data models for prophesy.

Defines the schemas for:
- Cluster profiles (non-secret connection configuration)
- Credentials (secret fields, never persisted with the profile)
- Health snapshots (last observed cluster health)
- Export documents (portable profile lists)
- Outcome reports (auto-reconnect and import summaries)
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

EXPORT_FORMAT_VERSION = "1.0.0"

# --- Enums ---


class DeploymentType(enum.StrEnum):
    SELF_MANAGED = "self-managed"
    MANAGED_CLOUD = "managed-cloud"


class AuthMethod(enum.StrEnum):
    NONE = "none"
    BASIC = "basic"
    API_KEY = "api-key"


class HealthStatus(enum.StrEnum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    UNKNOWN = "unknown"


class ConflictChoice(enum.StrEnum):
    """What to do when an imported profile's name is already taken."""

    SKIP = "skip"
    OVERWRITE = "overwrite"
    CANCEL = "cancel"


# Secret field names, as used in the secret store keys.
USERNAME = "username"
PASSWORD = "password"
API_KEY = "apiKey"

CREDENTIAL_FIELDS: tuple[str, ...] = (USERNAME, PASSWORD, API_KEY)

REQUIRED_CREDENTIALS: dict[AuthMethod, tuple[str, ...]] = {
    AuthMethod.NONE: (),
    AuthMethod.BASIC: (USERNAME, PASSWORD),
    AuthMethod.API_KEY: (API_KEY,),
}

# Labels written by older export files.
_LEGACY_LABELS: dict[str, str] = {
    "Self-managed Cluster": DeploymentType.SELF_MANAGED,
    "Elastic Cloud": DeploymentType.MANAGED_CLOUD,
    "None": AuthMethod.NONE,
    "Basic: Username/Password": AuthMethod.BASIC,
    "API Key": AuthMethod.API_KEY,
}


def generate_cluster_id() -> str:
    """Return a fresh, never-reused cluster id."""
    return f"cluster-{uuid.uuid4().hex[:12]}"


def _normalize_label(value: Any) -> Any:
    if isinstance(value, str):
        return _LEGACY_LABELS.get(value, value)
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


# --- Profiles ---


class ClusterProfile(BaseModel):
    """A named, non-secret cluster configuration.

    Exactly one connection target is set: ``node_url`` for self-managed
    clusters, ``cloud_id`` for managed-cloud deployments. Profiles are
    immutable once created.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=generate_cluster_id, min_length=1)
    name: str = Field(min_length=1)
    deployment_type: DeploymentType = Field(alias="deploymentType")
    node_url: str | None = Field(default=None, alias="nodeUrl")
    cloud_id: str | None = Field(default=None, alias="cloudId")
    auth_method: AuthMethod = Field(default=AuthMethod.NONE, alias="authMethod")
    disable_ssl: bool = Field(default=False, alias="disableSSL")

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("deployment_type", "auth_method", mode="before")
    @classmethod
    def _legacy_labels(cls, v: Any) -> Any:
        return _normalize_label(v)

    @field_validator("node_url", "cloud_id", mode="before")
    @classmethod
    def _blank_target(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("disable_ssl", mode="before")
    @classmethod
    def _missing_flag(cls, v: Any) -> Any:
        return False if v is None else v

    @model_validator(mode="after")
    def _exactly_one_target(self) -> ClusterProfile:
        if (self.node_url is None) == (self.cloud_id is None):
            raise ValueError("Exactly one of nodeUrl or cloudId must be set")
        if self.deployment_type == DeploymentType.SELF_MANAGED and self.node_url is None:
            raise ValueError("Self-managed clusters require nodeUrl")
        if self.deployment_type == DeploymentType.MANAGED_CLOUD and self.cloud_id is None:
            raise ValueError("Managed-cloud clusters require cloudId")
        return self

    @property
    def endpoint(self) -> str:
        """The node URL or cloud id, whichever is set."""
        return self.node_url or self.cloud_id or ""

    def to_payload(self) -> dict[str, Any]:
        """JSON-serializable form used by the profile store."""
        return self.model_dump(mode="json", by_alias=True)


class Credentials(BaseModel):
    """Secret fields for a profile. Held only for the span of one call."""

    model_config = ConfigDict(populate_by_name=True)

    username: str | None = None
    password: str | None = None
    api_key: str | None = Field(default=None, alias=API_KEY)

    @field_validator("username", "password", "api_key", mode="before")
    @classmethod
    def _empty_is_missing(cls, v: Any) -> Any:
        if isinstance(v, str) and v == "":
            return None
        return v

    @classmethod
    def from_fields(cls, fields: Mapping[str, str | None]) -> Credentials:
        return cls.model_validate(dict(fields))

    def as_fields(self) -> dict[str, str]:
        """All present fields, keyed by secret field name."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        return {k: v for k, v in data.items() if v}

    def missing_for(self, method: AuthMethod) -> list[str]:
        """Required fields for *method* that have no value."""
        present = self.as_fields()
        return [f for f in REQUIRED_CREDENTIALS[method] if f not in present]

    def required_for(self, method: AuthMethod) -> dict[str, str]:
        """Only the fields *method* needs (may be partial)."""
        present = self.as_fields()
        return {f: present[f] for f in REQUIRED_CREDENTIALS[method] if f in present}


# --- Health ---


class HealthSnapshot(BaseModel):
    """Most recently observed health reading for a connected cluster."""

    status: HealthStatus
    cluster_name: str = "Unknown"
    number_of_nodes: int = 0
    number_of_data_nodes: int = 0
    active_primary_shards: int = 0
    active_shards: int = 0
    checked_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))

    @classmethod
    def from_health(cls, body: Mapping[str, Any]) -> HealthSnapshot:
        """Build a snapshot from a ``_cluster/health`` response body."""
        try:
            status = HealthStatus(body.get("status") or HealthStatus.UNKNOWN)
        except ValueError:
            status = HealthStatus.UNKNOWN
        return cls(
            status=status,
            cluster_name=body.get("cluster_name") or "Unknown",
            number_of_nodes=body.get("number_of_nodes") or 0,
            number_of_data_nodes=body.get("number_of_data_nodes") or 0,
            active_primary_shards=body.get("active_primary_shards") or 0,
            active_shards=body.get("active_shards") or 0,
        )

    @classmethod
    def unknown(cls) -> HealthSnapshot:
        return cls(status=HealthStatus.UNKNOWN)


# --- Export / import ---


class ExportedCluster(BaseModel):
    """A profile as written to an export file (no id, no secrets)."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    deployment_type: str = Field(alias="deploymentType")
    node_url: str | None = Field(default=None, alias="nodeUrl")
    cloud_id: str | None = Field(default=None, alias="cloudId")
    auth_method: str = Field(alias="authMethod")
    disable_ssl: bool | None = Field(default=None, alias="disableSSL")

    @classmethod
    def from_profile(cls, profile: ClusterProfile) -> ExportedCluster:
        return cls(
            name=profile.name,
            deployment_type=profile.deployment_type.value,
            node_url=profile.node_url,
            cloud_id=profile.cloud_id,
            auth_method=profile.auth_method.value,
            disable_ssl=profile.disable_ssl,
        )


class ExportDocument(BaseModel):
    """Versioned export file: ``{version, exportDate, clusters}``."""

    model_config = ConfigDict(populate_by_name=True)

    version: str = EXPORT_FORMAT_VERSION
    export_date: datetime = Field(
        default_factory=lambda: datetime.now(tz=UTC), alias="exportDate",
    )
    clusters: list[ExportedCluster] = Field(default_factory=list)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Outcome reports ---


class ReconnectReport(BaseModel):
    """Aggregate result of the startup auto-reconnect pass."""

    reconnected: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)

    @property
    def succeeded_count(self) -> int:
        return len(self.reconnected)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def summary(self) -> str:
        parts: list[str] = []
        if self.reconnected:
            parts.append(f"Auto-reconnected {self.succeeded_count} cluster(s).")
        if self.failed:
            parts.append(f"{self.failed_count} cluster(s) failed to reconnect.")
        return " ".join(parts)


class ImportResult(BaseModel):
    """Outcome of an import: ids created, entries skipped, early stop."""

    imported: list[str] = Field(default_factory=list)
    skipped: int = 0
    cancelled: bool = False

    @property
    def imported_count(self) -> int:
        return len(self.imported)

    def summary(self) -> str:
        message = f"Imported {self.imported_count} cluster(s)."
        if self.skipped:
            message += f" {self.skipped} cluster(s) were skipped."
        if self.cancelled:
            message += " Import cancelled before all entries were processed."
        return message
