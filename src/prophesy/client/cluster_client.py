"""ClusterClient: a live connection to one search cluster.

Thin wrapper around the official ``elasticsearch`` client. Every call
returns the parsed JSON body or raises; the session layer decides what
a failure means. TLS settings are passed per client, never through
process-wide state, so one profile that disables verification cannot
weaken any other connection.
"""

from __future__ import annotations

import ssl
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from elasticsearch import Elasticsearch

from prophesy.errors import ClusterConnectionError
from prophesy.models import AuthMethod, ClusterProfile, Credentials

NODE_STATS_FILTER = [
    "nodes.*.name",
    "nodes.*.ip",
    "nodes.*.roles",
    "nodes.*.os.cpu.percent",
    "nodes.*.jvm.mem.heap_used_percent",
    "nodes.*.fs.total.total_in_bytes",
    "nodes.*.fs.total.free_in_bytes",
]


@runtime_checkable
class ClusterHandle(Protocol):
    """What the session layer needs from a connected client."""

    def ping(self) -> None: ...

    def health(self) -> dict[str, Any]: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class ClientOptions:
    """Everything needed to construct a client for one profile."""

    node_url: str | None = None
    cloud_id: str | None = None
    basic_auth: tuple[str, str] | None = None
    api_key: str | None = None
    verify_certs: bool = True
    ca_certificate: str | None = None
    request_timeout: float = 10.0

    @property
    def uses_tls(self) -> bool:
        if self.cloud_id:
            return True
        return bool(self.node_url and self.node_url.lower().startswith("https://"))

    def to_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``elasticsearch.Elasticsearch``."""
        kwargs: dict[str, Any] = {"request_timeout": self.request_timeout}
        if self.cloud_id:
            kwargs["cloud_id"] = self.cloud_id
        else:
            kwargs["hosts"] = [self.node_url]

        if self.basic_auth is not None:
            kwargs["basic_auth"] = self.basic_auth
        elif self.api_key is not None:
            kwargs["api_key"] = self.api_key

        if self.uses_tls:
            if not self.verify_certs:
                kwargs["verify_certs"] = False
                kwargs["ssl_show_warn"] = False
            elif self.ca_certificate:
                kwargs["ssl_context"] = ssl.create_default_context(cadata=self.ca_certificate)
        return kwargs


ClientFactory = Callable[[ClientOptions], ClusterHandle]


def build_client_options(
    profile: ClusterProfile,
    credentials: Credentials,
    ca_certificate: str | None = None,
    request_timeout: float = 10.0,
) -> ClientOptions:
    """Combine a profile, its resolved credentials and the global CA."""
    basic_auth: tuple[str, str] | None = None
    api_key: str | None = None
    if profile.auth_method == AuthMethod.BASIC and credentials.username and credentials.password:
        basic_auth = (credentials.username, credentials.password)
    elif profile.auth_method == AuthMethod.API_KEY and credentials.api_key:
        api_key = credentials.api_key

    return ClientOptions(
        node_url=profile.node_url,
        cloud_id=profile.cloud_id,
        basic_auth=basic_auth,
        api_key=api_key,
        verify_certs=not profile.disable_ssl,
        ca_certificate=ca_certificate,
        request_timeout=request_timeout,
    )


def _body(response: Any) -> Any:
    return getattr(response, "body", response)


class ClusterClient:
    """Connected client handle with the read operations prophesy uses."""

    def __init__(self, es: Elasticsearch) -> None:
        self._es = es

    @classmethod
    def from_options(cls, options: ClientOptions) -> ClusterClient:
        return cls(Elasticsearch(**options.to_kwargs()))

    @property
    def es(self) -> Elasticsearch:
        return self._es

    def ping(self) -> None:
        """Liveness check. Raises ClusterConnectionError on failure."""
        try:
            alive = self._es.ping()
        except Exception as exc:
            raise ClusterConnectionError(f"Ping failed: {exc}") from exc
        if not alive:
            raise ClusterConnectionError("Cluster did not respond to ping")

    def health(self) -> dict[str, Any]:
        return dict(_body(self._es.cluster.health()))

    def info(self) -> dict[str, Any]:
        return dict(_body(self._es.info()))

    def node_stats(self) -> dict[str, Any]:
        return dict(_body(self._es.nodes.stats(filter_path=NODE_STATS_FILTER)))

    def list_roles(self) -> dict[str, Any]:
        return dict(_body(self._es.security.get_role()))

    def get_role(self, name: str) -> dict[str, Any] | None:
        return dict(_body(self._es.security.get_role(name=name))).get(name)

    def list_role_mappings(self) -> dict[str, Any]:
        return dict(_body(self._es.security.get_role_mapping()))

    def get_role_mapping(self, name: str) -> dict[str, Any] | None:
        return dict(_body(self._es.security.get_role_mapping(name=name))).get(name)

    def list_index_templates(self) -> list[dict[str, Any]]:
        body = _body(self._es.indices.get_index_template())
        return list(body.get("index_templates") or [])

    def get_index_template(self, name: str) -> dict[str, Any]:
        return dict(_body(self._es.indices.get_index_template(name=name)))

    def list_data_streams(self) -> list[dict[str, Any]]:
        body = _body(self._es.indices.get_data_stream())
        return list(body.get("data_streams") or [])

    def data_stream_stats(self, name: str | None = None) -> dict[str, Any]:
        if name is None:
            return dict(_body(self._es.indices.data_streams_stats()))
        return dict(_body(self._es.indices.data_streams_stats(name=name)))

    def search(self, index: str | None, body: dict[str, Any]) -> dict[str, Any]:
        return dict(_body(self._es.search(index=index or None, body=body)))

    def close(self) -> None:
        self._es.close()
