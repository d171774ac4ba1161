"""Shared fixtures: in-memory stores and a fake cluster client factory."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest

from prophesy.client.cluster_client import ClientOptions
from prophesy.credentials.memory_store import MemorySecretStore
from prophesy.credentials.resolver import CredentialStore
from prophesy.errors import ClusterConnectionError
from prophesy.session.manager import ClusterSessionManager
from prophesy.state.profiles import ProfileStore
from prophesy.state.store import MemoryStateStore

GREEN_HEALTH: dict[str, Any] = {
    "cluster_name": "test-cluster",
    "status": "green",
    "number_of_nodes": 3,
    "number_of_data_nodes": 2,
    "active_primary_shards": 10,
    "active_shards": 20,
}


class FakeClient:
    """Stands in for a connected ClusterClient."""

    def __init__(self, options: ClientOptions, factory: FakeClusterFactory) -> None:
        self.options = options
        self.endpoint = options.node_url or options.cloud_id or ""
        self.closed = False
        self.health_calls = 0
        self._factory = factory

    def ping(self) -> None:
        if self.endpoint in self._factory.unreachable:
            raise ClusterConnectionError(f"{self.endpoint} unreachable")

    def health(self) -> dict[str, Any]:
        self.health_calls += 1
        if self.endpoint in self._factory.failing_health:
            raise RuntimeError("health query failed")
        return dict(self._factory.health.get(self.endpoint, GREEN_HEALTH))

    def close(self) -> None:
        self.closed = True

    # Read operations used by the CLI explore commands.

    def search(self, index: str | None, body: dict[str, Any]) -> dict[str, Any]:
        return {"hits": {"total": {"value": 0}, "hits": []}, "index": index, "body": body}

    def list_roles(self) -> dict[str, Any]:
        return dict(self._factory.roles)

    def get_role(self, name: str) -> dict[str, Any] | None:
        return self._factory.roles.get(name)


class FakeClusterFactory:
    """Client factory whose clusters are controlled per endpoint."""

    def __init__(self) -> None:
        self.unreachable: set[str] = set()
        self.failing_health: set[str] = set()
        self.health: dict[str, dict[str, Any]] = {}
        self.roles: dict[str, Any] = {}
        self.clients: list[FakeClient] = []

    def __call__(self, options: ClientOptions) -> FakeClient:
        client = FakeClient(options, self)
        self.clients.append(client)
        return client

    def last_for(self, endpoint: str) -> FakeClient:
        return [c for c in self.clients if c.endpoint == endpoint][-1]


@pytest.fixture()
def factory() -> FakeClusterFactory:
    return FakeClusterFactory()


@pytest.fixture()
def state() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture()
def secrets() -> MemorySecretStore:
    return MemorySecretStore()


@pytest.fixture()
def manager(
    state: MemoryStateStore,
    secrets: MemorySecretStore,
    factory: FakeClusterFactory,
) -> Generator[ClusterSessionManager, None, None]:
    mgr = ClusterSessionManager(
        ProfileStore(state),
        CredentialStore(secrets),
        client_factory=factory,
    )
    yield mgr
    mgr.close()
