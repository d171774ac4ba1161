"""Tests for prophesy data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from prophesy.models import (
    EXPORT_FORMAT_VERSION,
    AuthMethod,
    ClusterProfile,
    Credentials,
    DeploymentType,
    ExportDocument,
    ExportedCluster,
    HealthSnapshot,
    HealthStatus,
    ImportResult,
    ReconnectReport,
    generate_cluster_id,
)


def _make_profile(**overrides) -> ClusterProfile:
    defaults = {
        "name": "Local",
        "deploymentType": "self-managed",
        "nodeUrl": "http://localhost:9200",
        "authMethod": "none",
    }
    defaults.update(overrides)
    return ClusterProfile.model_validate(defaults)


class TestClusterId:
    def test_prefix(self):
        assert generate_cluster_id().startswith("cluster-")

    def test_unique(self):
        ids = {generate_cluster_id() for _ in range(200)}
        assert len(ids) == 200


class TestClusterProfile:
    def test_self_managed(self):
        p = _make_profile()
        assert p.deployment_type == DeploymentType.SELF_MANAGED
        assert p.node_url == "http://localhost:9200"
        assert p.cloud_id is None
        assert p.auth_method == AuthMethod.NONE
        assert p.disable_ssl is False
        assert p.endpoint == "http://localhost:9200"

    def test_managed_cloud(self):
        p = _make_profile(deploymentType="managed-cloud", nodeUrl=None, cloudId="deploy:abc")
        assert p.cloud_id == "deploy:abc"
        assert p.endpoint == "deploy:abc"

    def test_generates_id(self):
        assert _make_profile().id != _make_profile().id

    def test_both_targets_rejected(self):
        with pytest.raises(ValidationError, match="Exactly one"):
            _make_profile(cloudId="deploy:abc")

    def test_no_target_rejected(self):
        with pytest.raises(ValidationError, match="Exactly one"):
            _make_profile(nodeUrl=None)

    def test_blank_target_counts_as_missing(self):
        with pytest.raises(ValidationError):
            _make_profile(nodeUrl="   ")

    def test_target_must_match_deployment(self):
        with pytest.raises(ValidationError, match="Managed-cloud"):
            _make_profile(deploymentType="managed-cloud")

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            _make_profile(name="  ")

    def test_unknown_auth_rejected(self):
        with pytest.raises(ValidationError):
            _make_profile(authMethod="kerberos")

    def test_legacy_labels(self):
        p = _make_profile(
            deploymentType="Self-managed Cluster",
            authMethod="Basic: Username/Password",
        )
        assert p.deployment_type == DeploymentType.SELF_MANAGED
        assert p.auth_method == AuthMethod.BASIC

    def test_legacy_cloud_label(self):
        p = _make_profile(
            deploymentType="Elastic Cloud", nodeUrl=None, cloudId="x:y", authMethod="API Key",
        )
        assert p.deployment_type == DeploymentType.MANAGED_CLOUD
        assert p.auth_method == AuthMethod.API_KEY

    def test_null_disable_ssl_is_false(self):
        assert _make_profile(disableSSL=None).disable_ssl is False

    def test_frozen(self):
        p = _make_profile()
        with pytest.raises(ValidationError):
            p.name = "Other"

    def test_payload_uses_aliases(self):
        payload = _make_profile(disableSSL=True).to_payload()
        assert payload["deploymentType"] == "self-managed"
        assert payload["nodeUrl"] == "http://localhost:9200"
        assert payload["disableSSL"] is True
        assert "node_url" not in payload

    def test_payload_roundtrip(self):
        p = _make_profile(authMethod="api-key")
        assert ClusterProfile.model_validate(p.to_payload()) == p


class TestCredentials:
    def test_empty_string_is_missing(self):
        c = Credentials.from_fields({"username": "", "password": "x"})
        assert c.username is None
        assert c.missing_for(AuthMethod.BASIC) == ["username"]

    def test_api_key_alias(self):
        c = Credentials.from_fields({"apiKey": "k"})
        assert c.api_key == "k"
        assert c.as_fields() == {"apiKey": "k"}

    def test_none_method_needs_nothing(self):
        assert Credentials().missing_for(AuthMethod.NONE) == []

    def test_required_for_filters_fields(self):
        c = Credentials(username="u", password="p", api_key="k")
        assert c.required_for(AuthMethod.BASIC) == {"username": "u", "password": "p"}
        assert c.required_for(AuthMethod.API_KEY) == {"apiKey": "k"}


class TestHealthSnapshot:
    def test_from_health(self):
        snap = HealthSnapshot.from_health({
            "cluster_name": "prod",
            "status": "yellow",
            "number_of_nodes": 5,
            "number_of_data_nodes": 3,
            "active_primary_shards": 7,
            "active_shards": 14,
        })
        assert snap.status == HealthStatus.YELLOW
        assert snap.cluster_name == "prod"
        assert snap.number_of_data_nodes == 3
        assert snap.active_shards == 14
        assert snap.checked_at.tzinfo is not None

    def test_missing_fields_default(self):
        snap = HealthSnapshot.from_health({})
        assert snap.status == HealthStatus.UNKNOWN
        assert snap.cluster_name == "Unknown"
        assert snap.number_of_nodes == 0

    def test_invalid_status_is_unknown(self):
        assert HealthSnapshot.from_health({"status": "purple"}).status == HealthStatus.UNKNOWN

    def test_unknown(self):
        assert HealthSnapshot.unknown().status == HealthStatus.UNKNOWN


class TestExportDocument:
    def test_defaults(self):
        doc = ExportDocument()
        assert doc.version == EXPORT_FORMAT_VERSION == "1.0.0"
        assert doc.clusters == []

    def test_json_shape(self):
        cloud = _make_profile(
            name="Cloud", deploymentType="managed-cloud", nodeUrl=None, cloudId="c:1",
        )
        doc = ExportDocument(clusters=[
            ExportedCluster.from_profile(_make_profile()),
            ExportedCluster.from_profile(cloud),
        ])
        data = doc.to_json_dict()
        assert set(data) == {"version", "exportDate", "clusters"}
        assert data["clusters"][0] == {
            "name": "Local",
            "deploymentType": "self-managed",
            "nodeUrl": "http://localhost:9200",
            "authMethod": "none",
            "disableSSL": False,
        }
        assert "nodeUrl" not in data["clusters"][1]
        assert data["clusters"][1]["cloudId"] == "c:1"
        assert "id" not in data["clusters"][0]


class TestReports:
    def test_reconnect_summary(self):
        report = ReconnectReport(reconnected=["a"], failed={"b": "boom"})
        assert report.succeeded_count == 1
        assert report.failed_count == 1
        assert report.summary() == (
            "Auto-reconnected 1 cluster(s). 1 cluster(s) failed to reconnect."
        )

    def test_empty_reconnect_summary(self):
        assert ReconnectReport().summary() == ""

    def test_import_summary(self):
        result = ImportResult(imported=["a", "b"], skipped=1)
        assert result.imported_count == 2
        assert result.summary() == "Imported 2 cluster(s). 1 cluster(s) were skipped."

    def test_import_summary_cancelled(self):
        assert "cancelled" in ImportResult(cancelled=True).summary()
