"""Tests for profile export and import."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from prophesy.errors import ImportFormatError
from prophesy.models import AuthMethod, ConflictChoice, DeploymentType
from prophesy.state.profiles import CLUSTER_IDS_KEY


def _entry(name: str, **overrides) -> dict:
    data = {
        "name": name,
        "deploymentType": "self-managed",
        "nodeUrl": f"http://{name.lower()}:9200",
        "authMethod": "none",
    }
    data.update(overrides)
    return data


def _document(*entries: dict) -> dict:
    return {"version": "1.0.0", "exportDate": "2024-01-01T00:00:00Z", "clusters": list(entries)}


class TestExport:
    def test_empty_store_yields_none(self, manager):
        assert manager.export_profiles() is None

    def test_export_fields(self, manager):
        manager.add_profile(_entry("A", disableSSL=True), connect=False)
        manager.add_profile(
            _entry("B", deploymentType="managed-cloud", nodeUrl=None, cloudId="dep:xyz",
                   authMethod="api-key"),
            {"apiKey": "secret"},
            connect=False,
        )
        data = manager.export_profiles().to_json_dict()

        assert data["version"] == "1.0.0"
        assert "exportDate" in data
        assert data["clusters"] == [
            {"name": "A", "deploymentType": "self-managed", "nodeUrl": "http://a:9200",
             "authMethod": "none", "disableSSL": True},
            {"name": "B", "deploymentType": "managed-cloud", "cloudId": "dep:xyz",
             "authMethod": "api-key", "disableSSL": False},
        ]
        assert "secret" not in json.dumps(data)


class TestImport:
    def test_imports_with_fresh_ids_and_no_credentials(self, manager, secrets):
        result = manager.import_profiles(_document(_entry("A"), _entry("B", authMethod="basic")))
        assert result.imported_count == 2
        assert result.skipped == 0
        names = [p.name for p in manager.list_profiles()]
        assert names == ["A", "B"]
        assert secrets.keys == []
        assert not manager.connected_ids()

    def test_never_reuses_document_ids(self, manager):
        result = manager.import_profiles(_document(_entry("A", id="cluster-fixed")))
        assert result.imported != ["cluster-fixed"]

    def test_accepts_json_text(self, manager):
        result = manager.import_profiles(json.dumps(_document(_entry("A"))))
        assert result.imported_count == 1

    def test_missing_required_fields_skipped(self, manager):
        result = manager.import_profiles(_document(
            {"deploymentType": "self-managed", "nodeUrl": "http://x", "authMethod": "none"},
            _entry("NoType", deploymentType=""),
            {"name": "NoAuth", "deploymentType": "self-managed", "nodeUrl": "http://y"},
            _entry("Good"),
            "not-an-object",
        ))
        assert result.imported_count == 1
        assert result.skipped == 4

    def test_invalid_entry_skipped(self, manager):
        result = manager.import_profiles(_document(_entry("Both", cloudId="c:1"), _entry("Ok")))
        assert result.imported_count == 1
        assert result.skipped == 1

    def test_extra_fields_ignored(self, manager):
        result = manager.import_profiles(_document(_entry("A", color="blue", password="x")))
        assert result.imported_count == 1

    def test_legacy_labels_normalized(self, manager):
        manager.import_profiles(_document(_entry(
            "Legacy", deploymentType="Elastic Cloud", nodeUrl=None, cloudId="dep:1",
            authMethod="Basic: Username/Password",
        )))
        [profile] = manager.list_profiles()
        assert profile.deployment_type == DeploymentType.MANAGED_CLOUD
        assert profile.auth_method == AuthMethod.BASIC

    @pytest.mark.parametrize("document", [
        "not json",
        "[1, 2]",
        {"version": "1.0.0"},
        {"clusters": {"name": "A"}},
    ])
    def test_malformed_document_aborts(self, manager, document):
        with pytest.raises(ImportFormatError):
            manager.import_profiles(document)
        assert manager.list_profiles() == []

    def test_export_import_roundtrip(self, manager, state, secrets):
        originals = [
            manager.add_profile(_entry("A", disableSSL=True), connect=False),
            manager.add_profile(
                _entry("B", deploymentType="managed-cloud", nodeUrl=None, cloudId="dep:b",
                       authMethod="api-key"),
                {"apiKey": "k"},
                connect=False,
            ),
        ]
        before = {p.name: p for p in manager.list_profiles()}
        exported = json.dumps(manager.export_profiles().to_json_dict())

        manager.clear_all()
        result = manager.import_profiles(exported)

        assert result.imported_count == 2
        assert not set(result.imported) & set(originals)
        assert secrets.keys == []
        for profile in manager.list_profiles():
            original = before[profile.name]
            assert profile.deployment_type == original.deployment_type
            assert profile.node_url == original.node_url
            assert profile.cloud_id == original.cloud_id
            assert profile.auth_method == original.auth_method
            assert profile.disable_ssl == original.disable_ssl


class TestImportCollisions:
    def test_default_is_skip(self, manager):
        existing = manager.add_profile(_entry("A"), connect=False)
        result = manager.import_profiles(_document(_entry("A", nodeUrl="http://new:9200")))
        assert result.skipped == 1
        assert [p.id for p in manager.list_profiles()] == [existing]

    def test_overwrite_removes_existing_with_credentials(self, manager, secrets):
        existing = manager.add_profile(
            _entry("A", authMethod="basic"), {"username": "u", "password": "p"},
        )
        on_conflict = MagicMock(return_value=ConflictChoice.OVERWRITE)

        result = manager.import_profiles(
            _document(_entry("A", nodeUrl="http://new:9200")), on_conflict=on_conflict,
        )

        assert result.imported_count == 1
        incoming, found = on_conflict.call_args.args
        assert found.id == existing
        assert incoming.node_url == "http://new:9200"
        assert manager.get_profile(existing) is None
        assert not manager.is_connected(existing)
        assert secrets.keys == []
        [profile] = manager.list_profiles()
        assert profile.node_url == "http://new:9200"
        assert profile.id != existing

    def test_cancel_stops_processing(self, manager, state):
        manager.add_profile(_entry("B"), connect=False)
        result = manager.import_profiles(
            _document(_entry("A"), _entry("B"), _entry("C")),
            on_conflict=lambda incoming, existing: ConflictChoice.CANCEL,
        )
        assert result.cancelled is True
        assert result.imported_count == 1
        names = sorted(p.name for p in manager.list_profiles())
        assert names == ["A", "B"]
        assert len(state.get(CLUSTER_IDS_KEY)) == 2

    def test_skip_choice_counts(self, manager):
        manager.add_profile(_entry("A"), connect=False)
        result = manager.import_profiles(
            _document(_entry("A"), _entry("B")),
            on_conflict=lambda incoming, existing: ConflictChoice.SKIP,
        )
        assert result.skipped == 1
        assert result.imported_count == 1
