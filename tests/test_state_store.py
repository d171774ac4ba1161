"""Tests for the non-secret state stores and ProfileStore."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from prophesy.errors import PersistenceError
from prophesy.models import ClusterProfile
from prophesy.state.profiles import (
    CLUSTER_IDS_KEY,
    RECONNECT_KEY,
    ProfileStore,
    profile_key,
)
from prophesy.state.store import JsonFileStateStore, MemoryStateStore, StateStore


def _make_profile(cluster_id: str = "cluster-1", **overrides) -> ClusterProfile:
    defaults = {
        "id": cluster_id,
        "name": f"Cluster {cluster_id}",
        "deploymentType": "self-managed",
        "nodeUrl": "http://localhost:9200",
        "authMethod": "none",
    }
    defaults.update(overrides)
    return ClusterProfile.model_validate(defaults)


class TestMemoryStateStore:
    def test_get_default(self):
        assert MemoryStateStore().get("missing", []) == []

    def test_update_and_get(self):
        store = MemoryStateStore()
        store.update("k", {"a": 1})
        assert store.get("k") == {"a": 1}

    def test_none_deletes(self):
        store = MemoryStateStore({"k": 1})
        store.update("k", None)
        assert store.snapshot() == {}

    def test_values_are_copied(self):
        store = MemoryStateStore()
        value = ["a"]
        store.update("k", value)
        value.append("b")
        store.get("k").append("c")
        assert store.get("k") == ["a"]

    def test_satisfies_protocol(self):
        assert isinstance(MemoryStateStore(), StateStore)


class TestJsonFileStateStore:
    def test_persists(self, tmp_path: Path):
        path = tmp_path / "state.json"
        JsonFileStateStore(path).update("k", [1, 2])
        assert JsonFileStateStore(path).get("k") == [1, 2]
        assert json.loads(path.read_text()) == {"k": [1, 2]}

    def test_missing_file(self, tmp_path: Path):
        assert JsonFileStateStore(tmp_path / "none.json").get("k", "d") == "d"

    def test_none_deletes(self, tmp_path: Path):
        store = JsonFileStateStore(tmp_path / "s.json")
        store.update("a", 1)
        store.update("b", False)
        store.update("a", None)
        assert json.loads((tmp_path / "s.json").read_text()) == {"b": False}

    def test_delete_missing_does_not_create_file(self, tmp_path: Path):
        JsonFileStateStore(tmp_path / "s.json").update("a", None)
        assert not (tmp_path / "s.json").exists()

    def test_corrupt_file_raises(self, tmp_path: Path):
        path = tmp_path / "s.json"
        path.write_text("{{{")
        with pytest.raises(PersistenceError):
            JsonFileStateStore(path).get("k")


class TestProfileStore:
    def test_save_and_load_all(self):
        store = ProfileStore(MemoryStateStore())
        store.save(_make_profile("a"))
        store.save(_make_profile("b", nodeUrl="http://b:9200"))
        loaded = store.load_all()
        assert [p.id for p in loaded] == ["a", "b"]
        assert loaded[1].node_url == "http://b:9200"

    def test_save_is_set_semantics(self):
        state = MemoryStateStore()
        store = ProfileStore(state)
        store.save(_make_profile("a"))
        store.save(_make_profile("a", name="Renamed"))
        assert state.get(CLUSTER_IDS_KEY) == ["a"]
        assert store.load("a").name == "Renamed"

    def test_payload_written_under_profile_key(self):
        state = MemoryStateStore()
        ProfileStore(state).save(_make_profile("a"))
        assert state.get(profile_key("a"))["nodeUrl"] == "http://localhost:9200"
        assert profile_key("a") == "prophesy.cluster.a"

    def test_load_accepts_json_string(self):
        payload = _make_profile("a").to_payload()
        state = MemoryStateStore({
            CLUSTER_IDS_KEY: ["a"],
            profile_key("a"): json.dumps(payload),
        })
        assert ProfileStore(state).load("a").name == "Cluster a"

    def test_load_missing_raises(self):
        with pytest.raises(PersistenceError, match="No stored configuration"):
            ProfileStore(MemoryStateStore()).load("ghost")

    def test_corrupt_entry_skipped(self, caplog):
        state = MemoryStateStore()
        store = ProfileStore(state)
        store.save(_make_profile("a"))
        store.save(_make_profile("c"))
        state.update(CLUSTER_IDS_KEY, ["a", "b", "c"])
        state.update(profile_key("b"), "{not json")

        with caplog.at_level(logging.WARNING, logger="prophesy.state.profiles"):
            loaded = store.load_all()

        assert [p.id for p in loaded] == ["a", "c"]
        assert "Skipping stored cluster" in caplog.text

    def test_invalid_payload_skipped(self):
        state = MemoryStateStore()
        store = ProfileStore(state)
        state.update(CLUSTER_IDS_KEY, ["x"])
        state.update(profile_key("x"), {"name": "Both", "deploymentType": "self-managed",
                                         "nodeUrl": "http://a", "cloudId": "c:1",
                                         "authMethod": "none"})
        assert store.load_all() == []

    def test_delete(self):
        state = MemoryStateStore()
        store = ProfileStore(state)
        store.save(_make_profile("a"))
        store.save(_make_profile("b"))
        store.delete("a")
        assert store.known_ids() == ["b"]
        assert state.get(profile_key("a")) is None

    def test_delete_unknown_is_noop(self):
        ProfileStore(MemoryStateStore()).delete("ghost")

    def test_clear(self):
        state = MemoryStateStore()
        store = ProfileStore(state)
        store.save(_make_profile("a"))
        store.save(_make_profile("b"))
        assert store.clear() == ["a", "b"]
        assert store.known_ids() == []
        assert state.snapshot() == {}

    def test_reconnect_set(self):
        state = MemoryStateStore()
        store = ProfileStore(state)
        store.mark_reconnect("a")
        store.mark_reconnect("b")
        store.mark_reconnect("a")
        assert state.get(RECONNECT_KEY) == ["a", "b"]
        store.unmark_reconnect("a")
        assert store.reconnect_ids() == ["b"]
        store.clear_reconnect()
        assert store.reconnect_ids() == []
