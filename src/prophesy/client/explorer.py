"""Read-only summaries of cluster resources.

Pure functions that turn raw API bodies (node stats, data streams,
roles, templates, health) into small typed summaries for display. No
network access happens here; callers fetch through ClusterClient.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, Field

from prophesy.models import HealthSnapshot

SHARDS_PER_DATA_NODE = 1000
SHARD_WARNING_PERCENT = 80.0
SHARD_CRITICAL_PERCENT = 90.0

_BYTE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")


class ShardLevel(enum.StrEnum):
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


class NodeSummary(BaseModel):
    node_id: str
    name: str
    ip: str | None = None
    roles: list[str] = Field(default_factory=list)
    cpu_percent: float | None = None
    heap_used_percent: float | None = None
    disk_total_bytes: int | None = None
    disk_free_bytes: int | None = None

    @property
    def is_master(self) -> bool:
        return "master" in self.roles


class DataStreamSummary(BaseModel):
    name: str
    status: str = "unknown"
    template: str | None = None
    generation: int = 0
    backing_indices: int = 0
    store_size_bytes: int = 0
    maximum_timestamp: int | None = None


class ShardUsage(BaseModel):
    active_shards: int
    limit: int
    percent: float
    level: ShardLevel


def format_bytes(num_bytes: float | None) -> str:
    """Human readable size in base 1024, e.g. ``1.5 KB``."""
    if not num_bytes or num_bytes <= 0:
        return "0 B"
    value = float(num_bytes)
    exponent = 0
    while value >= 1024 and exponent < len(_BYTE_UNITS) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {_BYTE_UNITS[exponent]}"


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def summarize_nodes(stats: Mapping[str, Any]) -> list[NodeSummary]:
    """Node summaries from a filtered ``_nodes/stats`` body, sorted by name."""
    nodes: list[NodeSummary] = []
    for node_id, raw in (stats.get("nodes") or {}).items():
        os_stats = raw.get("os") or {}
        jvm = raw.get("jvm") or {}
        fs_total = (raw.get("fs") or {}).get("total") or {}
        roles = raw.get("roles")
        nodes.append(
            NodeSummary(
                node_id=node_id,
                name=raw.get("name") or node_id,
                ip=raw.get("ip"),
                roles=list(roles) if isinstance(roles, list) else [],
                cpu_percent=_number((os_stats.get("cpu") or {}).get("percent")),
                heap_used_percent=_number((jvm.get("mem") or {}).get("heap_used_percent")),
                disk_total_bytes=fs_total.get("total_in_bytes"),
                disk_free_bytes=fs_total.get("free_in_bytes"),
            )
        )
    return sorted(nodes, key=lambda n: n.name)


def summarize_data_streams(
    streams: Iterable[Mapping[str, Any]],
    stats: Mapping[str, Any] | None = None,
) -> list[DataStreamSummary]:
    """Join ``_data_stream`` entries with ``_data_stream/_stats``, sorted by name."""
    by_name: dict[str, Mapping[str, Any]] = {}
    for entry in (stats or {}).get("data_streams") or []:
        if entry.get("data_stream"):
            by_name[entry["data_stream"]] = entry

    summaries: list[DataStreamSummary] = []
    for stream in streams:
        name = stream.get("name")
        if not name:
            continue
        stream_stats = by_name.get(name, {})
        indices = stream.get("indices")
        backing = stream_stats.get("backing_indices")
        if not isinstance(backing, int):
            backing = len(indices) if isinstance(indices, list) else 0
        summaries.append(
            DataStreamSummary(
                name=name,
                status=str(stream.get("status") or "unknown").lower(),
                template=stream.get("template"),
                generation=stream.get("generation") or 0,
                backing_indices=backing,
                store_size_bytes=stream_stats.get("store_size_bytes") or 0,
                maximum_timestamp=stream_stats.get("maximum_timestamp"),
            )
        )
    return sorted(summaries, key=lambda s: s.name)


def sorted_names(resources: Mapping[str, Any] | Iterable[Mapping[str, Any]]) -> list[str]:
    """Names from a keyed body (roles, role mappings) or a list of ``{name: ...}``."""
    if isinstance(resources, Mapping):
        return sorted(resources)
    return sorted(r["name"] for r in resources if r.get("name"))


def template_definition(body: Mapping[str, Any], name: str) -> dict[str, Any] | None:
    """The ``index_template`` section for *name* in a ``_index_template`` body."""
    for entry in body.get("index_templates") or []:
        if entry.get("name") == name:
            return dict(entry.get("index_template") or {})
    return None


def shard_usage(health: HealthSnapshot) -> ShardUsage:
    """Active shards against the per-data-node shard ceiling."""
    limit = health.number_of_data_nodes * SHARDS_PER_DATA_NODE
    percent = (health.active_shards / limit * 100) if limit > 0 else 0.0
    if percent <= SHARD_WARNING_PERCENT:
        level = ShardLevel.OK
    elif percent <= SHARD_CRITICAL_PERCENT:
        level = ShardLevel.WARNING
    else:
        level = ShardLevel.CRITICAL
    return ShardUsage(
        active_shards=health.active_shards,
        limit=limit,
        percent=round(percent, 1),
        level=level,
    )
