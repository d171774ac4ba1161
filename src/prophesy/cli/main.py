"""prophesy CLI: manage search cluster profiles and sessions.

Commands:
    add             Save a cluster profile (and connect to it)
    list            Show saved cluster profiles
    remove          Delete a profile and its stored credentials
    connect         Connect to a cluster and remember it for reconnect
    disconnect      Forget a cluster's live session
    use             Select the default cluster
    status          Reconnect remembered clusters and show their health
    health          Show detailed health for one cluster
    search          Run a search request against a cluster
    export          Write profiles to a JSON export file
    import          Read profiles from a JSON export file
    clear           Delete every profile, credential and session
    ca set|clear    Manage the custom CA certificate
    auto-refresh    Turn background health polling on or off
    watch           Poll health for remembered clusters
    explore ...     Browse nodes, roles, templates and data streams
"""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, NoReturn

import click
import yaml

from prophesy import __version__
from prophesy.client.explorer import (
    ShardLevel,
    format_bytes,
    shard_usage,
    sorted_names,
    summarize_data_streams,
    summarize_nodes,
    template_definition,
)
from prophesy.config import ProphesyConfig, load_config
from prophesy.errors import (
    ClusterConnectionError,
    ClusterNotFoundError,
    CredentialError,
    ImportFormatError,
    ProfileValidationError,
    ProphesyError,
)
from prophesy.models import (
    API_KEY,
    PASSWORD,
    USERNAME,
    AuthMethod,
    ClusterProfile,
    ConflictChoice,
    DeploymentType,
    HealthSnapshot,
    HealthStatus,
)
from prophesy.session.manager import ClusterSessionManager, build_session_manager

_FIELD_LABELS = {USERNAME: "Username", PASSWORD: "Password", API_KEY: "API key"}

_STATUS_COLORS = {
    HealthStatus.GREEN: "green",
    HealthStatus.YELLOW: "yellow",
    HealthStatus.RED: "red",
    HealthStatus.UNKNOWN: "white",
}

_SHARD_COLORS = {
    ShardLevel.OK: "green",
    ShardLevel.WARNING: "yellow",
    ShardLevel.CRITICAL: "red",
}


def _resolve_cfg(path: str | None = None) -> ProphesyConfig:
    """Load config: explicit path must exist; auto-discovery never errors."""
    if path is not None:
        return load_config(path)
    try:
        return load_config()
    except (OSError, ValueError, yaml.YAMLError):
        return ProphesyConfig()


def _fail(message: str) -> NoReturn:
    click.echo(click.style("ERROR", fg="red") + f"  {message}", err=True)
    sys.exit(1)


def _warn(message: str) -> None:
    click.echo(click.style("WARNING", fg="yellow") + f"  {message}", err=True)


def _ok(message: str) -> None:
    click.echo(click.style("OK", fg="green") + f"  {message}")


def _status_badge(status: HealthStatus) -> str:
    return click.style(f"[{status}]", fg=_STATUS_COLORS[status], bold=True)


# --- Interactive callbacks ---


def _prompt_credentials(profile: ClusterProfile, missing: list[str]) -> dict[str, str] | None:
    """Ask for missing credential fields. Empty answers decline."""
    click.echo(f"Credentials required for '{profile.name}'.", err=True)
    answers: dict[str, str] = {}
    for field in missing:
        value = click.prompt(
            _FIELD_LABELS.get(field, field),
            default="",
            show_default=False,
            hide_input=field != USERNAME,
            err=True,
        )
        if value:
            answers[field] = value
    return answers or None


def _ask_conflict(incoming: ClusterProfile, existing: ClusterProfile) -> ConflictChoice:
    choice = click.prompt(
        f"Cluster '{existing.name}' already exists",
        type=click.Choice([c.value for c in ConflictChoice]),
        default=ConflictChoice.SKIP.value,
        err=True,
    )
    return ConflictChoice(choice)


# --- Session helpers ---


def _manager(cfg: ProphesyConfig, *, interactive: bool = True) -> ClusterSessionManager:
    try:
        manager = build_session_manager(
            cfg, prompt=_prompt_credentials if interactive else None,
        )
        manager.load()
    except ProphesyError as e:
        _fail(str(e))
    return manager


def _resolve_target(manager: ClusterSessionManager, ref: str | None) -> ClusterProfile:
    """Find a profile by id or name; default to the active cluster."""
    if ref is None:
        profile = manager.get_active_profile()
        if profile is None:
            _fail("No active cluster. Pass a cluster or run 'prophesy use'.")
        return profile
    profile = manager.get_profile(ref) or manager.find_profile_by_name(ref)
    if profile is None:
        _fail(str(ClusterNotFoundError(ref)))
    return profile


@contextmanager
def _connected(
    cfg: ProphesyConfig, ref: str | None,
) -> Iterator[tuple[ClusterSessionManager, ClusterProfile, Any]]:
    """Connect to one cluster for the span of a command.

    The connection is not remembered for startup reconnect.
    """
    manager = _manager(cfg)
    profile = _resolve_target(manager, ref)
    try:
        try:
            manager.establish(profile.id, interactive=True, remember=False)
        except (ClusterConnectionError, CredentialError) as e:
            _fail(str(e))
        yield manager, profile, manager.get_client(profile.id)
    finally:
        manager.close()


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _health_line(profile: ClusterProfile, snapshot: HealthSnapshot | None) -> str:
    if snapshot is None:
        return f"  {profile.name:<24} " + click.style("[disconnected]", fg="white")
    return (
        f"  {profile.name:<24} "
        + _status_badge(snapshot.status)
        + f"  {snapshot.number_of_nodes} nodes, {snapshot.active_shards} shards"
    )


# --- Root group ---


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "config_path", default=None,
    help="Path to prophesy.yaml (default: auto-discover)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """prophesy: connection and session manager for search clusters."""
    try:
        cfg = _resolve_cfg(config_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        _fail(str(e))
    logging.basicConfig(
        level=logging.DEBUG if verbose else cfg.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = cfg


# --- Profile commands ---


@cli.command()
@click.option("--name", required=True, help="Display name")
@click.option("--url", "node_url", default=None, help="Node URL (self-managed)")
@click.option("--cloud-id", default=None, help="Cloud id (managed cloud)")
@click.option(
    "--auth", "auth_method",
    type=click.Choice([m.value for m in AuthMethod]),
    default=AuthMethod.NONE.value,
    help="Authentication method",
)
@click.option("--username", default=None, help="Username (basic auth)")
@click.option("--password", default=None, help="Password (basic auth, prompted if omitted)")
@click.option("--api-key", default=None, help="API key (prompted if omitted)")
@click.option("--insecure", is_flag=True, help="Disable TLS certificate verification")
@click.option("--no-connect", is_flag=True, help="Save without connecting")
@click.pass_obj
def add(
    cfg: ProphesyConfig,
    name: str,
    node_url: str | None,
    cloud_id: str | None,
    auth_method: str,
    username: str | None,
    password: str | None,
    api_key: str | None,
    insecure: bool,
    no_connect: bool,
) -> None:
    """Save a cluster profile and connect to it."""
    method = AuthMethod(auth_method)
    if method == AuthMethod.BASIC:
        username = username or click.prompt("Username")
        password = password or click.prompt("Password", hide_input=True)
    elif method == AuthMethod.API_KEY:
        api_key = api_key or click.prompt("API key", hide_input=True)

    deployment = DeploymentType.MANAGED_CLOUD if cloud_id else DeploymentType.SELF_MANAGED
    manager = _manager(cfg)
    snapshot: HealthSnapshot | None = None
    try:
        cluster_id = manager.add_profile(
            {
                "name": name,
                "deploymentType": deployment,
                "nodeUrl": node_url,
                "cloudId": cloud_id,
                "authMethod": method,
                "disableSSL": insecure,
            },
            {USERNAME: username or "", PASSWORD: password or "", API_KEY: api_key or ""},
            connect=not no_connect,
        )
        snapshot = manager.get_health(cluster_id)
    except ProfileValidationError as e:
        _fail(str(e))
    except ClusterConnectionError as e:
        _ok(f"Saved cluster '{name}' ({e.cluster_id})")
        _warn(str(e))
        return
    finally:
        manager.close()

    _ok(f"Saved cluster '{name}' ({cluster_id})")
    if snapshot is not None:
        click.echo(f"  Connected  {_status_badge(snapshot.status)}")


@cli.command("list")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_obj
def list_clusters(cfg: ProphesyConfig, json_output: bool) -> None:
    """Show saved cluster profiles."""
    manager = _manager(cfg)
    profiles = manager.list_profiles()
    active = manager.active_id
    remembered = set(manager.profile_store.reconnect_ids())

    if json_output:
        data = [
            {
                **p.model_dump(mode="json"),
                "active": p.id == active,
                "reconnect": p.id in remembered,
            }
            for p in profiles
        ]
        _echo_json(data)
        return

    if not profiles:
        click.echo("No clusters configured.")
        return
    for p in profiles:
        marker = click.style("*", fg="green", bold=True) if p.id == active else " "
        flags = click.style(" [auto]", fg="cyan") if p.id in remembered else ""
        click.echo(
            f"{marker} {p.name:<24} {p.endpoint:<40} "
            + click.style(f"[{p.auth_method}]", fg="blue")
            + flags
            + f"  {p.id}"
        )
    click.echo(f"\n{len(profiles)} cluster(s) configured.")


@cli.command()
@click.argument("cluster")
@click.pass_obj
def remove(cfg: ProphesyConfig, cluster: str) -> None:
    """Delete a cluster profile and its credentials."""
    manager = _manager(cfg)
    profile = manager.get_profile(cluster) or manager.find_profile_by_name(cluster)
    if profile is None:
        _warn(f"No cluster named '{cluster}'; nothing to remove.")
        return
    try:
        manager.remove_profile(profile.id)
    except ProphesyError as e:
        _fail(str(e))
    _ok(f"Removed cluster '{profile.name}'")


@cli.command()
@click.argument("cluster", required=False)
@click.pass_obj
def connect(cfg: ProphesyConfig, cluster: str | None) -> None:
    """Connect to a cluster (default: the active one)."""
    manager = _manager(cfg)
    profile = _resolve_target(manager, cluster)
    try:
        if not manager.connect(profile.id, interactive=True):
            _fail(f"Failed to connect to '{profile.name}'")
        snapshot = manager.get_health(profile.id)
    finally:
        manager.close()
    _ok(f"Connected to '{profile.name}'")
    if snapshot is not None:
        click.echo(_health_line(profile, snapshot))


@cli.command()
@click.argument("cluster", required=False)
@click.pass_obj
def disconnect(cfg: ProphesyConfig, cluster: str | None) -> None:
    """Disconnect a cluster and stop reconnecting it on startup."""
    manager = _manager(cfg)
    profile = _resolve_target(manager, cluster)
    manager.disconnect(profile.id)
    _ok(f"Disconnected from '{profile.name}'")


@cli.command()
@click.argument("cluster")
@click.pass_obj
def use(cfg: ProphesyConfig, cluster: str) -> None:
    """Select the default cluster for other commands."""
    manager = _manager(cfg)
    profile = _resolve_target(manager, cluster)
    manager.set_active(profile.id)
    _ok(f"Active cluster: '{profile.name}'")


# --- Session commands ---


@cli.command()
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_obj
def status(cfg: ProphesyConfig, json_output: bool) -> None:
    """Reconnect remembered clusters silently and show their health."""
    manager = _manager(cfg, interactive=False)
    try:
        report = manager.load_on_startup()
        profiles = manager.list_profiles()
        snapshots = manager.health_snapshots()
        active = manager.active_id
    finally:
        manager.close()

    if json_output:
        _echo_json({
            "active": active,
            "reconnected": report.reconnected,
            "failed": report.failed,
            "clusters": [
                {
                    "id": p.id,
                    "name": p.name,
                    "connected": p.id in snapshots,
                    "health": snapshots[p.id].model_dump(mode="json") if p.id in snapshots else None,
                }
                for p in profiles
            ],
        })
        return

    if not profiles:
        click.echo("No clusters configured.")
        return
    for p in profiles:
        click.echo(_health_line(p, snapshots.get(p.id)))
    if report.reconnected or report.failed:
        click.echo("\n" + report.summary())
    for cluster_id, reason in report.failed.items():
        _warn(f"{cluster_id}: {reason}")


@cli.command()
@click.argument("cluster", required=False)
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_obj
def health(cfg: ProphesyConfig, cluster: str | None, json_output: bool) -> None:
    """Show detailed health for a cluster (default: the active one)."""
    with _connected(cfg, cluster) as (manager, profile, _client):
        snapshot = manager.get_health(profile.id) or HealthSnapshot.unknown()
    usage = shard_usage(snapshot)

    if json_output:
        _echo_json({
            "cluster": profile.id,
            **snapshot.model_dump(mode="json"),
            "shards": usage.model_dump(mode="json"),
        })
        return

    click.echo(f"Cluster:  {snapshot.cluster_name}  {_status_badge(snapshot.status)}")
    click.echo(f"  Nodes:                 {snapshot.number_of_nodes}")
    click.echo(f"  Data nodes:            {snapshot.number_of_data_nodes}")
    click.echo(f"  Active primary shards: {snapshot.active_primary_shards}")
    click.echo(f"  Active shards:         {snapshot.active_shards}")
    click.echo(
        f"  Shard usage:           {usage.active_shards}/{usage.limit} "
        + click.style(f"({usage.percent}%)", fg=_SHARD_COLORS[usage.level])
    )
    click.echo(f"  Last checked:          {snapshot.checked_at.isoformat()}")


@cli.command()
@click.argument("cluster", required=False)
@click.option("--index", "-i", default=None, help="Index or pattern (default: all)")
@click.option("--query", "-q", default=None, help="Query DSL as JSON (default: match_all)")
@click.option("--size", default=10, show_default=True, help="Maximum hits")
@click.pass_obj
def search(
    cfg: ProphesyConfig,
    cluster: str | None,
    index: str | None,
    query: str | None,
    size: int,
) -> None:
    """Run a search request and print the JSON response."""
    try:
        parsed = json.loads(query) if query else {"match_all": {}}
    except json.JSONDecodeError as e:
        _fail(f"--query is not valid JSON: {e}")
    body = {"query": parsed, "size": size}

    with _connected(cfg, cluster) as (_manager_, profile, client):
        try:
            result = client.search(index, body)
        except Exception as e:
            _fail(f"Search on '{profile.name}' failed: {e}")
    _echo_json(result)


# --- Export / import ---


@cli.command("export")
@click.option("--output", "-o", default=None, help="Output file (default: dated file in cwd)")
@click.pass_obj
def export_clusters(cfg: ProphesyConfig, output: str | None) -> None:
    """Write all profiles (without credentials) to a JSON file."""
    manager = _manager(cfg)
    document = manager.export_profiles()
    if document is None:
        _warn("No clusters to export.")
        return
    path = Path(output or f"prophesy-clusters-{date.today().isoformat()}.json")
    path.write_text(json.dumps(document.to_json_dict(), indent=2), encoding="utf-8")
    _ok(f"Exported {len(document.clusters)} cluster(s) to {path}")


@cli.command("import")
@click.argument("import_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--on-conflict",
    type=click.Choice(["ask"] + [c.value for c in ConflictChoice]),
    default="ask",
    show_default=True,
    help="What to do when a cluster name already exists",
)
@click.pass_obj
def import_clusters(cfg: ProphesyConfig, import_file: str, on_conflict: str) -> None:
    """Read profiles from an export file. Credentials must be re-entered."""
    if on_conflict == "ask":
        resolver = _ask_conflict
    else:
        fixed = ConflictChoice(on_conflict)

        def resolver(incoming: ClusterProfile, existing: ClusterProfile) -> ConflictChoice:
            return fixed

    manager = _manager(cfg)
    try:
        result = manager.import_profiles(
            Path(import_file).read_text(encoding="utf-8"), on_conflict=resolver,
        )
    except ImportFormatError as e:
        _fail(str(e))
    _ok(result.summary())
    if result.imported:
        click.echo("Credentials are not imported; you will be prompted on connect.")


# --- Global settings ---


@cli.command()
@click.confirmation_option(prompt="Delete every cluster profile and credential?")
@click.pass_obj
def clear(cfg: ProphesyConfig) -> None:
    """Delete every profile, credential and remembered session."""
    manager = _manager(cfg)
    count = len(manager.list_profiles())
    try:
        manager.clear_all()
    except ProphesyError as e:
        _fail(str(e))
    _ok(f"Cleared {count} cluster(s)")


@cli.group()
def ca() -> None:
    """Custom CA certificate commands."""


@ca.command("set")
@click.argument("pem_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def ca_set(cfg: ProphesyConfig, pem_file: str) -> None:
    """Trust a PEM CA certificate for new connections."""
    manager = _manager(cfg)
    try:
        manager.set_ca_certificate(Path(pem_file).read_text(encoding="utf-8"))
    except ProfileValidationError as e:
        _fail(str(e))
    _ok(f"CA certificate set from {pem_file}")


@ca.command("clear")
@click.pass_obj
def ca_clear(cfg: ProphesyConfig) -> None:
    """Forget the custom CA certificate."""
    _manager(cfg).clear_ca_certificate()
    _ok("CA certificate cleared")


@cli.command("auto-refresh")
@click.argument("mode", type=click.Choice(["on", "off", "toggle"]), default="toggle")
@click.pass_obj
def auto_refresh(cfg: ProphesyConfig, mode: str) -> None:
    """Turn background health polling on, off, or toggle it."""
    manager = _manager(cfg)
    try:
        if mode == "on":
            manager.enable_auto_refresh()
        elif mode == "off":
            manager.disable_auto_refresh()
        else:
            manager.toggle_auto_refresh()
        enabled = manager.auto_refresh_enabled
    finally:
        manager.close()
    _ok(f"Auto-refresh {'enabled' if enabled else 'disabled'}")


@cli.command()
@click.option("--interval", type=float, default=None, help="Seconds between polls")
@click.option("--count", type=int, default=None, help="Stop after N polls")
@click.pass_obj
def watch(cfg: ProphesyConfig, interval: float | None, count: int | None) -> None:
    """Reconnect remembered clusters and poll their health."""
    manager = _manager(cfg, interactive=False)
    delay = interval if interval is not None else cfg.refresh_interval
    try:
        report = manager.load_on_startup()
        if report.reconnected or report.failed:
            click.echo(report.summary())
        if not manager.connected_ids():
            _warn("No connected clusters to watch.")
            return
        polls = 0
        while count is None or polls < count:
            if polls:
                time.sleep(delay)
            snapshots = manager.refresh_health()
            polls += 1
            click.echo(click.style(time.strftime("%H:%M:%S"), bold=True))
            for p in manager.list_profiles():
                if p.id in snapshots:
                    click.echo(_health_line(p, snapshots[p.id]))
    except KeyboardInterrupt:
        click.echo("")
    finally:
        manager.close()


# --- explore group ---


@cli.group()
def explore() -> None:
    """Browse read-only cluster resources."""


def _cluster_option(func: Any) -> Any:
    return click.option(
        "--cluster", "-c", default=None, help="Cluster id or name (default: active)",
    )(func)


def _read(cfg: ProphesyConfig, cluster: str | None, what: str, fetch: Any) -> Any:
    with _connected(cfg, cluster) as (_m, profile, client):
        try:
            return fetch(client)
        except Exception as e:
            _fail(f"Failed to fetch {what} from '{profile.name}': {e}")


@explore.command("info")
@_cluster_option
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_obj
def explore_info(cfg: ProphesyConfig, cluster: str | None, json_output: bool) -> None:
    """Show cluster name, version and uuid."""
    info = _read(cfg, cluster, "cluster info", lambda c: c.info())
    if json_output:
        _echo_json(info)
        return
    click.echo(f"Name:          {info.get('name')}")
    click.echo(f"Cluster name:  {info.get('cluster_name')}")
    click.echo(f"Version:       {(info.get('version') or {}).get('number')}")
    click.echo(f"Cluster UUID:  {info.get('cluster_uuid')}")


@explore.command("nodes")
@_cluster_option
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_obj
def explore_nodes(cfg: ProphesyConfig, cluster: str | None, json_output: bool) -> None:
    """List nodes with CPU, heap and disk usage."""
    nodes = summarize_nodes(_read(cfg, cluster, "nodes", lambda c: c.node_stats()))
    if json_output:
        _echo_json([n.model_dump(mode="json") for n in nodes])
        return
    if not nodes:
        click.echo("No nodes found.")
        return
    for n in nodes:
        cpu = f"{n.cpu_percent}%" if n.cpu_percent is not None else "N/A"
        heap = f"{n.heap_used_percent}%" if n.heap_used_percent is not None else "N/A"
        disk = (
            f"{format_bytes(n.disk_free_bytes)} free / {format_bytes(n.disk_total_bytes)}"
            if n.disk_total_bytes is not None else "N/A"
        )
        name = click.style(n.name, bold=True) if n.is_master else n.name
        click.echo(
            f"  {name:<24} {n.ip or 'N/A':<16} {','.join(n.roles) or 'N/A'}\n"
            f"      cpu {cpu}  heap {heap}  disk {disk}"
        )


def _echo_names(
    data: Mapping[str, Any] | list[Mapping[str, Any]], json_output: bool, kind: str,
) -> None:
    names = sorted_names(data)
    if json_output:
        _echo_json(names)
        return
    if not names:
        click.echo(f"No {kind} found.")
        return
    for name in names:
        click.echo(f"  {name}")
    click.echo(f"\n{len(names)} {kind}.")


def _echo_definition(definition: Any, what: str) -> None:
    if definition is None:
        _fail(f"{what} not found")
    _echo_json(definition)


@explore.command("roles")
@_cluster_option
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_obj
def explore_roles(cfg: ProphesyConfig, cluster: str | None, json_output: bool) -> None:
    """List security roles."""
    _echo_names(_read(cfg, cluster, "roles", lambda c: c.list_roles()), json_output, "role(s)")


@explore.command("role")
@click.argument("name")
@_cluster_option
@click.pass_obj
def explore_role(cfg: ProphesyConfig, name: str, cluster: str | None) -> None:
    """Show one role definition."""
    _echo_definition(
        _read(cfg, cluster, f"role {name}", lambda c: c.get_role(name)), f"Role '{name}'",
    )


@explore.command("role-mappings")
@_cluster_option
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_obj
def explore_role_mappings(cfg: ProphesyConfig, cluster: str | None, json_output: bool) -> None:
    """List role mappings."""
    data = _read(cfg, cluster, "role mappings", lambda c: c.list_role_mappings())
    _echo_names(data, json_output, "role mapping(s)")


@explore.command("role-mapping")
@click.argument("name")
@_cluster_option
@click.pass_obj
def explore_role_mapping(cfg: ProphesyConfig, name: str, cluster: str | None) -> None:
    """Show one role mapping definition."""
    _echo_definition(
        _read(cfg, cluster, f"role mapping {name}", lambda c: c.get_role_mapping(name)),
        f"Role mapping '{name}'",
    )


@explore.command("templates")
@_cluster_option
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_obj
def explore_templates(cfg: ProphesyConfig, cluster: str | None, json_output: bool) -> None:
    """List index templates."""
    data = _read(cfg, cluster, "index templates", lambda c: c.list_index_templates())
    _echo_names(data, json_output, "index template(s)")


@explore.command("template")
@click.argument("name")
@_cluster_option
@click.pass_obj
def explore_template(cfg: ProphesyConfig, name: str, cluster: str | None) -> None:
    """Show one index template definition."""
    body = _read(cfg, cluster, f"index template {name}", lambda c: c.get_index_template(name))
    _echo_definition(template_definition(body, name), f"Index template '{name}'")


@explore.command("data-streams")
@_cluster_option
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_obj
def explore_data_streams(cfg: ProphesyConfig, cluster: str | None, json_output: bool) -> None:
    """List data streams with backing index count and size."""
    streams, stats = _read(
        cfg, cluster, "data streams",
        lambda c: (c.list_data_streams(), c.data_stream_stats()),
    )
    summaries = summarize_data_streams(streams, stats)
    if json_output:
        _echo_json([s.model_dump(mode="json") for s in summaries])
        return
    if not summaries:
        click.echo("No data streams found.")
        return
    for s in summaries:
        click.echo(
            f"  {s.name:<36} "
            + click.style(f"[{s.status}]", fg=_STATUS_COLORS.get(s.status, "white"))
            + f"  {s.backing_indices} indices, {format_bytes(s.store_size_bytes)}"
        )
