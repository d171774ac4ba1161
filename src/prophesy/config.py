"""Config file loading and auto-discovery for prophesy.

Searches for ``prophesy.yaml`` in the current directory and parent
directories, parses it, and resolves the state directory against the
config file's location.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "prophesy.yaml"
DEFAULT_STATE_DIR = Path("~/.prophesy")
DEFAULT_REFRESH_INTERVAL = 60.0
DEFAULT_REQUEST_TIMEOUT = 10.0

STATE_FILENAME = "state.json"
SECRETS_FILENAME = "secrets.json"


def _default_secrets() -> dict[str, Any]:
    return {"type": "file"}


@dataclass(frozen=True)
class ProphesyConfig:
    """Parsed prophesy configuration."""

    config_path: Path | None = None
    state_dir: Path = DEFAULT_STATE_DIR
    secrets: dict[str, Any] = field(default_factory=_default_secrets)
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    log_level: str = "WARNING"

    @property
    def state_path(self) -> Path:
        """File holding profiles, the reconnect set and other non-secret state."""
        return self.state_dir.expanduser() / STATE_FILENAME

    @property
    def secrets_path(self) -> Path:
        """Default location of the file-backed secret store."""
        return self.state_dir.expanduser() / SECRETS_FILENAME


def find_config(start: Path | None = None) -> Path | None:
    """Walk from *start* (default ``cwd()``) up to the filesystem root.

    Returns the first ``prophesy.yaml`` found, or ``None``.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(
    path: str | Path | None = None,
    *,
    auto_discover: bool = True,
) -> ProphesyConfig:
    """Load a prophesy config file.

    Resolution order:

    1. Explicit *path* (error if it doesn't exist).
    2. Auto-discover by walking parent directories.
    3. Return an empty ``ProphesyConfig`` (all defaults).
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).resolve()
        if not config_path.is_file():
            msg = f"Config file not found: {config_path}"
            raise FileNotFoundError(msg)
    elif auto_discover:
        config_path = find_config()

    if config_path is None:
        return ProphesyConfig()

    return _parse_config(config_path)


def _parse_config(config_path: Path) -> ProphesyConfig:
    """Read and parse a YAML config file, resolving relative paths."""
    text = config_path.read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}

    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping in {config_path}, got {type(data).__name__}"
        raise ValueError(msg)

    base = config_path.parent

    state_dir = DEFAULT_STATE_DIR
    if data.get("state_dir") is not None:
        raw = Path(str(data["state_dir"])).expanduser()
        state_dir = raw if raw.is_absolute() else (base / raw).resolve()

    secrets = data.get("secrets") or _default_secrets()
    if not isinstance(secrets, dict):
        msg = f"'secrets' must be a mapping in {config_path}"
        raise ValueError(msg)

    refresh_interval = float(data.get("refresh_interval", DEFAULT_REFRESH_INTERVAL))
    if refresh_interval <= 0:
        msg = f"'refresh_interval' must be positive in {config_path}"
        raise ValueError(msg)

    return ProphesyConfig(
        config_path=config_path,
        state_dir=state_dir,
        secrets=secrets,
        refresh_interval=refresh_interval,
        request_timeout=float(data.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)),
        log_level=str(data.get("log_level", "WARNING")).upper(),
    )
