"""Engine configuration resolved once per process.

Reads an optional JSON file from the user config directory, then applies
``KETRA_*`` environment overrides. Malformed or missing values fall back to
defaults rather than failing.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "ketra"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

DEFAULT_WORKSPACE_DIR_NAME = "ketra"
DEFAULT_BRIDGE_COMMAND = ("wsl", "--exec")
DEFAULT_BRIDGED_PATH_PREFIXES = ("/home/", "/mnt/")
DEFAULT_BRANCH = "main"
DEFAULT_MAX_CONCURRENT_PROBES = 8
DEFAULT_PROBE_TIMEOUT_SECONDS = 15.0
DEFAULT_NETWORK_TIMEOUT_SECONDS = 300.0
DEFAULT_GITHUB_API_URL = "https://api.github.com"


@dataclass(frozen=True)
class EngineConfig:
    """Explicit settings passed into resolvers, scanners, and adapters."""

    workspace_dir_name: str = DEFAULT_WORKSPACE_DIR_NAME
    native_root: str | None = None
    bridged_root: str | None = None
    bridge_command: tuple[str, ...] = DEFAULT_BRIDGE_COMMAND
    bridged_path_prefixes: tuple[str, ...] = DEFAULT_BRIDGED_PATH_PREFIXES
    default_branch: str = DEFAULT_BRANCH
    max_concurrent_probes: int = DEFAULT_MAX_CONCURRENT_PROBES
    probe_timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS
    network_timeout_seconds: float = DEFAULT_NETWORK_TIMEOUT_SECONDS
    github_api_url: str = DEFAULT_GITHUB_API_URL
    environ: Mapping[str, str] = field(default_factory=dict, compare=False, repr=False)

    def with_overrides(self, **changes: object) -> EngineConfig:
        return replace(self, **changes)


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object, ``{}`` on any problem."""
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def _coerce_str(value: object, default: str | None) -> str | None:
    if not isinstance(value, str):
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _coerce_positive_int(value: object, default: int) -> int:
    """Booleans, non-integers, and values below 1 fall back to ``default``."""
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            return default
    if not isinstance(value, int) or value < 1:
        return default
    return value


def _coerce_positive_float(value: object, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if not isinstance(value, (int, float)) or value <= 0:
        return default
    return float(value)


def _coerce_str_tuple(value: object, default: tuple[str, ...]) -> tuple[str, ...]:
    """Accept a JSON list of strings or a whitespace-separated string."""
    if isinstance(value, str):
        parts = tuple(value.split())
        return parts if parts else default
    if isinstance(value, list) and value and all(isinstance(item, str) and item for item in value):
        return tuple(value)
    return default


def build_config(data: Mapping[str, object], environ: Mapping[str, str]) -> EngineConfig:
    """Combine file data with environment overrides into one ``EngineConfig``."""

    def pick(key: str, env_key: str) -> object:
        if env_key in environ:
            return environ[env_key]
        return data.get(key)

    return EngineConfig(
        workspace_dir_name=_coerce_str(
            pick("workspace_dir_name", "KETRA_WORKSPACE_DIR"), DEFAULT_WORKSPACE_DIR_NAME
        )
        or DEFAULT_WORKSPACE_DIR_NAME,
        native_root=_coerce_str(pick("native_root", "KETRA_NATIVE_ROOT"), None),
        bridged_root=_coerce_str(pick("bridged_root", "KETRA_BRIDGED_ROOT"), None),
        bridge_command=_coerce_str_tuple(pick("bridge_command", "KETRA_BRIDGE_COMMAND"), DEFAULT_BRIDGE_COMMAND),
        bridged_path_prefixes=_coerce_str_tuple(data.get("bridged_path_prefixes"), DEFAULT_BRIDGED_PATH_PREFIXES),
        default_branch=_coerce_str(data.get("default_branch"), DEFAULT_BRANCH) or DEFAULT_BRANCH,
        max_concurrent_probes=_coerce_positive_int(
            pick("max_concurrent_probes", "KETRA_MAX_CONCURRENT_PROBES"), DEFAULT_MAX_CONCURRENT_PROBES
        ),
        probe_timeout_seconds=_coerce_positive_float(
            pick("probe_timeout_seconds", "KETRA_PROBE_TIMEOUT"), DEFAULT_PROBE_TIMEOUT_SECONDS
        ),
        network_timeout_seconds=_coerce_positive_float(
            pick("network_timeout_seconds", "KETRA_NETWORK_TIMEOUT"), DEFAULT_NETWORK_TIMEOUT_SECONDS
        ),
        github_api_url=(
            _coerce_str(pick("github_api_url", "KETRA_GITHUB_API_URL"), DEFAULT_GITHUB_API_URL)
            or DEFAULT_GITHUB_API_URL
        ).rstrip("/"),
        environ=dict(environ),
    )


def load_engine_config(environ: Mapping[str, str] | None = None) -> EngineConfig:
    """Resolve configuration from disk and the process environment."""
    return build_config(load_config(), os.environ if environ is None else environ)


__all__ = [
    "CONFIG_PATH",
    "EngineConfig",
    "build_config",
    "load_config",
    "load_engine_config",
]
