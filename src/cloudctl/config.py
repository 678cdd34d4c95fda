"""Config file loading and auto-discovery for cloudctl.

Searches for ``cloudctl.yaml`` in the current directory and parent
directories, then falls back to ``~/.cloudctl/config.yaml``. Relative
paths are resolved against the config file's location, and a few
``CLOUDCTL_*`` environment variables override the file.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

import yaml

CONFIG_FILENAME = "cloudctl.yaml"
USER_CONFIG_PATH = Path("~/.cloudctl/config.yaml")

DEFAULT_METAL_TIMEOUT = 30.0
DEFAULT_CLOUD_PROFILE = "metal"

ENV_OVERRIDES = {
    "CLOUDCTL_METAL_URL": "metal_url",
    "CLOUDCTL_METAL_TOKEN": "metal_token",
    "CLOUDCTL_KUBECONFIG": "kubeconfig",
}


@dataclass(frozen=True)
class CloudctlConfig:
    """Parsed cloudctl configuration."""

    config_path: Path | None = None
    metal_url: str | None = None
    metal_token: str | None = None
    metal_timeout: float = DEFAULT_METAL_TIMEOUT
    kubeconfig: str | None = None
    context: str | None = None
    cloud_profile: str = DEFAULT_CLOUD_PROFILE
    garden_namespace: str | None = None


def find_config(start: Path | None = None) -> Path | None:
    """Walk from *start* (default ``cwd()``) up to the filesystem root.

    Returns the first ``cloudctl.yaml`` found, then the user config if it
    exists, or ``None``.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    user_config = USER_CONFIG_PATH.expanduser()
    if user_config.is_file():
        return user_config
    return None


def load_config(
    path: str | Path | None = None,
    *,
    auto_discover: bool = True,
    environ: Mapping[str, str] | None = None,
) -> CloudctlConfig:
    """Load the cloudctl config.

    Resolution order:

    1. Explicit *path* (error if it doesn't exist).
    2. Auto-discover (``cloudctl.yaml`` upwards, then the user config).
    3. An empty ``CloudctlConfig`` (all defaults).

    Environment overrides are applied on top in every case.
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).expanduser().resolve()
        if not config_path.is_file():
            msg = f"Config file not found: {config_path}"
            raise FileNotFoundError(msg)
    elif auto_discover:
        config_path = find_config()

    config = CloudctlConfig() if config_path is None else _parse_config(config_path)
    return _apply_env(config, os.environ if environ is None else environ)


def _parse_config(config_path: Path) -> CloudctlConfig:
    """Read and parse a YAML config file, resolving relative paths."""
    text = config_path.read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}

    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping in {config_path}, got {type(data).__name__}"
        raise ValueError(msg)

    base = config_path.parent

    def _resolve(key: str) -> str | None:
        val = data.get(key)
        if val is None:
            return None
        return str((base / Path(val).expanduser()).resolve())

    return CloudctlConfig(
        config_path=config_path,
        metal_url=data.get("metal_url"),
        metal_token=data.get("metal_token"),
        metal_timeout=float(data.get("metal_timeout", DEFAULT_METAL_TIMEOUT)),
        kubeconfig=_resolve("kubeconfig"),
        context=data.get("context"),
        cloud_profile=data.get("cloud_profile", DEFAULT_CLOUD_PROFILE),
        garden_namespace=data.get("garden_namespace"),
    )


def _apply_env(config: CloudctlConfig, environ: Mapping[str, str]) -> CloudctlConfig:
    overrides = {
        field: environ[var]
        for var, field in ENV_OVERRIDES.items()
        if environ.get(var)
    }
    if not overrides:
        return config
    return replace(config, **overrides)
