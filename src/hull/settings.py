"""
hull.settings — Build settings.

Precedence (low to high):
  defaults → ~/.hull/config.yaml → <workspace>/hull.yaml
  → HULL_* env vars → --set key=value

Both YAML files hold the same flat mapping of settings:

    base_image: python:3.12-slim
    frontend_dir: frontend
    static_root: /app/static
    ignore_patterns:
      - .git
      - .venv
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any

import yaml


HULL_HOME = Path.home() / ".hull"

WORKSPACE_CONFIG = "hull.yaml"
GLOBAL_CONFIG = "config.yaml"

DEFAULT_IGNORE = (
    ".git",
    ".hg",
    ".env",
    ".env.*",
    ".venv",
    "venv",
    "node_modules",
    "__pycache__",
    "*.pyc",
    "*.pyo",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
    "*.egg-info",
)

# env var → settings field
ENV_OVERRIDES = {
    "HULL_BASE_IMAGE": "base_image",
    "HULL_UV_IMAGE": "uv_image",
    "HULL_FRONTEND_IMAGE": "frontend_image",
    "HULL_ASSETS_REGISTRY": "assets_registry",
}


@dataclass
class Settings:
    """Fixed build configuration, enumerated once per invocation."""
    ignore_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))
    base_image: str = "python:3.12-slim"
    uv_image: str = "ghcr.io/astral-sh/uv:0.5"
    frontend_image: str = "node:22-slim"
    uv_cache_id: str = "hull-uv-cache"
    pnpm_cache_id: str = "hull-pnpm-store"
    frontend_dir: str = "frontend"
    frontend_output: str = "dist"
    static_root: str = "/app/static"
    app_dir: str = "/app"
    validate_entrypoint: bool = False
    assets_registry: str = ""                # push-ui / pull-ui default

    @property
    def cache_volume_ids(self) -> tuple[str, str]:
        return (self.uv_cache_id, self.pnpm_cache_id)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ConfigError(Exception):
    """Settings error."""
    pass


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Override wins.

    >>> deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"b": 99}})
    {'a': {'b': 99, 'c': 2}}
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def parse_set_values(set_args: list[str]) -> dict:
    """Convert --set key=value arguments to a dict.

    >>> parse_set_values(["static_root=/srv", "validate_entrypoint=true"])
    {'static_root': '/srv', 'validate_entrypoint': True}
    """
    result: dict = {}
    for arg in set_args:
        if "=" not in arg:
            raise ConfigError(f"Invalid --set format: '{arg}' (expected key=value)")
        key, value = arg.split("=", 1)
        result[key.strip()] = _coerce_value(value)
    return result


def _coerce_value(value: str) -> Any:
    """
    >>> _coerce_value("true")
    True
    >>> _coerce_value("node:22")
    'node:22'
    """
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    if "," in value:
        return [v.strip() for v in value.split(",") if v.strip()]
    return value


def load_yaml_mapping(path: str | Path) -> dict:
    """Read a YAML file that must contain a mapping (empty → {})."""
    p = Path(path)
    with open(p) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {p}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{p} must be a YAML mapping")
    return data


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """Build Settings, rejecting unknown keys."""
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}")

    values = dict(data)
    patterns = values.get("ignore_patterns")
    if patterns is not None:
        if isinstance(patterns, str):
            patterns = [patterns]
        if not isinstance(patterns, list):
            raise ConfigError("ignore_patterns must be a list")
        values["ignore_patterns"] = [str(p) for p in patterns]
    if "validate_entrypoint" in values:
        values["validate_entrypoint"] = _as_bool(
            "validate_entrypoint", values["validate_entrypoint"],
        )

    for key, value in values.items():
        if key in ("ignore_patterns", "validate_entrypoint"):
            continue
        if not isinstance(value, str):
            raise ConfigError(
                f"{key} must be a string, got {type(value).__name__}: {value!r}"
            )

    return Settings(**values)


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, str):
        value = _coerce_value(value)
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


def global_config_path() -> Path:
    return HULL_HOME / GLOBAL_CONFIG


def load_settings(
    workspace_dir: str | Path | None = None,
    set_args: list[str] | None = None,
) -> Settings:
    """Resolve effective build settings for a workspace."""
    data = Settings().to_dict()

    # 1. Global config
    global_file = global_config_path()
    if global_file.exists():
        data = deep_merge(data, load_yaml_mapping(global_file))

    # 2. Workspace hull.yaml
    if workspace_dir is not None:
        ws_file = Path(workspace_dir) / WORKSPACE_CONFIG
        if ws_file.exists():
            data = deep_merge(data, load_yaml_mapping(ws_file))

    # 3. Env vars
    for var, key in ENV_OVERRIDES.items():
        value = os.environ.get(var, "").strip()
        if value:
            data[key] = value

    # 4. --set
    if set_args:
        data = deep_merge(data, parse_set_values(set_args))

    return settings_from_dict(data)
