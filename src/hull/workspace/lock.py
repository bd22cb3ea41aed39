"""
hull.workspace.lock — uv.lock parsing.

uv.lock format (the parts hull reads):

    version = 1

    [manifest]
    members = ["api", "core"]

    [[package]]
    name = "api"
    version = "0.1.0"
    source = { editable = "packages/api" }
    dependencies = [
        { name = "core" },
        { name = "fastapi" },
    ]

    [[package]]
    name = "fastapi"
    source = { registry = "https://pypi.org/simple" }

Only `dependencies` are read. Optional dependencies and dev groups are
never part of a non-dev closure.
"""

from __future__ import annotations

import hashlib
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


LOCK_FILE = "uv.lock"
MANIFEST_FILE = "pyproject.toml"

# Source kinds uv writes into the lock
SOURCE_KINDS = (
    "editable", "virtual", "registry", "git", "url", "path", "directory",
)

_NORMALIZE = re.compile(r"[-_.]+")


def normalize_name(name: str) -> str:
    """PEP 503 name normalization.

    >>> normalize_name("My_Package.Core")
    'my-package-core'
    """
    return _NORMALIZE.sub("-", name).lower()


@dataclass(frozen=True)
class PackageSource:
    """Where a locked package comes from."""
    kind: str
    value: str = ""

    @property
    def is_editable(self) -> bool:
        return self.kind == "editable"

    @property
    def is_local(self) -> bool:
        return self.kind in ("editable", "virtual", "path", "directory")


@dataclass
class LockEntry:
    """One [[package]] table."""
    name: str
    version: str | None = None
    dependencies: list[str] = field(default_factory=list)
    source: PackageSource | None = None

    @property
    def path(self) -> str | None:
        """Workspace-relative path for local sources."""
        if self.source and self.source.is_local:
            return self.source.value
        return None


@dataclass
class Lockfile:
    """Parsed uv.lock."""
    members: set[str] = field(default_factory=set)
    packages: dict[str, LockEntry] = field(default_factory=dict)
    version: int | None = None

    def get(self, name: str) -> LockEntry | None:
        return self.packages.get(normalize_name(name))

    def is_member(self, name: str) -> bool:
        return normalize_name(name) in self.members


class LockError(Exception):
    """Lock file error."""
    pass


def parse_lock(path: str | Path) -> Lockfile:
    """Parse a uv.lock file."""
    p = Path(path)
    if not p.exists():
        raise LockError(f"Lock file not found: {p}")

    try:
        with open(p, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise LockError(f"Invalid lock file {p}: {e}") from e

    return parse_lock_dict(data)


def parse_lock_dict(data: dict[str, Any]) -> Lockfile:
    """Create a Lockfile from already-decoded TOML."""
    lock = Lockfile(version=data.get("version"))

    packages_raw = data.get("package", [])
    if not isinstance(packages_raw, list):
        raise LockError("'package' must be an array of tables")

    for i, raw in enumerate(packages_raw):
        if not isinstance(raw, dict):
            raise LockError(f"package[{i}] must be a table")
        entry = _parse_entry(raw, i)
        if entry.name in lock.packages:
            raise LockError(f"Duplicate package in lock: '{entry.name}'")
        lock.packages[entry.name] = entry

    manifest = data.get("manifest", {})
    members = manifest.get("members") if isinstance(manifest, dict) else None
    if members:
        lock.members = {normalize_name(m) for m in members}
    else:
        # Single-project workspace: the root is the only member
        lock.members = {
            e.name for e in lock.packages.values()
            if e.source and e.source.kind in ("editable", "virtual")
        }

    return lock


def _parse_entry(raw: dict[str, Any], index: int) -> LockEntry:
    name = raw.get("name")
    if not name:
        raise LockError(f"package[{index}].name is required")

    deps: list[str] = []
    for dep in raw.get("dependencies", []):
        if isinstance(dep, dict) and dep.get("name"):
            deps.append(normalize_name(dep["name"]))
        elif isinstance(dep, str):
            deps.append(normalize_name(dep))

    return LockEntry(
        name=normalize_name(name),
        version=raw.get("version"),
        dependencies=deps,
        source=_parse_source(raw.get("source")),
    )


def _parse_source(raw: Any) -> PackageSource | None:
    if not isinstance(raw, dict):
        return None
    for kind in SOURCE_KINDS:
        if kind in raw:
            return PackageSource(kind=kind, value=str(raw[kind]))
    return None


def compute_checksum(workspace_dir: str | Path) -> str:
    """Checksum of the workspace manifest and lock file.

    Used as an image label so two images built from the same lock
    can be recognised.

    Returns:
        Hash string in "sha256:<hex>" format
    """
    ws = Path(workspace_dir)
    hasher = hashlib.sha256()

    for name in (MANIFEST_FILE, LOCK_FILE):
        fp = ws / name
        if fp.exists():
            hasher.update(fp.name.encode())
            hasher.update(fp.read_bytes())

    return f"sha256:{hasher.hexdigest()}"
