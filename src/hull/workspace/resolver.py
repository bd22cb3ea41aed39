"""
hull.workspace.resolver — Workspace resolver.

Reads uv.lock from a workspace root, computes the dependency
closure of one package, and returns a build-ready BuildPlan.

Closure rules:
  - depth-first from the target, visited-set guards cycles
  - only workspace members are followed; everything else is an
    external dependency installed from its registry
  - only editable members end up in the source mapping
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from hull.settings import Settings
from hull.workspace.lock import (
    LOCK_FILE, Lockfile, LockEntry, LockError, parse_lock, normalize_name,
)

logger = logging.getLogger(__name__)


@dataclass
class Closure:
    """Workspace-member dependency closure of one package."""
    target: str
    entries: list[LockEntry] = field(default_factory=list)
    source_mapping: dict[str, str] = field(default_factory=dict)

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.entries]

    def __bool__(self) -> bool:
        return bool(self.entries)


@dataclass
class BuildPlan:
    """Resolved build inputs for one package."""
    workspace_dir: Path
    package: str
    lock: Lockfile
    closure: Closure
    settings: Settings
    frontend_dir: Path | None = None

    @property
    def source_mapping(self) -> dict[str, str]:
        return self.closure.source_mapping

    @property
    def has_frontend(self) -> bool:
        return self.frontend_dir is not None

    @property
    def module_name(self) -> str:
        """Import name of the target (my-api → my_api)."""
        return self.package.replace("-", "_")

    @property
    def static_path(self) -> str:
        return f"{self.settings.static_root.rstrip('/')}/{self.package}"


class WorkspaceError(Exception):
    """Workspace resolution error."""
    pass


def resolve_closure(lock: Lockfile, target: str) -> Closure:
    """Compute the workspace-member closure of `target`.

    An unknown target yields an empty closure, not an error.
    """
    name = normalize_name(target)
    closure = Closure(target=name)

    if lock.get(name) is None:
        logger.debug("Package %s not in lock", name)
        return closure

    visited: set[str] = set()
    stack = [name]
    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)

        entry = lock.get(current)
        if entry is None:
            # Member listed in the manifest but missing a package table
            continue
        closure.entries.append(entry)
        if entry.source and entry.source.is_editable:
            closure.source_mapping[entry.name] = entry.source.value

        # Reversed so the first declared dependency is visited first
        for dep in reversed(entry.dependencies):
            if dep in visited:
                continue
            if not lock.is_member(dep):
                logger.debug("%s → %s is external", current, dep)
                continue
            stack.append(dep)

    return closure


def find_frontend(
    workspace_dir: str | Path,
    package: str,
    settings: Settings,
) -> Path | None:
    """Locate <workspace>/<frontend_dir>/<package>, if any."""
    candidate = Path(workspace_dir) / settings.frontend_dir / package
    if candidate.is_dir():
        return candidate
    return None


def resolve_workspace(
    workspace_dir: str | Path | None,
    package: str,
    settings: Settings | None = None,
    strict: bool = False,
) -> BuildPlan:
    """Resolve a workspace directory into a BuildPlan.

    Args:
        workspace_dir: Workspace root (None = cwd)
        package: Target package name
        settings: Build settings (None = defaults)
        strict: Treat an unknown package as an error

    Raises:
        WorkspaceError: Resolution error
    """
    ws = Path(workspace_dir or ".").resolve()
    settings = settings or Settings()

    if not ws.is_dir():
        raise WorkspaceError(f"Not a directory: {ws}")

    try:
        lock = parse_lock(ws / LOCK_FILE)
    except LockError as e:
        raise WorkspaceError(str(e)) from e

    closure = resolve_closure(lock, package)
    if not closure and strict:
        raise WorkspaceError(f"Package '{package}' not found in {LOCK_FILE}")

    name = normalize_name(package)
    plan = BuildPlan(
        workspace_dir=ws,
        package=name,
        lock=lock,
        closure=closure,
        settings=settings,
        frontend_dir=find_frontend(ws, name, settings),
    )

    if settings.validate_entrypoint:
        check_entrypoint(plan)

    return plan


def check_entrypoint(plan: BuildPlan) -> Path:
    """Ensure the target ships a `__main__` module.

    Looked up under the package's own source path, in both the
    flat and src/ layouts.
    """
    rel = plan.source_mapping.get(plan.package)
    if rel is None:
        raise WorkspaceError(
            f"Cannot validate entrypoint: '{plan.package}' is not an "
            f"editable workspace member"
        )

    root = plan.workspace_dir / rel
    for base in (root / "src", root):
        main = base / plan.module_name / "__main__.py"
        if main.exists():
            return main

    raise WorkspaceError(
        f"Entrypoint not found: {plan.module_name}/__main__.py under {root}"
    )
