"""
hull.workspace.stage — Build context staging.

Lays out a build context directory for one BuildPlan:

    <context>/
    ├── pyproject.toml          ← workspace manifest
    ├── uv.lock
    ├── packages/core/...       ← each editable closure member,
    ├── packages/api/...          at its workspace-relative path
    ├── frontend/api/...        ← frontend subtree (if any)
    ├── .hull/root/             ← root member files, other members excluded
    └── .hull/empty/            ← stand-in for a missing frontend

Every copy skips the ignore list. Staging the same plan twice gives
an identical tree: each member directory is replaced, not merged.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable

from hull.workspace.lock import LOCK_FILE, MANIFEST_FILE
from hull.workspace.resolver import BuildPlan

logger = logging.getLogger(__name__)

# Extra root files uv reads when present
ROOT_FILES = (MANIFEST_FILE, LOCK_FILE, ".python-version")

EMPTY_DIR = ".hull/empty"

# Own files of a workspace root that is also a closure member
ROOT_DIR = ".hull/root"


@dataclass
class StagedContext:
    """Result of staging a BuildPlan."""
    context_dir: Path
    root_files: list[str] = field(default_factory=list)
    sources: dict[str, str] = field(default_factory=dict)   # name → rel path
    frontend: str | None = None                              # rel path in context

    @property
    def has_frontend(self) -> bool:
        return self.frontend is not None


class StageError(Exception):
    """Staging error."""
    pass


def make_ignore(
    patterns: Iterable[str],
    root: str | Path,
    exclude: Iterable[str] = (),
) -> Callable[[str, list[str]], set[str]]:
    """Build a shutil.copytree ignore callable.

    A pattern matches either an entry name (`node_modules`, `*.pyc`)
    or its path relative to `root` (`docs/_build`). `exclude` holds
    root-relative paths that are always skipped.

    Directories are taken as copytree reports them, unresolved, so a
    symlinked directory pointing elsewhere still counts as under `root`.
    """
    pats = list(patterns)
    skip = {PurePosixPath(p).as_posix() for p in exclude}
    base = os.fspath(root)

    def _ignore(directory: str, names: list[str]) -> set[str]:
        rel_dir = PurePosixPath(Path(os.path.relpath(directory, base)).as_posix())
        ignored = set()
        for name in names:
            rel = (rel_dir / name).as_posix()
            if rel in skip or any(
                fnmatch.fnmatch(name, p) or fnmatch.fnmatch(rel, p) for p in pats
            ):
                ignored.add(name)
        return ignored

    return _ignore


def safe_relative(rel: str) -> PurePosixPath:
    """Validate a workspace-relative path from the lock."""
    p = PurePosixPath(rel)
    if p.is_absolute() or ".." in p.parts:
        raise StageError(f"Source path escapes the workspace: '{rel}'")
    return p


def copy_tree(
    src: Path,
    dest: Path,
    patterns: Iterable[str],
    exclude: Iterable[str] = (),
) -> None:
    """Replace `dest` with a filtered copy of `src`."""
    if dest.exists():
        shutil.rmtree(dest)
    shutil.copytree(src, dest, ignore=make_ignore(patterns, src, exclude))


def root_exclusions(plan: BuildPlan) -> list[str]:
    """Paths left out when the workspace root is itself staged.

    Other members and the frontend tree are staged on their own terms,
    if at all.
    """
    excluded = {plan.settings.frontend_dir.strip("/")}
    for entry in plan.lock.packages.values():
        if not plan.lock.is_member(entry.name) or entry.path is None:
            continue
        rel = PurePosixPath(entry.path).as_posix()
        if rel not in (".", ""):
            excluded.add(rel)
    return sorted(excluded)


def stage_sources(plan: BuildPlan, context_dir: str | Path) -> dict[str, str]:
    """Copy each editable closure member into the context.

    Returns:
        name → relative path of every staged member
    """
    ctx = Path(context_dir)
    patterns = plan.settings.ignore_patterns
    staged: dict[str, str] = {}

    for name, rel in sorted(plan.source_mapping.items()):
        rel_path = safe_relative(rel)
        src = plan.workspace_dir / rel_path
        if not src.is_dir():
            raise StageError(f"Source directory for '{name}' not found: {src}")

        if rel_path == PurePosixPath("."):
            copy_tree(src, ctx / ROOT_DIR, patterns, root_exclusions(plan))
        else:
            copy_tree(src, ctx / rel_path, patterns)

        logger.debug("Staged %s from %s", name, rel_path)
        staged[name] = rel_path.as_posix()

    return staged


def stage_frontend(plan: BuildPlan, context_dir: str | Path) -> str | None:
    """Copy the frontend subtree, or create the empty stand-in."""
    ctx = Path(context_dir)

    if plan.frontend_dir is None:
        (ctx / EMPTY_DIR).mkdir(parents=True, exist_ok=True)
        return None

    rel = plan.frontend_dir.relative_to(plan.workspace_dir)
    copy_tree(plan.frontend_dir, ctx / rel, plan.settings.ignore_patterns)
    logger.debug("Staged frontend from %s", rel)
    return rel.as_posix()


def stage_context(plan: BuildPlan, context_dir: str | Path) -> StagedContext:
    """Stage everything a build of `plan` needs into `context_dir`."""
    ctx = Path(context_dir)
    ctx.mkdir(parents=True, exist_ok=True)

    staged = StagedContext(context_dir=ctx)

    for name in ROOT_FILES:
        fp = plan.workspace_dir / name
        if fp.exists():
            shutil.copy2(fp, ctx / name)
            staged.root_files.append(name)

    if MANIFEST_FILE not in staged.root_files:
        raise StageError(f"{MANIFEST_FILE} not found in {plan.workspace_dir}")

    staged.sources = stage_sources(plan, ctx)
    staged.frontend = stage_frontend(plan, ctx)
    return staged
