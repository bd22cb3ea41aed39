"""hull.workspace — Lock parsing, closure resolution & staging."""

from hull.workspace.lock import (
    Lockfile, LockEntry, PackageSource, LockError,
    parse_lock, normalize_name, compute_checksum,
)
from hull.workspace.resolver import (
    Closure, BuildPlan, WorkspaceError,
    resolve_closure, resolve_workspace, check_entrypoint,
)
from hull.workspace.stage import (
    StagedContext, StageError, stage_context, stage_sources, stage_frontend,
)

__all__ = [
    "Lockfile", "LockEntry", "PackageSource", "LockError",
    "parse_lock", "normalize_name", "compute_checksum",
    "Closure", "BuildPlan", "WorkspaceError",
    "resolve_closure", "resolve_workspace", "check_entrypoint",
    "StagedContext", "StageError", "stage_context", "stage_sources",
    "stage_frontend",
]
