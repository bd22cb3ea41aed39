"""
hull — Container images for single packages of a uv workspace.

Resolves a package's workspace closure from uv.lock, stages only
those sources, and builds a minimal runtime image with BuildKit,
optionally bundling the package's web frontend.
"""

from hull.settings import Settings, load_settings, ConfigError
from hull.workspace import (
    Lockfile, LockEntry, PackageSource, LockError, parse_lock,
    Closure, BuildPlan, WorkspaceError, resolve_closure, resolve_workspace,
    StagedContext, StageError, stage_context,
)
from hull.build import (
    BuildCommand, BuildEngine, BuildError, BuildResult,
    build, build_ui, render_plan, render_dockerfile,
)

__version__ = "0.1.0"

__all__ = [
    # settings
    "Settings",
    "load_settings",
    "ConfigError",
    # workspace
    "Lockfile",
    "LockEntry",
    "PackageSource",
    "LockError",
    "parse_lock",
    "Closure",
    "BuildPlan",
    "WorkspaceError",
    "resolve_closure",
    "resolve_workspace",
    "StagedContext",
    "StageError",
    "stage_context",
    # build
    "BuildCommand",
    "BuildEngine",
    "BuildError",
    "BuildResult",
    "build",
    "build_ui",
    "render_plan",
    "render_dockerfile",
]
