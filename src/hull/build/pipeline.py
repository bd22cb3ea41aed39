"""
hull.build.pipeline — build / build-ui operations.

    plan = resolve_workspace(root, package)      # Workspace Resolver
    staged = stage_context(plan, ctx)            # Source Stager (host side)
    Dockerfile = render_dockerfile(plan)         # Assembler, Frontend, Finalizer
    engine.run(BuildCommand(target="runtime"))   # BuildKit runs the DAG

Every failure propagates; nothing is retried.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from hull.build.dockerfile import (
    render_dockerfile, STAGE_RUNTIME, STAGE_UI_EXPORT,
)
from hull.build.engine import BuildCommand, BuildEngine, BuildError
from hull.settings import Settings
from hull.workspace.resolver import BuildPlan, resolve_workspace
from hull.workspace.stage import StagedContext, stage_context, stage_frontend

logger = logging.getLogger(__name__)

DOCKERFILE = "Dockerfile"


@dataclass
class BuildResult:
    """Outcome of a successful build."""
    package: str
    image: str
    closure: list[str] = field(default_factory=list)
    has_frontend: bool = False
    pushed: bool = False
    context_dir: Path | None = None    # set when the context was kept


def default_tag(package: str) -> str:
    return f"{package}:latest"


def prepare_context(plan: BuildPlan, context_dir: str | Path) -> StagedContext:
    """Stage sources and write the Dockerfile into `context_dir`."""
    staged = stage_context(plan, context_dir)
    (staged.context_dir / DOCKERFILE).write_text(render_dockerfile(plan))
    return staged


def render_plan(
    workspace_dir: str | Path | None,
    package: str,
    settings: Settings | None = None,
) -> str:
    """Dockerfile text for `package`, without building."""
    plan = resolve_workspace(workspace_dir, package, settings)
    return render_dockerfile(plan)


def build(
    workspace_dir: str | Path | None,
    package: str,
    tag: str | None = None,
    settings: Settings | None = None,
    engine: BuildEngine | None = None,
    push: bool = False,
    strict: bool = False,
    keep_context: bool = False,
) -> BuildResult:
    """Build the runtime image for `package`.

    Raises:
        WorkspaceError, StageError: before anything is built
        BuildError: dependency install, frontend build or image
            assembly failed; no image is tagged
    """
    plan = resolve_workspace(workspace_dir, package, settings, strict=strict)
    if not plan.closure:
        logger.warning("Package '%s' not found in lock; closure is empty", plan.package)

    engine = engine or BuildEngine()
    image = tag or default_tag(plan.package)
    ctx = Path(tempfile.mkdtemp(prefix=f"hull-{plan.package}-"))

    try:
        staged = prepare_context(plan, ctx)
        logger.info(
            "Staged %d workspace package(s) for %s in %s",
            len(staged.sources), plan.package, ctx,
        )
        engine.run(BuildCommand(
            context_dir=ctx,
            dockerfile=ctx / DOCKERFILE,
            target=STAGE_RUNTIME,
            tags=[image],
            push=push,
            load=not push,
        ))
    finally:
        if not keep_context:
            shutil.rmtree(ctx, ignore_errors=True)

    return BuildResult(
        package=plan.package,
        image=image,
        closure=plan.closure.names,
        has_frontend=plan.has_frontend,
        pushed=push,
        context_dir=ctx if keep_context else None,
    )


def build_ui(
    workspace_dir: str | Path | None,
    package: str,
    output: str | Path,
    settings: Settings | None = None,
    engine: BuildEngine | None = None,
    clean: bool = False,
) -> Path:
    """Build and export the static assets of `package` into `output`.

    A package without a frontend yields an empty directory.
    """
    plan = resolve_workspace(workspace_dir, package, settings)
    out = Path(output).resolve()

    if out.exists() and not out.is_dir():
        raise BuildError(f"Output path is not a directory: {out}")
    if out.exists() and any(out.iterdir()):
        if not clean:
            raise BuildError(f"Output directory is not empty: {out}")
        shutil.rmtree(out)

    if not plan.has_frontend:
        logger.info("No frontend for %s; exporting an empty directory", plan.package)
        out.mkdir(parents=True, exist_ok=True)
        return out

    engine = engine or BuildEngine()
    ctx = Path(tempfile.mkdtemp(prefix=f"hull-{plan.package}-ui-"))
    try:
        # ui-export only depends on the frontend stage
        stage_frontend(plan, ctx)
        (ctx / DOCKERFILE).write_text(render_dockerfile(plan))
        engine.run(BuildCommand(
            context_dir=ctx,
            dockerfile=ctx / DOCKERFILE,
            target=STAGE_UI_EXPORT,
            output=f"type=local,dest={out}",
        ))
    finally:
        shutil.rmtree(ctx, ignore_errors=True)

    return out
