"""hull.build — Dockerfile rendering & BuildKit execution."""

from hull.build.dockerfile import render_dockerfile
from hull.build.engine import BuildCommand, BuildEngine, BuildError
from hull.build.pipeline import BuildResult, build, build_ui, render_plan

__all__ = [
    "render_dockerfile",
    "BuildCommand", "BuildEngine", "BuildError",
    "BuildResult", "build", "build_ui", "render_plan",
]
