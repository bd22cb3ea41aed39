"""
hull.build.dockerfile — Multi-stage Dockerfile rendering.

The build workflow is a small DAG; each node is one stage and
BuildKit runs independent stages concurrently:

    uv ──► deps ──► build ──┐
                            ├──► runtime
    ui ─────────────────────┘
    ui ──► ui-export

  deps      install the target's non-dev closure (no workspace code)
  build     add staged workspace sources, install them non-editable
  ui        frontend build, or an empty directory
  ui-export scratch image holding only the static assets
  runtime   minimal base + venv + static assets + entrypoint
"""

from __future__ import annotations

import json

from hull.workspace.lock import LOCK_FILE, MANIFEST_FILE, compute_checksum
from hull.workspace.resolver import BuildPlan
from hull.workspace.stage import EMPTY_DIR, ROOT_DIR


STAGE_UV = "uv"
STAGE_DEPS = "deps"
STAGE_BUILD = "build"
STAGE_UI = "ui"
STAGE_UI_EXPORT = "ui-export"
STAGE_RUNTIME = "runtime"

UV_CACHE_TARGET = "/root/.cache/uv"
PNPM_STORE_TARGET = "/pnpm/store"
UI_WORKDIR = "/ui"

UV_ENV = {
    "UV_COMPILE_BYTECODE": "1",
    "UV_LINK_MODE": "copy",
    "UV_PYTHON_DOWNLOADS": "never",
}


def _env_block(env: dict[str, str]) -> list[str]:
    items = [f"{k}={v}" for k, v in env.items()]
    lines = [f"ENV {items[0]}"]
    for item in items[1:]:
        lines[-1] += " \\"
        lines.append(f"    {item}")
    return lines


def _uv_sync(plan: BuildPlan, *flags: str) -> list[str]:
    s = plan.settings
    args = " ".join(["uv sync --frozen --no-dev", *flags, "--package", plan.package])
    return [
        f"RUN --mount=type=cache,id={s.uv_cache_id},target={UV_CACHE_TARGET} \\",
        f"    {args}",
    ]


def _member_paths(plan: BuildPlan) -> list[str]:
    """Editable closure paths, excluding the workspace root."""
    return [
        rel for _, rel in sorted(plan.source_mapping.items())
        if rel not in (".", "")
    ]


def ui_output_path(plan: BuildPlan) -> str:
    return f"{UI_WORKDIR}/{plan.settings.frontend_output.strip('/')}"


def assembler_stage(plan: BuildPlan) -> list[str]:
    """Base image + uv + lock, install third-party closure only."""
    s = plan.settings
    env = dict(UV_ENV)
    env["UV_PROJECT_ENVIRONMENT"] = f"{s.app_dir}/.venv"

    lines = [
        f"FROM {s.uv_image} AS {STAGE_UV}",
        "",
        f"FROM {s.base_image} AS {STAGE_DEPS}",
        f"COPY --from={STAGE_UV} /uv /uvx /bin/",
        *_env_block(env),
        f"WORKDIR {s.app_dir}",
        f"COPY {MANIFEST_FILE} {LOCK_FILE} ./",
    ]
    for rel in _member_paths(plan):
        lines.append(f"COPY {rel}/{MANIFEST_FILE} {rel}/{MANIFEST_FILE}")
    lines.extend(_uv_sync(plan, "--no-install-workspace"))
    return lines


def stager_stage(plan: BuildPlan) -> list[str]:
    """Copy staged sources at matching paths, install them."""
    lines = [f"FROM {STAGE_DEPS} AS {STAGE_BUILD}"]
    if "." in plan.source_mapping.values():
        lines.append(f"COPY {ROOT_DIR}/ ./")
    for rel in _member_paths(plan):
        lines.append(f"COPY {rel} {rel}")
    lines.extend(_uv_sync(plan, "--no-editable"))
    return lines


def frontend_stage(plan: BuildPlan) -> list[str]:
    """Frontend build, or an empty output directory."""
    s = plan.settings
    out = ui_output_path(plan)

    if plan.frontend_dir is None:
        return [
            f"FROM scratch AS {STAGE_UI}",
            f"COPY {EMPTY_DIR}/ {out}/",
        ]

    rel = plan.frontend_dir.relative_to(plan.workspace_dir).as_posix()
    return [
        f"FROM {s.frontend_image} AS {STAGE_UI}",
        *_env_block({"PNPM_HOME": "/pnpm", "PATH": "/pnpm:$PATH"}),
        "RUN corepack enable",
        f"WORKDIR {UI_WORKDIR}",
        f"COPY {rel}/ ./",
        f"RUN --mount=type=cache,id={s.pnpm_cache_id},target={PNPM_STORE_TARGET} \\",
        f"    pnpm install --frozen-lockfile --store-dir {PNPM_STORE_TARGET}",
        "RUN pnpm run build",
    ]


def export_stage(plan: BuildPlan) -> list[str]:
    return [
        f"FROM scratch AS {STAGE_UI_EXPORT}",
        f"COPY --from={STAGE_UI} {ui_output_path(plan)}/ /",
    ]


def finalizer_stage(plan: BuildPlan) -> list[str]:
    """Runtime image: venv + static assets + entrypoint."""
    s = plan.settings
    venv = f"{s.app_dir}/.venv"
    labels = {
        "org.opencontainers.image.title": plan.package,
        "io.hull.package": plan.package,
        "io.hull.closure": ",".join(plan.closure.names),
        "io.hull.lock.checksum": compute_checksum(plan.workspace_dir),
    }
    entrypoint = ["python", "-m", plan.module_name]

    lines = [
        f"FROM {s.base_image} AS {STAGE_RUNTIME}",
        f"WORKDIR {s.app_dir}",
        f"COPY --from={STAGE_BUILD} {venv} {venv}",
        f"COPY --from={STAGE_UI} {ui_output_path(plan)}/ {plan.static_path}/",
        *_env_block({"PATH": f"{venv}/bin:$PATH"}),
    ]
    for key, value in labels.items():
        lines.append(f"LABEL {key}={json.dumps(value)}")
    lines.append(f"ENTRYPOINT {json.dumps(entrypoint)}")
    return lines


def render_dockerfile(plan: BuildPlan) -> str:
    """Render the complete Dockerfile for a plan."""
    sections = [
        [
            "# syntax=docker/dockerfile:1.7",
            f"# Generated by hull for {plan.package}",
        ],
        assembler_stage(plan),
        stager_stage(plan),
        frontend_stage(plan),
        export_stage(plan),
        # Final stage last so a plain `docker build` targets it
        finalizer_stage(plan),
    ]
    return "\n\n".join("\n".join(s) for s in sections) + "\n"
