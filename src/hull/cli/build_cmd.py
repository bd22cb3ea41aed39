"""
hull.cli.build_cmd — hull build / hull build-ui commands.

  hull build api
  hull build api -t ghcr.io/myorg/api:1.2.0 --push
  hull build api --validate-entrypoint --set base_image=python:3.13-slim
  hull build-ui api -o dist/api
"""

import sys
import click

from hull.settings import load_settings, ConfigError
from hull.workspace.resolver import WorkspaceError
from hull.workspace.stage import StageError
from hull.build.engine import BuildError

_TAIL_LINES = 30


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    output = getattr(e, "output", "")
    if output:
        tail = output.rstrip().splitlines()[-_TAIL_LINES:]
        click.echo("\n".join(tail), err=True)
    sys.exit(1)


@click.command("build")
@click.argument("package")
@click.option("-C", "--dir", "workspace_dir", default=None,
              help="Workspace directory (default: pwd)")
@click.option("-t", "--tag", default=None,
              help="Image tag (default: <package>:latest)")
@click.option("--push", is_flag=True, default=False,
              help="Push the image instead of loading it locally")
@click.option("--strict", is_flag=True, default=False,
              help="Fail if the package is not in the lock")
@click.option("--validate-entrypoint", is_flag=True, default=False,
              help="Check <module>/__main__.py exists before building")
@click.option("--keep-context", is_flag=True, default=False,
              help="Keep the staged build context")
@click.option("--set", "set_args", multiple=True,
              help="Setting override (key=value)")
def build_cmd(package, workspace_dir, tag, push, strict,
              validate_entrypoint, keep_context, set_args):
    """Build the runtime image of a workspace package."""
    from hull.build.pipeline import build

    try:
        settings = load_settings(workspace_dir or ".", list(set_args))
        if validate_entrypoint:
            settings.validate_entrypoint = True

        click.echo(f"Building {package}...", err=True)
        result = build(
            workspace_dir, package,
            tag=tag,
            settings=settings,
            push=push,
            strict=strict,
            keep_context=keep_context,
        )
    except (ConfigError, WorkspaceError, StageError, BuildError) as e:
        _fail(e)

    if not result.closure:
        click.echo(f"Warning: '{package}' not found in lock.", err=True)
    else:
        click.echo(f"Closure: {', '.join(result.closure)}", err=True)
    if result.has_frontend:
        click.echo("Frontend: bundled", err=True)
    if result.context_dir:
        click.echo(f"Context kept: {result.context_dir}", err=True)

    verb = "Pushed" if result.pushed else "Built"
    click.echo(f"✓ {verb} {result.image}", err=True)


@click.command("build-ui")
@click.argument("package")
@click.option("-C", "--dir", "workspace_dir", default=None,
              help="Workspace directory (default: pwd)")
@click.option("-o", "--output", default=None,
              help="Output directory (default: dist/<package>)")
@click.option("--clean", is_flag=True, default=False,
              help="Empty the output directory first")
@click.option("--set", "set_args", multiple=True,
              help="Setting override (key=value)")
def build_ui_cmd(package, workspace_dir, output, clean, set_args):
    """Build a package's frontend and export the static assets."""
    from hull.build.pipeline import build_ui

    output = output or f"dist/{package}"

    try:
        settings = load_settings(workspace_dir or ".", list(set_args))
        out = build_ui(
            workspace_dir, package, output,
            settings=settings,
            clean=clean,
        )
    except (ConfigError, WorkspaceError, StageError, BuildError) as e:
        _fail(e)

    if not any(out.iterdir()):
        click.echo(f"No frontend for '{package}'; empty directory.", err=True)
    click.echo(f"✓ Assets exported to {out}", err=True)
