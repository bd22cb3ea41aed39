"""
hull.cli.dockerfile_cmd — hull dockerfile command.

Renders the Dockerfile `hull build` would use, without building.

  hull dockerfile api
  hull dockerfile api -o Dockerfile.api --set base_image=python:3.13-slim
"""

import sys
import click

from hull.settings import load_settings, ConfigError
from hull.workspace.resolver import WorkspaceError
from hull.build.pipeline import render_plan


@click.command("dockerfile")
@click.argument("package")
@click.option("-C", "--dir", "workspace_dir", default=None,
              help="Workspace directory (default: pwd)")
@click.option("-o", "--output", default=None,
              help="Write to file instead of stdout")
@click.option("--set", "set_args", multiple=True,
              help="Setting override (key=value)")
def dockerfile_cmd(package, workspace_dir, output, set_args):
    """Render the build Dockerfile for a package."""
    try:
        settings = load_settings(workspace_dir or ".", list(set_args))
        text = render_plan(workspace_dir, package, settings)
    except (ConfigError, WorkspaceError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output:
        with open(output, "w") as f:
            f.write(text)
        click.echo(f"Written to {output}", err=True)
    else:
        click.echo(text, nl=False)
