"""hull.cli.config_cmd — hull config command."""

import sys
import click
import yaml

from hull.settings import load_settings, ConfigError


@click.command("config")
@click.option("-C", "--dir", "workspace_dir", default=None,
              help="Workspace directory (default: pwd)")
@click.option("--set", "set_args", multiple=True,
              help="Setting override (key=value)")
def config_cmd(workspace_dir, set_args):
    """Show effective build settings."""
    try:
        settings = load_settings(workspace_dir or ".", list(set_args))
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(yaml.dump(settings.to_dict(), default_flow_style=False, sort_keys=False), nl=False)
