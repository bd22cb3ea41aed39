"""
hull.cli — CLI entry point.

Commands:
  hull resolve <package>          — Show the workspace closure
  hull dockerfile <package>       — Render the build Dockerfile
  hull build <package>            — Build the runtime image
  hull build-ui <package>         — Build & export frontend assets
  hull push-ui / pull-ui          — Asset bundles as OCI artifacts
  hull config                     — Show effective build settings
"""

import logging

import click

from hull.cli.resolve_cmd import resolve_cmd
from hull.cli.dockerfile_cmd import dockerfile_cmd
from hull.cli.build_cmd import build_cmd, build_ui_cmd
from hull.cli.push_cmd import push_ui_cmd
from hull.cli.pull_cmd import pull_ui_cmd
from hull.cli.config_cmd import config_cmd


@click.group()
@click.version_option(package_name="hull")
@click.option("-v", "--verbose", is_flag=True, default=False,
              help="Debug logging to stderr")
def main(verbose):
    """hull — Container images for uv workspace packages."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


main.add_command(resolve_cmd, "resolve")
main.add_command(dockerfile_cmd, "dockerfile")
main.add_command(build_cmd, "build")
main.add_command(build_ui_cmd, "build-ui")
main.add_command(push_ui_cmd, "push-ui")
main.add_command(pull_ui_cmd, "pull-ui")
main.add_command(config_cmd, "config")
