"""
hull.cli.pull_cmd — hull pull-ui command.

  hull pull-ui api:1.2.0 -o public/
  hull pull-ui api:1.2.0 -o public/ --registry oci://ghcr.io/myorg/ui
"""

import sys
import tempfile
import click

from hull.settings import ConfigError
from hull.cli.push_cmd import registry_for


@click.command("pull-ui")
@click.argument("reference")
@click.option("-o", "--output", required=True,
              help="Empty directory to extract the assets into")
@click.option("--registry", "-r", default=None, help="Registry URL override")
@click.option("-C", "--dir", "workspace_dir", default=None,
              help="Workspace directory (default: pwd)")
def pull_ui_cmd(reference, output, registry, workspace_dir):
    """Pull frontend assets (PACKAGE:VERSION) from an OCI registry."""
    from hull.oci import open_store, unpack_bundle, OCIError

    package, sep, version = reference.rpartition(":")
    if not sep or not package or not version:
        raise click.BadParameter(
            f"expected PACKAGE:VERSION, got '{reference}'", param_hint="REFERENCE",
        )

    try:
        store = open_store(registry_for(workspace_dir, registry))
        with tempfile.TemporaryDirectory(prefix="hull-bundle-") as workdir:
            bundle = store.pull(package, version, workdir)
            unpack_bundle(bundle, output)
    except (ConfigError, OCIError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ {bundle.reference} ({bundle.digest[:19]}) extracted to {output}")
