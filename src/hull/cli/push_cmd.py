"""
hull.cli.push_cmd — hull push-ui command.

  hull push-ui api dist/api --tag 1.2.0
  hull push-ui api dist/api --registry oci://ghcr.io/myorg/ui
"""

import sys
import tempfile
import click

from hull.settings import load_settings, ConfigError


def registry_for(workspace_dir, registry) -> str:
    """--registry, else the assets_registry setting."""
    if registry:
        return registry
    settings = load_settings(workspace_dir or ".")
    if not settings.assets_registry:
        raise ConfigError(
            "No registry given and assets_registry is not set "
            "(hull.yaml, ~/.hull/config.yaml or HULL_ASSETS_REGISTRY)"
        )
    return settings.assets_registry


@click.command("push-ui")
@click.argument("package")
@click.argument("asset_dir", type=click.Path(exists=True, file_okay=False))
@click.option("--tag", "-t", default="latest", help="Version tag")
@click.option("--registry", "-r", default=None, help="Registry URL override")
@click.option("-C", "--dir", "workspace_dir", default=None,
              help="Workspace directory (default: pwd)")
def push_ui_cmd(package, asset_dir, tag, registry, workspace_dir):
    """Push exported frontend assets to an OCI registry."""
    from hull.oci import pack_bundle, open_store, OCIError

    try:
        store = open_store(registry_for(workspace_dir, registry))
        with tempfile.TemporaryDirectory(prefix="hull-bundle-") as workdir:
            bundle = pack_bundle(asset_dir, package, tag, workdir)
            click.echo(
                f"Packed {bundle.reference}: {len(bundle.files)} files, "
                f"{bundle.digest[:19]}",
                err=True,
            )
            ref = store.push(bundle)
    except (ConfigError, OCIError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Pushed {ref}")
