"""
hull.cli.resolve_cmd — hull resolve command.

  hull resolve api
  hull resolve api -C ./monorepo --strict
"""

import sys
import click

from hull.workspace.lock import LockError, parse_lock, LOCK_FILE
from hull.workspace.resolver import resolve_closure


@click.command("resolve")
@click.argument("package")
@click.option("-C", "--dir", "workspace_dir", default=None,
              help="Workspace directory (default: pwd)")
@click.option("--strict", is_flag=True, default=False,
              help="Fail if the package is not in the lock")
def resolve_cmd(package, workspace_dir, strict):
    """Show the workspace dependency closure of a package."""
    from pathlib import Path

    ws = Path(workspace_dir or ".").resolve()

    try:
        lock = parse_lock(ws / LOCK_FILE)
    except LockError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    closure = resolve_closure(lock, package)

    if not closure:
        msg = f"Package '{package}' not found in {LOCK_FILE}."
        if strict:
            click.echo(f"Error: {msg}", err=True)
            sys.exit(1)
        click.echo(f"Warning: {msg} Closure is empty.", err=True)
        return

    click.echo(f"Package:    {closure.target}")
    click.echo(f"Members:    {len(lock.members)}")

    click.echo(f"\nClosure:")
    for entry in closure.entries:
        kind = entry.source.kind if entry.source else "unknown"
        click.echo(f"  {entry.name:30s} [{kind}]")

    click.echo(f"\nSources:")
    if not closure.source_mapping:
        click.echo("  (none)")
    for name, rel in sorted(closure.source_mapping.items()):
        click.echo(f"  {name:30s} {rel}")
