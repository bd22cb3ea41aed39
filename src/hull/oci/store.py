"""
hull.oci.store — Where asset bundles are kept.

  oci://local               → ~/.hull/registry/local
  oci:///srv/bundles        → /srv/bundles
  file:///srv/bundles       → /srv/bundles
  oci://ghcr.io/acme/ui     → remote registry (oras-py)

A local store lays bundles out as

    <root>/<package>/<version>/<package>-<version>.tar.gz
    <root>/<package>/<version>/index.json

A remote store pushes the same two files as the layers of one OCI
artifact, tagged <base>/<package>:<version>. Credentials come from
~/.docker/config.json (`docker login`), read by oras-py.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from contextlib import contextmanager
from pathlib import Path

from hull.oci.bundle import (
    ARCHIVE_MEDIA_TYPE, INDEX_FILE, INDEX_MEDIA_TYPE,
    AssetBundle, OCIError, archive_name, load_bundle,
)

logger = logging.getLogger(__name__)


class LocalStore:
    """Bundle store on the filesystem."""

    def __init__(self, root: str | Path, url: str | None = None):
        self.root = Path(root)
        self.url = url or f"file://{self.root}"

    def _slot(self, package: str, version: str) -> Path:
        return self.root / package / version

    def push(self, bundle: AssetBundle) -> str:
        slot = self._slot(bundle.package, bundle.version)
        if slot.exists():
            shutil.rmtree(slot)
        slot.mkdir(parents=True)

        shutil.copy2(bundle.archive, slot / bundle.archive.name)
        bundle.write_index(slot / INDEX_FILE)
        logger.debug("Stored %s in %s", bundle.reference, slot)
        return f"{self.url.rstrip('/')}/{bundle.reference}"

    def pull(self, package: str, version: str, workdir: str | Path) -> AssetBundle:
        slot = self._slot(package, version)
        index_file = slot / INDEX_FILE
        if not index_file.exists():
            raise OCIError(f"Assets not found: {package}:{version} in {self.url}")

        with open(index_file) as f:
            index = json.load(f)

        src = slot / archive_name(package, version)
        if not src.exists():
            raise OCIError(f"Bundle archive missing for {package}:{version}")
        dest = Path(workdir) / src.name
        shutil.copy2(src, dest)
        return load_bundle(dest, index)


class RemoteStore:
    """Bundle store in an OCI registry."""

    def __init__(self, base: str):
        self.base = base.rstrip("/")

    def target(self, package: str, version: str) -> str:
        return f"{self.base}/{package}:{version}"

    def push(self, bundle: AssetBundle) -> str:
        target = self.target(bundle.package, bundle.version)
        workdir = bundle.archive.parent
        bundle.write_index(workdir / INDEX_FILE)

        client = _oras_client()
        try:
            with _working_dir(workdir):
                response = client.push(
                    files=[
                        f"{bundle.archive.name}:{ARCHIVE_MEDIA_TYPE}",
                        f"{INDEX_FILE}:{INDEX_MEDIA_TYPE}",
                    ],
                    target=target,
                    manifest_annotations={
                        "io.hull.assets.package": bundle.package,
                        "io.hull.assets.digest": bundle.digest,
                        "org.opencontainers.image.version": bundle.version,
                    },
                    disable_path_validation=True,
                )
        except Exception as e:
            raise OCIError(f"Push to {target} failed: {e}") from e

        if response.status_code not in (200, 201):
            raise OCIError(
                f"Push to {target} failed with status {response.status_code}"
            )
        return f"oci://{target}"

    def pull(self, package: str, version: str, workdir: str | Path) -> AssetBundle:
        target = self.target(package, version)
        client = _oras_client()
        try:
            files = client.pull(target=target, outdir=str(workdir))
        except Exception as e:
            raise OCIError(f"Pull {target} failed: {e}") from e

        fetched = {Path(f).name: Path(f) for f in files or []}
        name = archive_name(package, version)
        if name not in fetched or INDEX_FILE not in fetched:
            raise OCIError(f"{target} is not a hull asset bundle")

        with open(fetched[INDEX_FILE]) as f:
            index = json.load(f)
        return load_bundle(fetched[name], index)


def open_store(url: str) -> LocalStore | RemoteStore:
    """Pick the store for a registry URL."""
    from hull.settings import HULL_HOME

    url = url.strip()
    if url.startswith("file://"):
        return LocalStore(url[len("file://"):], url)
    if url.startswith("oci://"):
        rest = url[len("oci://"):]
        if rest.startswith("/"):
            return LocalStore(rest, url)
        if rest == "local" or rest.startswith("local/"):
            return LocalStore(HULL_HOME / "registry" / rest, url)
        return RemoteStore(rest)
    raise OCIError(f"Unsupported registry URL: {url} (expected oci:// or file://)")


def _oras_client():
    import oras.client

    return oras.client.OrasClient()


@contextmanager
def _working_dir(path: Path):
    # oras-py resolves pushed file names against the cwd
    previous = os.getcwd()
    os.chdir(path)
    try:
        yield
    finally:
        os.chdir(previous)
