"""
hull.oci.bundle — Frontend asset bundles.

A bundle is the output of `hull build-ui` for one package, archived
as a reproducible tar.gz plus an index:

    {"package": "api", "version": "1.2.0",
     "digest": "sha256:...", "files": ["assets/app.js", "index.html"]}

The same directory always packs to the same digest; stores check the
digest again when a bundle is fetched.
"""

from __future__ import annotations

import gzip
import hashlib
import json
import tarfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


ARCHIVE_MEDIA_TYPE = "application/vnd.hull.assets.v1.tar+gzip"
INDEX_MEDIA_TYPE = "application/vnd.hull.assets.index.v1+json"

INDEX_FILE = "index.json"


class OCIError(Exception):
    """Asset bundle or store error."""
    pass


@dataclass
class AssetBundle:
    package: str
    version: str
    archive: Path
    digest: str
    files: list[str] = field(default_factory=list)

    @property
    def reference(self) -> str:
        return f"{self.package}:{self.version}"

    def index(self) -> dict[str, Any]:
        return {
            "package": self.package,
            "version": self.version,
            "digest": self.digest,
            "files": self.files,
        }

    def write_index(self, path: str | Path) -> Path:
        p = Path(path)
        p.write_text(json.dumps(self.index(), indent=2) + "\n")
        return p


def archive_name(package: str, version: str) -> str:
    return f"{package}-{version}.tar.gz"


def file_digest(path: str | Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return f"sha256:{h.hexdigest()}"


def pack_bundle(
    asset_dir: str | Path,
    package: str,
    version: str,
    workdir: str | Path,
) -> AssetBundle:
    """Archive `asset_dir` into `workdir`.

    Members are sorted with owner and mtime zeroed, and the gzip header
    carries no timestamp.
    """
    src = Path(asset_dir)
    if not src.is_dir():
        raise OCIError(f"Asset directory not found: {src}")

    files = sorted(
        fp.relative_to(src).as_posix() for fp in src.rglob("*") if fp.is_file()
    )
    archive = Path(workdir) / archive_name(package, version)

    with open(archive, "wb") as raw, \
            gzip.GzipFile(fileobj=raw, mode="wb", mtime=0) as gz, \
            tarfile.open(fileobj=gz, mode="w") as tar:
        for rel in files:
            info = tar.gettarinfo(str(src / rel), arcname=rel)
            info.mtime = 0
            info.uid = info.gid = 0
            info.uname = info.gname = ""
            with open(src / rel, "rb") as f:
                tar.addfile(info, f)

    return AssetBundle(
        package=package,
        version=version,
        archive=archive,
        digest=file_digest(archive),
        files=files,
    )


def load_bundle(archive: str | Path, index: dict[str, Any]) -> AssetBundle:
    """Rebuild a bundle from a fetched archive and its index.

    Raises OCIError when the archive does not match the indexed digest.
    """
    archive = Path(archive)
    try:
        package, version, digest = index["package"], index["version"], index["digest"]
    except (KeyError, TypeError) as e:
        raise OCIError(f"Malformed bundle index for {archive.name}") from e

    actual = file_digest(archive)
    if actual != digest:
        raise OCIError(
            f"Digest mismatch for {package}:{version}: "
            f"expected {digest}, got {actual}"
        )

    return AssetBundle(
        package=package,
        version=version,
        archive=archive,
        digest=digest,
        files=list(index.get("files", [])),
    )


def unpack_bundle(bundle: AssetBundle, dest_dir: str | Path) -> Path:
    """Extract a bundle; `dest_dir` must be empty or missing."""
    dest = Path(dest_dir)
    if dest.exists() and (not dest.is_dir() or any(dest.iterdir())):
        raise OCIError(f"Output path is not an empty directory: {dest}")
    dest.mkdir(parents=True, exist_ok=True)

    with tarfile.open(bundle.archive, "r:gz") as tar:
        tar.extractall(dest, filter="data")
    return dest
