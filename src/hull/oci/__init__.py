"""hull.oci — Frontend asset bundles as OCI artifacts."""

from hull.oci.bundle import (
    AssetBundle, OCIError, pack_bundle, load_bundle, unpack_bundle,
)
from hull.oci.store import LocalStore, RemoteStore, open_store

__all__ = [
    "AssetBundle", "OCIError", "pack_bundle", "load_bundle", "unpack_bundle",
    "LocalStore", "RemoteStore", "open_store",
]
