from .manifest import (
    UnitManifest,
    ManifestSchema,
    derive_tracked_paths,
    discover_manifests,
    load_manifest,
    load_manifests,
    save_manifest,
)

__all__ = [
    "UnitManifest",
    "ManifestSchema",
    "derive_tracked_paths",
    "discover_manifests",
    "load_manifest",
    "load_manifests",
    "save_manifest",
]
