"""Unit manifest model: loading, validation, tracked paths and persistence."""

import copy
import json
import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from extver.utils import write_text_atomic
from extver.versioning.exceptions import (
    ManifestParseError,
    ManifestWriteError,
    VersionFormatError,
)
from extver.versioning.version import Version

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST_PATTERN = "azure-devops-extension-*.json"
DEFAULT_UNITS_ROOT = "apps"
BUILD_OUTPUT_DIR = "dist"

LAST_VERSION_COMMIT = "lastVersionCommit"
LAST_VERSION_UPDATE = "lastVersionUpdate"

_NUMBER = re.compile(r"[0-9]+")


class FileEntry(BaseModel):
    """One entry of the manifest ``files`` list."""

    model_config = ConfigDict(extra="allow")

    path: Optional[str] = Field(None, description="Path of a packaged file or dir")
    addressable: Optional[bool] = Field(None, description="Served by the host")


class ManifestMetadata(BaseModel):
    """Bookkeeping written by the reconciler."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    last_version_commit: Optional[str] = Field(None, alias=LAST_VERSION_COMMIT)
    last_version_update: Optional[str] = Field(None, alias=LAST_VERSION_UPDATE)


class ManifestSchema(BaseModel):
    """Fields of a manifest that the reconciler reads. Other keys are kept."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Unique unit identifier")
    version: str = Field(..., description="MAJOR.MINOR[.PATCH]")
    files: List[FileEntry] = Field(default_factory=list)
    metadata: Optional[ManifestMetadata] = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Manifest id must be a non-empty string")
        return v

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        parts = v.strip().split(".")
        if len(parts) < 2:
            raise ValueError(
                f"Invalid version format: '{v}'. Expected MAJOR.MINOR format "
                "(PATCH is generated automatically)."
            )
        return v.strip()


@dataclass
class UnitManifest:
    """In-memory view of one unit manifest."""

    path: Path
    id: str
    version: Version
    tracked_paths: List[str]
    last_version_commit: Optional[str] = None
    last_version_update: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def name(self) -> str:
        return self.data.get("name") or self.id

    def with_update(
        self, version: Version, commit: Optional[str], timestamp: str
    ) -> "UnitManifest":
        """Return a copy carrying a new version and refreshed metadata."""
        return replace(
            self,
            version=version,
            last_version_commit=commit,
            last_version_update=timestamp,
            data=copy.deepcopy(self.data),
        )

    def to_data(self) -> Dict[str, Any]:
        """Manifest document with version and metadata applied.

        Key order of the original document is kept; metadata keys that did
        not exist yet are appended.
        """
        data = copy.deepcopy(self.data)
        data["version"] = str(self.version)

        metadata = data.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        if self.last_version_commit is None:
            metadata.pop(LAST_VERSION_COMMIT, None)
        else:
            metadata[LAST_VERSION_COMMIT] = self.last_version_commit
        if self.last_version_update is not None:
            metadata[LAST_VERSION_UPDATE] = self.last_version_update
        data["metadata"] = metadata
        return data


def _normalize_entry(entry_path: str) -> str:
    """Strip leading ``./`` and trailing slashes and use forward slashes."""
    normalized = entry_path.replace("\\", "/").strip()
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.rstrip("/")


def derive_tracked_paths(
    files: List[FileEntry],
    manifest_rel_path: str,
    units_root: str = DEFAULT_UNITS_ROOT,
) -> List[str]:
    """
    Derive the source paths whose commits count toward a unit.

    Entries inside a unit directory collapse to ``<units_root>/<unit>/`` since
    build output is not versioned. Other entries, including files directly
    under ``units_root``, are tracked literally, with a
    trailing build output directory mapped back to its source directory. The
    manifest itself is always tracked.

    Args:
        files: The manifest ``files`` entries
        manifest_rel_path: Manifest path relative to the repository root
        units_root: Directory holding one subdirectory per unit

    Returns:
        Sorted, de-duplicated list of paths; only the manifest path when no
        file entry yields a path
    """
    root = _normalize_entry(units_root) if units_root else ""
    tracked = set()

    for entry in files:
        if not entry.path:
            continue
        normalized = _normalize_entry(entry.path)
        if not normalized:
            continue

        parts = PurePosixPath(normalized).parts
        if root and len(parts) >= 3 and parts[0] == root:
            tracked.add(f"{root}/{parts[1]}/")
        elif len(parts) >= 2 and parts[-1] == BUILD_OUTPUT_DIR:
            tracked.add(str(PurePosixPath(*parts[:-1])) + "/")
        else:
            tracked.add(normalized)

    tracked.add(manifest_rel_path)
    return sorted(tracked)


def _relative_to_root(path: Path, repo_root: Path) -> str:
    try:
        return path.resolve().relative_to(repo_root.resolve()).as_posix()
    except ValueError:
        return path.name


def load_manifest(
    path: Path,
    repo_root: Optional[Path] = None,
    units_root: str = DEFAULT_UNITS_ROOT,
    require_files: bool = True,
) -> UnitManifest:
    """
    Load and validate a unit manifest.

    Args:
        path: Manifest file path
        repo_root: Repository root used to compute tracked paths
            (defaults to the manifest's directory)
        units_root: Directory holding one subdirectory per unit
        require_files: Reject manifests whose files list yields no path

    Returns:
        The parsed UnitManifest

    Raises:
        ManifestParseError: If the file is unreadable, not JSON, fails
            validation, has an unparsable version or no tracked files
    """
    path = Path(path)
    if repo_root is None:
        repo_root = path.parent

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestParseError(path, f"Could not read manifest: {e}") from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ManifestParseError(
            path, f"Invalid JSON at line {e.lineno}, column {e.colno}: {e.msg}"
        ) from e

    if not isinstance(data, dict):
        raise ManifestParseError(path, "Manifest must be a JSON object")

    try:
        schema = ManifestSchema.model_validate(data)
    except ValidationError as e:
        error = e.errors()[0]
        loc = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", str(e))
        if loc:
            message = f"{loc}: {message}"
        raise ManifestParseError(path, message) from e

    version = _parse_manifest_version(path, schema.version)

    tracked_paths = derive_tracked_paths(
        schema.files, _relative_to_root(path, repo_root), units_root
    )
    if require_files and len(tracked_paths) < 2:
        raise ManifestParseError(
            path,
            f"No tracked paths derivable for unit '{schema.id}': "
            "the manifest declares no file paths",
        )

    metadata = schema.metadata or ManifestMetadata()
    return UnitManifest(
        path=path,
        id=schema.id,
        version=version,
        tracked_paths=tracked_paths,
        last_version_commit=metadata.last_version_commit or None,
        last_version_update=metadata.last_version_update,
        data=data,
    )


def _parse_manifest_version(path: Path, raw: str) -> Version:
    """
    Parse a manifest version leniently on patch and strictly on major/minor.

    Patch belongs to the reconciler, so a non-numeric patch is dropped with a
    warning instead of failing the run.
    """
    parts = raw.split(".")
    major, minor = parts[0], parts[1]
    if not (_is_number(major) and _is_number(minor)):
        raise ManifestParseError(
            path,
            f"Invalid version numbers in: {raw}. Major and minor must be integers.",
        )

    patch = None
    if len(parts) > 2:
        if _is_number(parts[2]):
            patch = int(parts[2])
        else:
            logger.warning(
                f"{path}: ignoring non-numeric patch component '{parts[2]}' in {raw}"
            )

    try:
        return Version.from_parts(int(major), int(minor), patch)
    except VersionFormatError as e:
        raise ManifestParseError(path, str(e)) from e


def save_manifest(manifest: UnitManifest) -> None:
    """
    Write a manifest back with two-space indentation and a trailing newline.

    Raises:
        ManifestWriteError: If the file cannot be written
    """
    content = json.dumps(manifest.to_data(), indent=2, ensure_ascii=False) + "\n"
    try:
        write_text_atomic(manifest.path, content)
    except OSError as e:
        raise ManifestWriteError(manifest.path, e) from e
    logger.debug(f"Wrote manifest {manifest.path}")


def discover_manifests(
    root: Path, pattern: str = DEFAULT_MANIFEST_PATTERN
) -> List[Path]:
    """
    Find all manifests under ``root`` matching ``pattern``.

    Returns:
        Manifest paths sorted by file name, which fixes the processing order

    Raises:
        ManifestParseError: If no manifest matches
    """
    root = Path(root)
    manifests = sorted(
        (p for p in root.glob(pattern) if p.is_file()), key=lambda p: p.as_posix()
    )
    if not manifests:
        raise ManifestParseError(
            root, f"No extension manifest files found ({pattern})"
        )
    return manifests


def load_manifests(
    paths: List[Path],
    repo_root: Path,
    units_root: str = DEFAULT_UNITS_ROOT,
) -> List[UnitManifest]:
    """Load several manifests, rejecting duplicate unit ids."""
    manifests = []
    seen: Dict[str, Path] = {}
    for path in paths:
        manifest = load_manifest(path, repo_root=repo_root, units_root=units_root)
        if manifest.id in seen:
            raise ManifestParseError(
                path,
                f"Duplicate unit id '{manifest.id}' "
                f"(also declared in {seen[manifest.id]})",
            )
        seen[manifest.id] = path
        manifests.append(manifest)
    return manifests


def _is_number(part: str) -> bool:
    return _NUMBER.fullmatch(part) is not None
