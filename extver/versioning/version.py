"""
Version utility module for version string operations.

This module provides utilities for working with the flat MAJOR.MINOR.PATCH
scheme used by extension manifests, using the standard packaging.version
library for ordering.
"""

from typing import Optional
import re
from packaging.version import Version as PackagingVersion, InvalidVersion

from .exceptions import VersionFormatError

VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)(?:\.(\d+))?$")


class Version:
    """
    A release version representation using packaging.version.

    Version format: x.y.z or x.y (where x, y, z are non-negative integers).
    The patch component is optional in manifests; it is owned by the
    reconciler, while major and minor are set by operators.
    """

    def __init__(self, version_string: str):
        """
        Initialize a Version from a string.

        Args:
            version_string: Version string in format "x.y.z" or "x.y"

        Raises:
            VersionFormatError: If version string is invalid
        """
        if isinstance(version_string, bool) or not isinstance(
            version_string, (str, int, float)
        ):
            raise VersionFormatError(repr(version_string))

        self._original_string = str(version_string).strip()

        if not VERSION_PATTERN.match(self._original_string):
            raise VersionFormatError(self._original_string)

        try:
            self._version = PackagingVersion(self._original_string)
        except InvalidVersion as e:
            raise VersionFormatError(self._original_string) from e

    @classmethod
    def from_parts(cls, major: int, minor: int, patch: Optional[int] = None):
        """Build a Version from integer components."""
        if patch is None:
            return cls(f"{major}.{minor}")
        return cls(f"{major}.{minor}.{patch}")

    @property
    def major(self) -> int:
        """Major version component."""
        return self._version.major

    @property
    def minor(self) -> int:
        """Minor version component."""
        return self._version.minor

    @property
    def patch(self) -> Optional[int]:
        """Patch version component (None if not specified in original string)."""
        if self._original_string.count(".") >= 2:
            return self._version.micro
        return None

    @property
    def patch_or_zero(self) -> int:
        """Patch component with a missing patch counted as 0."""
        return self.patch if self.patch is not None else 0

    def same_series(self, other: "Version") -> bool:
        """True when both versions share major and minor."""
        return (self.major, self.minor) == (other.major, other.minor)

    def with_patch(self, patch: int) -> "Version":
        """Return a new Version with the same major/minor and the given patch."""
        if patch < 0:
            raise ValueError(f"Patch must be non-negative, got {patch}")
        return Version.from_parts(self.major, self.minor, patch)

    def __str__(self) -> str:
        """Return the string representation of the version."""
        if self.patch is None:
            return f"{self.major}.{self.minor}"
        return f"{self.major}.{self.minor}.{self.patch}"

    def __repr__(self) -> str:
        """Return the debug representation of the version."""
        return f"Version('{str(self)}')"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Version):
            return False
        # 1.2 != 1.2.0 on purpose: the manifest text differs
        return (self.major, self.minor, self.patch) == (
            other.major,
            other.minor,
            other.patch,
        )

    def __lt__(self, other) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._version < other._version

    def __le__(self, other) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._version <= other._version

    def __gt__(self, other) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._version > other._version

    def __ge__(self, other) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._version >= other._version

    def __hash__(self) -> int:
        return hash((self.major, self.minor, self.patch))
