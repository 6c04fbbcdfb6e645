"""
Exception classes for the versioning module.
"""

from typing import Optional


class VersioningError(Exception):
    """Base exception for all versioning-related errors."""

    pass


class VersionFormatError(VersioningError):
    """Raised when a version string has an invalid format."""

    def __init__(self, version_string: str, expected_format: str = "x.y.z or x.y"):
        self.version_string = version_string
        self.expected_format = expected_format
        super().__init__(
            f"Invalid version format: '{version_string}'. "
            f"Expected format: {expected_format}"
        )


class ManifestParseError(VersioningError):
    """Raised when a unit manifest cannot be read or is malformed."""

    def __init__(self, manifest_path, message: str):
        self.manifest_path = str(manifest_path)
        self.message = message
        super().__init__(f"{self.manifest_path}: {message}")


class ManifestWriteError(VersioningError):
    """Raised when an updated manifest cannot be persisted."""

    def __init__(self, manifest_path, original_error: Optional[Exception] = None):
        self.manifest_path = str(manifest_path)
        self.original_error = original_error
        message = f"Failed to write manifest {self.manifest_path}"
        if original_error is not None:
            message += f": {original_error}"
        super().__init__(message)


class CounterWriteError(VersioningError):
    """Raised when the global counter file cannot be persisted."""

    def __init__(self, counter_path, original_error: Optional[Exception] = None):
        self.counter_path = str(counter_path)
        self.original_error = original_error
        message = f"Failed to write version counter {self.counter_path}"
        if original_error is not None:
            message += f": {original_error}"
        super().__init__(message)


class ReconciliationAborted(VersioningError):
    """
    Raised when a run stops before every unit reached a terminal state.

    Carries the partial run summary and the counter value that was last
    committed to disk, so callers can still report what happened.
    """

    def __init__(self, unit_id: str, reason: str, summary=None, counter=None):
        self.unit_id = unit_id
        self.reason = reason
        self.summary = summary
        self.counter = counter
        super().__init__(f"Run aborted at unit '{unit_id}': {reason}")
