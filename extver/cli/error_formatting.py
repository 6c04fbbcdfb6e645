"""Error formatting for CLI output."""

from extver.versioning.exceptions import (
    ManifestParseError,
    ReconciliationAborted,
    VersioningError,
)


def pretty_print_error(error: VersioningError) -> str:
    """Format a versioning error so the user sees which unit or file failed.

    Example output:
        Invalid manifest
          --> /repo/azure-devops-extension-hub.json
          Error: version: Invalid version format: '1'. Expected MAJOR.MINOR format
    """
    if isinstance(error, ManifestParseError):
        return (
            "Invalid manifest\n"
            f"  --> {error.manifest_path}\n"
            f"  Error: {error.message}"
        )

    if isinstance(error, ReconciliationAborted):
        lines = [
            f"Run aborted at unit '{error.unit_id}'",
            f"  Reason: {error.reason}",
        ]
        if error.counter is not None:
            lines.append(f"  Counter left at: {error.counter.value}")
        return "\n".join(lines)

    return f"Error: {error}"
