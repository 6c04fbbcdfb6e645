"""Registry lookup results and the client interface."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Optional, Protocol, Union

if TYPE_CHECKING:
    from extver.versioning.version import Version


@dataclass(frozen=True)
class Published:
    """The registry holds a published version of the unit."""

    version: "Version"

    def __str__(self) -> str:
        return f"published {self.version}"


@dataclass(frozen=True)
class NotPublished:
    """The registry confirms the unit was never published."""

    def __str__(self) -> str:
        return "not published"


@dataclass(frozen=True)
class Unknown:
    """The registry could not be queried or its answer could not be trusted."""

    reason: str = "registry lookup failed"

    def __str__(self) -> str:
        return f"unknown ({self.reason})"


RegistryRecord = Union[Published, NotPublished, Unknown]


class RegistryClient(Protocol):
    """Minimal interface of a registry of published unit versions."""

    def lookup(self, publisher_id: str, unit_id: str) -> RegistryRecord:
        """Return the currently published version of ``unit_id``. Never raises."""
        ...


class StaticRegistryClient:
    """
    Registry backed by an in-memory mapping of unit id to version string.

    Units missing from the mapping are reported as not published; a value of
    None reports the lookup as failed.
    """

    def __init__(self, versions: Optional[Mapping[str, Optional[str]]] = None):
        self.versions = dict(versions or {})
        self.calls = []

    def lookup(self, publisher_id: str, unit_id: str) -> RegistryRecord:
        self.calls.append((publisher_id, unit_id))
        if unit_id not in self.versions:
            return NotPublished()
        raw = self.versions[unit_id]
        if raw is None:
            return Unknown("no answer configured")

        # Import here to avoid circular dependency
        from extver.versioning.version import Version

        return Published(Version(raw))
