"""
Next-patch resolution from already resolved signals.

Each signal contributes a floor, the lowest patch it will accept. Floors are
kept in a fixed order (counter, local, registry) and the highest one wins;
on a tie the earlier floor is reported as dominant. No I/O happens here.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from extver.registry.client import NotPublished, Published, RegistryRecord, Unknown

from .counter import CounterState
from .version import Version

COUNTER_FLOOR = "counter"
LOCAL_FLOOR = "local"
REGISTRY_FLOOR = "registry"

REGISTRY_RAISE_WARNING = "patch raised to exceed registry version"
REGISTRY_SKIPPED_WARNING = (
    "registry version unknown, marketplace-floor protection skipped"
)


@dataclass(frozen=True)
class Floor:
    source: str
    minimum: int


@dataclass(frozen=True)
class PatchDecision:
    """The chosen patch and how it was reached."""

    patch: int
    floors: Tuple[Floor, ...]
    dominant: str
    warnings: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()

    @property
    def registry_applied(self) -> bool:
        return any(f.source == REGISTRY_FLOOR for f in self.floors)


def collect_floors(
    version: Version,
    counter: CounterState,
    record: Optional[RegistryRecord] = None,
) -> Tuple[List[Floor], List[str], List[str]]:
    """
    Build the ordered floor list for one unit.

    Args:
        version: Current manifest version
        counter: Global counter before this unit
        record: Registry answer, or None when no registry is configured

    Returns:
        (floors, warnings, notes)
    """
    floors = [
        Floor(COUNTER_FLOOR, counter.value),
        Floor(LOCAL_FLOOR, version.patch_or_zero + 1),
    ]
    warnings: List[str] = []
    notes: List[str] = []

    if isinstance(record, Published):
        if record.version.same_series(version):
            floors.append(Floor(REGISTRY_FLOOR, record.version.patch_or_zero + 1))
        else:
            notes.append(
                f"registry series {record.version.major}.{record.version.minor} "
                f"differs from {version.major}.{version.minor}, "
                "registry floor not applied"
            )
    elif isinstance(record, Unknown):
        warnings.append(f"{REGISTRY_SKIPPED_WARNING}: {record.reason}")
    elif isinstance(record, NotPublished):
        notes.append("not yet published")

    return floors, warnings, notes


def resolve_patch(
    version: Version,
    counter: CounterState,
    record: Optional[RegistryRecord] = None,
) -> PatchDecision:
    """
    Pick the next patch for a unit.

    The result exceeds the unit's own patch, is at least the counter, and
    exceeds a registry patch published in the same major/minor series.
    """
    floors, warnings, notes = collect_floors(version, counter, record)

    dominant = floors[0]
    for floor in floors[1:]:
        if floor.minimum > dominant.minimum:
            dominant = floor

    if dominant.source == REGISTRY_FLOOR:
        warnings.append(REGISTRY_RAISE_WARNING)

    return PatchDecision(
        patch=dominant.minimum,
        floors=tuple(floors),
        dominant=dominant.source,
        warnings=tuple(warnings),
        notes=tuple(notes),
    )
