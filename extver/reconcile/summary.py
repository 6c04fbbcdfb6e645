"""Per-unit outcomes and the run summary reported to the pipeline."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class UnitStatus(str, Enum):
    """Unit state machine: pending, then exactly one terminal state."""

    PENDING = "pending"
    SKIPPED = "skipped"
    UPDATED = "updated"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self is not UnitStatus.PENDING


@dataclass
class UnitOutcome:
    unit_id: str
    manifest: str
    old_version: str
    new_version: Optional[str] = None
    status: UnitStatus = UnitStatus.PENDING
    notes: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def finish(self, status: UnitStatus, note: Optional[str] = None) -> None:
        """Move to a terminal state. A unit never leaves its terminal state."""
        if self.status.terminal:
            raise RuntimeError(
                f"Unit '{self.unit_id}' is already {self.status.value}, "
                f"cannot become {status.value}"
            )
        if not status.terminal:
            raise ValueError("A unit can only finish in a terminal state")
        self.status = status
        if note:
            self.notes.append(note)

    @property
    def note(self) -> str:
        return "; ".join(self.notes + self.warnings)

    def line(self) -> str:
        if self.status is UnitStatus.UPDATED:
            versions = f"{self.old_version} -> {self.new_version}"
        else:
            versions = self.old_version
        text = f"{self.unit_id}: {versions} [{self.status.value}]"
        if self.note:
            text += f" {self.note}"
        return text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.unit_id,
            "manifest": self.manifest,
            "oldVersion": self.old_version,
            "newVersion": self.new_version,
            "outcome": self.status.value,
            "notes": list(self.notes),
            "warnings": list(self.warnings),
        }


@dataclass
class RunSummary:
    counter_start: int
    counter_end: Optional[int] = None
    dry_run: bool = False
    outcomes: List[UnitOutcome] = field(default_factory=list)

    def add(self, outcome: UnitOutcome) -> UnitOutcome:
        self.outcomes.append(outcome)
        return outcome

    def with_status(self, status: UnitStatus) -> List[UnitOutcome]:
        return [o for o in self.outcomes if o.status is status]

    @property
    def updated(self) -> List[UnitOutcome]:
        return self.with_status(UnitStatus.UPDATED)

    @property
    def skipped(self) -> List[UnitOutcome]:
        return self.with_status(UnitStatus.SKIPPED)

    @property
    def failed(self) -> List[UnitOutcome]:
        return self.with_status(UnitStatus.FAILED)

    @property
    def warning_count(self) -> int:
        return sum(1 for o in self.outcomes if o.warnings)

    def counts(self) -> Dict[str, int]:
        return {
            "updated": len(self.updated),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
            "warnings": self.warning_count,
            "total": len(self.outcomes),
        }

    def aggregate_line(self) -> str:
        counts = self.counts()
        line = (
            f"{counts['total']} unit(s): {counts['updated']} updated, "
            f"{counts['skipped']} skipped, {counts['failed']} failed, "
            f"{counts['warnings']} with warnings"
        )
        if self.dry_run:
            line += " (dry run, nothing written)"
        return line

    def lines(self) -> List[str]:
        """One line per unit followed by the aggregate count."""
        return [o.line() for o in self.outcomes] + [self.aggregate_line()]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "counterStart": self.counter_start,
            "counterEnd": self.counter_end,
            "dryRun": self.dry_run,
            "counts": self.counts(),
            "units": [o.to_dict() for o in self.outcomes],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2) + "\n"
