"""
Version reconciliation across all units of a run.

Units are processed one at a time in a fixed order because each update
consumes and advances the shared counter. A unit is either skipped, updated
(manifest written, then counter written) or the whole run aborts; the counter
never runs ahead of what is on disk.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Protocol, Tuple

from extver.git.changes import ChangeRecord
from extver.model.manifest import UnitManifest, save_manifest
from extver.registry.client import RegistryClient, RegistryRecord
from extver.registry.tfx import TfxRegistryClient
from extver.versioning.counter import CounterState
from extver.versioning.exceptions import ReconciliationAborted, VersioningError
from extver.versioning.floors import PatchDecision, resolve_patch
from extver.versioning.version import Version

from .summary import RunSummary, UnitOutcome, UnitStatus

logger = logging.getLogger(__name__)


class ChangeDetector(Protocol):
    def head_revision(self) -> Optional[str]: ...

    def has_changes(
        self, tracked_paths: Iterable[str], since: Optional[str]
    ) -> ChangeRecord: ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with second precision, e.g. 2024-05-01T10:00:00Z."""
    moment = moment.astimezone(timezone.utc).replace(microsecond=0)
    return moment.isoformat().replace("+00:00", "Z")


class VersionReconciler:
    """
    Computes and persists the next version of every unit.

    Args:
        change_detector: Decides whether a unit changed since its baseline
        registry: Registry used for the registry floor; defaults to tfx when
            a publisher id is set
        publisher_id: Registry publisher; None disables the registry floor
        force_update: Treat every unit as changed
        manifest_writer: Persists an updated manifest
        counter_writer: Persists the counter after each updated unit
        clock: Source of the update timestamp
        dry_run: Compute everything, write nothing
    """

    def __init__(
        self,
        change_detector: ChangeDetector,
        registry: Optional[RegistryClient] = None,
        publisher_id: Optional[str] = None,
        force_update: bool = False,
        manifest_writer: Callable[[UnitManifest], None] = save_manifest,
        counter_writer: Optional[Callable[[CounterState], None]] = None,
        clock: Callable[[], datetime] = utc_now,
        dry_run: bool = False,
    ):
        self.change_detector = change_detector
        self.publisher_id = publisher_id or None
        if self.publisher_id and registry is None:
            registry = TfxRegistryClient()
        self.registry = registry
        self.force_update = force_update
        self.manifest_writer = manifest_writer
        self.counter_writer = counter_writer
        self.clock = clock
        self.dry_run = dry_run

    def _detect_changes(self, manifest: UnitManifest) -> ChangeRecord:
        if self.force_update:
            head = self.change_detector.head_revision()
            return ChangeRecord(True, head, "forced update")
        return self.change_detector.has_changes(
            manifest.tracked_paths, manifest.last_version_commit
        )

    def _lookup_registry(self, manifest: UnitManifest) -> Optional[RegistryRecord]:
        if not self.publisher_id or self.registry is None:
            return None
        record = self.registry.lookup(self.publisher_id, manifest.id)
        logger.info(f"  Registry: {record}")
        return record

    def decide(
        self, manifest: UnitManifest, counter: CounterState
    ) -> Tuple[PatchDecision, Optional[RegistryRecord]]:
        """Resolve the next patch of a unit that needs an update."""
        record = self._lookup_registry(manifest)
        return resolve_patch(manifest.version, counter, record), record

    def reconcile_unit(
        self, manifest: UnitManifest, counter: CounterState, summary: RunSummary
    ) -> CounterState:
        """
        Process one unit and return the counter that follows it.

        Raises:
            ReconciliationAborted: If the unit cannot be committed to disk
        """
        outcome = summary.add(
            UnitOutcome(
                unit_id=manifest.id,
                manifest=str(manifest.path),
                old_version=str(manifest.version),
            )
        )
        logger.info(f"\nProcessing {manifest.name} ({manifest.id})")
        logger.info(f"  Manifest: {manifest.path}")
        logger.info(f"  Tracked paths: {', '.join(manifest.tracked_paths)}")

        change = self._detect_changes(manifest)
        if not change.has_changes:
            logger.info(f"  Skipped: {change.reason}")
            outcome.finish(UnitStatus.SKIPPED, "no changes")
            return counter
        logger.info(f"  Changed: {change.reason}")

        decision, record = self.decide(manifest, counter)
        for warning in decision.warnings:
            logger.warning(f"  Warning ({manifest.id}): {warning}")
            outcome.warnings.append(warning)
        outcome.notes.extend(decision.notes)

        new_version = manifest.version.with_patch(decision.patch)
        self._check_invariants(
            manifest, new_version, record, outcome, summary, counter
        )

        updated = manifest.with_update(
            new_version, change.head_revision, format_timestamp(self.clock())
        )
        logger.info(f"  Version: {manifest.version} → {new_version}")
        logger.info(f"  - Major: {new_version.major} (from manifest)")
        logger.info(f"  - Minor: {new_version.minor} (from manifest)")
        logger.info(f"  - Patch: {decision.patch} ({decision.dominant} floor)")

        next_counter = counter.advance_past(decision.patch)
        if self.dry_run:
            outcome.new_version = str(new_version)
            outcome.finish(UnitStatus.UPDATED, "dry run")
            return next_counter

        try:
            self.manifest_writer(updated)
        except (VersioningError, OSError) as e:
            outcome.finish(UnitStatus.FAILED, f"manifest not written: {e}")
            summary.counter_end = counter.value
            raise ReconciliationAborted(
                manifest.id,
                f"could not persist version {new_version}, counter left at "
                f"{counter.value}: {e}",
                summary=summary,
                counter=counter,
            ) from e

        if self.counter_writer is not None:
            try:
                self.counter_writer(next_counter)
            except (VersioningError, OSError) as e:
                outcome.new_version = str(new_version)
                outcome.finish(
                    UnitStatus.FAILED,
                    f"manifest written but counter not persisted: {e}",
                )
                summary.counter_end = counter.value
                raise ReconciliationAborted(
                    manifest.id,
                    f"manifest updated to {new_version} but counter "
                    f"{next_counter.value} could not be persisted: {e}",
                    summary=summary,
                    counter=counter,
                ) from e

        outcome.new_version = str(new_version)
        outcome.finish(UnitStatus.UPDATED)
        logger.info("  ✓ Version updated successfully")
        return next_counter

    def _check_invariants(
        self,
        manifest: UnitManifest,
        new_version: Version,
        record: Optional[RegistryRecord],
        outcome: UnitOutcome,
        summary: RunSummary,
        counter: CounterState,
    ) -> None:
        problems = []
        if not new_version > manifest.version:
            problems.append(
                f"new version {new_version} is not greater than {manifest.version}"
            )
        if new_version.patch_or_zero < counter.value:
            problems.append(
                f"patch {new_version.patch_or_zero} is below counter {counter.value}"
            )
        published = getattr(record, "version", None)
        if (
            published is not None
            and published.same_series(new_version)
            and new_version.patch_or_zero <= published.patch_or_zero
        ):
            problems.append(
                f"patch {new_version.patch_or_zero} does not exceed registry "
                f"version {published}"
            )
        if problems:
            outcome.finish(UnitStatus.FAILED, "; ".join(problems))
            summary.counter_end = counter.value
            raise ReconciliationAborted(
                manifest.id, "; ".join(problems), summary=summary, counter=counter
            )

    def run(
        self, manifests: List[UnitManifest], counter: CounterState
    ) -> Tuple[RunSummary, CounterState]:
        """
        Reconcile all units.

        Args:
            manifests: Units of this run
            counter: Counter value read at the start of the run

        Returns:
            The run summary and the final counter

        Raises:
            ReconciliationAborted: On the first unit that cannot be committed
        """
        summary = RunSummary(counter_start=counter.value, dry_run=self.dry_run)
        ordered = sorted(manifests, key=lambda m: (m.path.as_posix(), m.id))

        logger.info(f"Reconciling {len(ordered)} unit(s), counter at {counter.value}")
        if self.force_update:
            logger.info("Force update enabled: every unit is treated as changed")
        if not self.publisher_id:
            logger.info("No publisher ID configured: registry floor disabled")

        for manifest in ordered:
            counter = self.reconcile_unit(manifest, counter, summary)

        summary.counter_end = counter.value
        return summary, counter
