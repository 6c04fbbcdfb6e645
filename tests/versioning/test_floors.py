"""
Tests for next-patch resolution.

Pure functions over resolved signals, so every test here is short.
"""

import pytest

from extver.registry.client import NotPublished, Published, Unknown
from extver.versioning.counter import CounterState
from extver.versioning.floors import (
    COUNTER_FLOOR,
    LOCAL_FLOOR,
    REGISTRY_FLOOR,
    REGISTRY_RAISE_WARNING,
    REGISTRY_SKIPPED_WARNING,
    collect_floors,
    resolve_patch,
)
from extver.versioning.version import Version


@pytest.mark.short
class TestResolvePatch:
    def test_counter_dominates_fresh_unit(self):
        decision = resolve_patch(Version("1.0"), CounterState(1))

        assert decision.patch == 1
        assert decision.dominant == COUNTER_FLOOR
        assert decision.warnings == ()

    def test_local_patch_dominates(self):
        decision = resolve_patch(Version("2.3.10"), CounterState(5))

        assert decision.patch == 11
        assert decision.dominant == LOCAL_FLOOR
        assert not decision.registry_applied

    def test_counter_above_local(self):
        decision = resolve_patch(Version("2.3.10"), CounterState(40))

        assert decision.patch == 40
        assert decision.dominant == COUNTER_FLOOR

    def test_tie_reports_earlier_floor(self):
        decision = resolve_patch(Version("1.0.4"), CounterState(5))

        assert decision.patch == 5
        assert decision.dominant == COUNTER_FLOOR

    def test_registry_floor_raises_patch(self):
        record = Published(Version("2.3.15"))

        decision = resolve_patch(Version("2.3.10"), CounterState(5), record)

        assert decision.patch == 16
        assert decision.dominant == REGISTRY_FLOOR
        assert REGISTRY_RAISE_WARNING in decision.warnings

    def test_registry_below_local_adds_no_warning(self):
        record = Published(Version("2.3.4"))

        decision = resolve_patch(Version("2.3.10"), CounterState(5), record)

        assert decision.patch == 11
        assert decision.registry_applied
        assert decision.warnings == ()

    def test_registry_in_other_series_is_ignored(self):
        record = Published(Version("3.0.2"))

        decision = resolve_patch(Version("2.3.10"), CounterState(5), record)

        assert decision.patch == 11
        assert not decision.registry_applied
        assert any("differs" in note for note in decision.notes)

    def test_unknown_registry_warns_and_skips_floor(self):
        decision = resolve_patch(
            Version("2.3.10"), CounterState(5), Unknown("tfx timed out")
        )

        assert decision.patch == 11
        assert not decision.registry_applied
        assert len(decision.warnings) == 1
        assert decision.warnings[0].startswith(REGISTRY_SKIPPED_WARNING)
        assert "tfx timed out" in decision.warnings[0]

    def test_not_published_is_a_note(self):
        decision = resolve_patch(Version("1.0"), CounterState(3), NotPublished())

        assert decision.patch == 3
        assert decision.notes == ("not yet published",)
        assert decision.warnings == ()

    @pytest.mark.parametrize("registry_patch", [0, 9, 10, 11, 30, 99])
    def test_registry_dominance(self, registry_patch):
        local = Version("2.3.10")
        record = Published(Version(f"2.3.{registry_patch}"))

        for counter in (1, 11, 50):
            decision = resolve_patch(local, CounterState(counter), record)
            assert decision.patch > registry_patch
            assert decision.patch > 10
            assert decision.patch >= counter

    def test_registry_without_patch_counts_as_zero(self):
        decision = resolve_patch(
            Version("2.3"), CounterState(1), Published(Version("2.3"))
        )

        assert decision.patch == 1


@pytest.mark.short
def test_collect_floors_order():
    floors, warnings, notes = collect_floors(
        Version("1.2.3"), CounterState(2), Published(Version("1.2.7"))
    )

    assert [f.source for f in floors] == [COUNTER_FLOOR, LOCAL_FLOOR, REGISTRY_FLOOR]
    assert [f.minimum for f in floors] == [2, 4, 8]
    assert warnings == []
    assert notes == []
