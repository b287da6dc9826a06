"""
SpaceFlow - Mutation History Tests
"""

from datetime import datetime, timezone

import pytest

from engines.warehouse.history import MutationEntry, MutationHistory
from engines.warehouse.models import Pallet, PalletStatus, StorageLocation, Urgency

NOW = datetime(2026, 2, 22, 12, 0, tzinfo=timezone.utc)


def make_pallet(pallet_id, status="stored"):
    return Pallet(
        id=pallet_id,
        destination="Bern",
        status=PalletStatus(status),
        urgency=Urgency.LOW,
        weight_kg=100.0,
        last_scanned_at=NOW,
        logical_address=StorageLocation(zone="A", aisle=1, bay=1, level=1),
    )


def entry(label):
    return MutationEntry(
        label=label,
        before=(make_pallet("P"),),
        after=(make_pallet("P", "delayed"),),
        events=(),
    )


class TestMutationEntry:
    def test_misaligned_snapshots_rejected(self):
        with pytest.raises(ValueError, match="index-aligned"):
            MutationEntry(label="x", before=(make_pallet("P"),), after=(), events=())

    def test_empty_label_rejected(self):
        with pytest.raises(ValueError):
            MutationEntry(label="", before=(), after=(), events=())

    def test_to_dict(self):
        assert entry("Delay flag").to_dict() == {
            "label": "Delay flag", "palletIds": ["P"], "eventIds": [],
        }


class TestMutationHistory:
    def test_empty_history(self):
        history = MutationHistory()
        assert history.pop_undo() is None
        assert history.pop_redo() is None
        assert not history.can_undo

    def test_undo_then_redo_round_trips_entry(self):
        history = MutationHistory()
        first = entry("first")
        history.record(first)

        assert history.pop_undo() is first
        assert history.can_redo
        assert history.pop_redo() is first
        assert history.undo_depth == 1

    def test_lifo_order(self):
        history = MutationHistory()
        history.record(entry("a"))
        history.record(entry("b"))
        assert history.pop_undo().label == "b"
        assert history.pop_undo().label == "a"

    def test_new_record_clears_redo(self):
        history = MutationHistory()
        history.record(entry("a"))
        history.pop_undo()
        history.record(entry("b"))
        assert not history.can_redo

    def test_depth_bounded(self):
        history = MutationHistory(max_depth=2)
        for label in ("a", "b", "c"):
            history.record(entry(label))
        assert history.undo_depth == 2
        assert history.pop_undo().label == "c"
        assert history.pop_undo().label == "b"
        assert history.pop_undo() is None

    def test_clear(self):
        history = MutationHistory()
        history.record(entry("a"))
        history.pop_undo()
        history.clear()
        assert history.undo_depth == history.redo_depth == 0

    def test_invalid_depth(self):
        with pytest.raises(ValueError):
            MutationHistory(max_depth=0)
