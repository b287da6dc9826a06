"""
SpaceFlow - Event Log Builder Tests
=====================================
Backstory synthesis, action events, id uniqueness and ordering.
"""

from datetime import datetime, timedelta, timezone

import pytest

from engines.warehouse.events import (
    ACTION_EVENT_SPECS,
    EventIdSequence,
    build_pallet_events,
    events_for_pallet,
    group_events_by_pallet,
    make_action_event,
)
from engines.warehouse.models import (
    EventSource,
    Pallet,
    PalletAction,
    PalletEvent,
    PalletEventType,
    PalletStatus,
    StorageLocation,
    Urgency,
)

LAST_SCAN = datetime(2026, 2, 22, 12, 0, tzinfo=timezone.utc)


def make_pallet(pallet_id, status="stored", bay=1):
    return Pallet(
        id=pallet_id,
        destination="Bern",
        status=PalletStatus(status),
        urgency=Urgency.LOW,
        weight_kg=300.0,
        last_scanned_at=LAST_SCAN,
        logical_address=StorageLocation(zone="A", aisle=1, bay=bay, level=1),
    )


def types_for(events, pallet_id):
    return sorted(e.type.value for e in events if e.pallet_id == pallet_id)


# ══════════════════════════════════════════════════════════════
# BACKSTORY SYNTHESIS
# ══════════════════════════════════════════════════════════════

class TestBuildPalletEvents:
    def test_stored_pallet_gets_base_history_and_relocation_at_index_zero(self):
        events = build_pallet_events([make_pallet("P-0")])
        assert types_for(events, "P-0") == ["putaway", "received", "relocated", "scan"]

    def test_only_every_third_pallet_is_relocated(self):
        pallets = [make_pallet(f"P-{i}", bay=i + 1) for i in range(4)]
        events = build_pallet_events(pallets)
        relocated = {e.pallet_id for e in events if e.type is PalletEventType.RELOCATED}
        assert relocated == {"P-0", "P-3"}

    def test_transit_adds_picked_and_loaded(self):
        events = build_pallet_events([make_pallet("X", bay=1), make_pallet("T", "transit", bay=2)])
        assert types_for(events, "T") == ["loaded", "picked", "putaway", "received", "scan"]

    def test_delayed_adds_system_delay_flag(self):
        events = build_pallet_events([make_pallet("X"), make_pallet("D", "delayed", bay=2)])
        flag = next(e for e in events if e.pallet_id == "D" and e.type is PalletEventType.DELAY_FLAGGED)
        assert flag.source is EventSource.SYSTEM
        assert flag.actor == "Rule-Engine"
        assert flag.note == "Carrier cutoff missed"
        assert flag.at == LAST_SCAN + timedelta(minutes=15)

    def test_offsets_are_staggered_by_position(self):
        pallets = [make_pallet("P-0"), make_pallet("P-1", bay=2)]
        events = build_pallet_events(pallets)
        received = {e.pallet_id: e.at for e in events if e.type is PalletEventType.RECEIVED}
        putaway = {e.pallet_id: e.at for e in events if e.type is PalletEventType.PUTAWAY}
        assert received["P-0"] == LAST_SCAN - timedelta(hours=36)
        assert received["P-1"] == LAST_SCAN - timedelta(hours=36, minutes=10)
        assert putaway["P-1"] == LAST_SCAN - timedelta(hours=30, minutes=8)

    def test_actors_rotate_through_pool(self):
        events = build_pallet_events([make_pallet("P-0"), make_pallet("P-1", bay=2)])
        actors = {(e.pallet_id, e.type): e.actor for e in events}
        assert actors[("P-0", PalletEventType.RECEIVED)] == "Dock-01"
        assert actors[("P-0", PalletEventType.PUTAWAY)] == "Ops-Lead"
        assert actors[("P-1", PalletEventType.RECEIVED)] == "Ops-Lead"
        assert actors[("P-1", PalletEventType.SCAN)] == "Scanner-03"

    def test_output_is_newest_first(self):
        pallets = [make_pallet(f"P-{i}", s, bay=i + 1) for i, s in enumerate(["stored", "transit", "delayed"])]
        events = build_pallet_events(pallets)
        stamps = [e.at for e in events]
        assert stamps == sorted(stamps, reverse=True)

    def test_ids_are_unique(self):
        pallets = [make_pallet(f"P-{i}", bay=i + 1) for i in range(9)]
        events = build_pallet_events(pallets)
        assert len({e.id for e in events}) == len(events)

    def test_empty_fleet(self):
        assert build_pallet_events([]) == []


# ══════════════════════════════════════════════════════════════
# ACTION EVENTS
# ══════════════════════════════════════════════════════════════

class TestMakeActionEvent:
    def test_every_action_has_an_event_spec(self):
        assert set(ACTION_EVENT_SPECS) == set(PalletAction)

    @pytest.mark.parametrize("action,event_type,actor,source", [
        (PalletAction.RECEIVE, PalletEventType.RECEIVED, "Dock-01", EventSource.SCANNER),
        (PalletAction.PUTAWAY, PalletEventType.PUTAWAY, "Forklift-07", EventSource.OPERATOR),
        (PalletAction.SCAN, PalletEventType.SCAN, "Scanner-03", EventSource.SCANNER),
        (PalletAction.PICK, PalletEventType.PICKED, "Wave-Picker", EventSource.OPERATOR),
        (PalletAction.LOAD, PalletEventType.LOADED, "Dock-02", EventSource.SCANNER),
        (PalletAction.DELAY, PalletEventType.DELAY_FLAGGED, "Rule-Engine", EventSource.SYSTEM),
    ])
    def test_fixed_mapping(self, action, event_type, actor, source):
        event = make_action_event("PAL-1", action, LAST_SCAN, 1)
        assert event.type is event_type
        assert event.actor == actor
        assert event.source is source
        assert event.at == LAST_SCAN

    def test_relocate_note_names_new_slot(self):
        event = make_action_event("PAL-1", PalletAction.RELOCATE, LAST_SCAN, 1, slot_id="LOC-B-01-01-01")
        assert event.type is PalletEventType.RELOCATED
        assert event.note == "Re-slotted to LOC-B-01-01-01"

    def test_relocate_requires_slot(self):
        with pytest.raises(ValueError, match="slot_id"):
            make_action_event("PAL-1", PalletAction.RELOCATE, LAST_SCAN, 1)

    @pytest.mark.parametrize("status,event_type", [
        (PalletStatus.STORED, PalletEventType.PUTAWAY),
        (PalletStatus.TRANSIT, PalletEventType.PICKED),
        (PalletStatus.DELAYED, PalletEventType.DELAY_FLAGGED),
    ])
    def test_set_status_event_follows_landing_status(self, status, event_type):
        event = make_action_event("PAL-1", PalletAction.SET_STATUS, LAST_SCAN, 1, target_status=status)
        assert event.type is event_type
        assert event.actor == "Ops-Lead"
        assert event.note == f"Status set to {status.value}"

    def test_set_destination_records_scan_with_note(self):
        event = make_action_event(
            "PAL-1", PalletAction.SET_DESTINATION, LAST_SCAN, 1, target_destination="Lugano",
        )
        assert event.type is PalletEventType.SCAN
        assert event.source is EventSource.OPERATOR
        assert event.note == "Destination changed to Lugano"

    def test_id_carries_sequence(self):
        event = make_action_event("PAL-1", PalletAction.SCAN, LAST_SCAN, 7)
        assert event.id == f"PAL-1-scan-{int(LAST_SCAN.timestamp() * 1000)}-7"

    def test_same_tick_ids_are_distinct(self):
        sequence = EventIdSequence()
        first = make_action_event("PAL-1", PalletAction.SCAN, LAST_SCAN, sequence.next())
        second = make_action_event("PAL-1", PalletAction.SCAN, LAST_SCAN, sequence.next())
        assert first.id != second.id


class TestEventIdSequence:
    def test_monotonic(self):
        sequence = EventIdSequence()
        values = [sequence.next() for _ in range(5)]
        assert values == [1, 2, 3, 4, 5]

    def test_custom_start(self):
        assert EventIdSequence(start=100).next() == 100


# ══════════════════════════════════════════════════════════════
# QUERIES
# ══════════════════════════════════════════════════════════════

def _event(event_id, pallet_id, minutes):
    return PalletEvent(
        id=event_id,
        pallet_id=pallet_id,
        type=PalletEventType.SCAN,
        at=LAST_SCAN + timedelta(minutes=minutes),
        actor="Scanner-03",
        source=EventSource.SCANNER,
    )


class TestEventQueries:
    def test_events_for_pallet_newest_first(self):
        events = [_event("a", "P", 0), _event("b", "Q", 5), _event("c", "P", 10)]
        assert [e.id for e in events_for_pallet(events, "P")] == ["c", "a"]

    def test_ties_keep_insertion_order(self):
        events = [_event("first", "P", 0), _event("second", "P", 0), _event("third", "P", 0)]
        assert [e.id for e in events_for_pallet(events, "P")] == ["first", "second", "third"]

    def test_group_by_pallet(self):
        events = [_event("a", "P", 0), _event("b", "Q", 5), _event("c", "P", 10)]
        grouped = group_events_by_pallet(events)
        assert [e.id for e in grouped["P"]] == ["c", "a"]
        assert [e.id for e in grouped["Q"]] == ["b"]

    def test_unknown_pallet_has_no_events(self):
        assert events_for_pallet([_event("a", "P", 0)], "missing") == []
