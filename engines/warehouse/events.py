"""
SpaceFlow Warehouse Engine - Event Log Builder
================================================
Synthesizes the initial lifecycle history of a fleet and builds the
single event recorded for each executed action.

Event ids are `{pallet}-{type}-{epoch_ms}` for synthesized history and
`{pallet}-{type}-{epoch_ms}-{sequence}` for action events, so two
actions on the same pallet within one clock tick still get distinct ids.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from core.time.clock import epoch_ms
from engines.warehouse.models import (
    EventSource,
    Pallet,
    PalletAction,
    PalletEvent,
    PalletEventType,
    PalletStatus,
)


ACTOR_POOL = ("Dock-01", "Ops-Lead", "Forklift-07", "Scanner-03")

RELOCATED_BACKSTORY_NOTE = "Re-slotted for outbound wave"
DELAY_NOTE = "Carrier cutoff missed"


# ══════════════════════════════════════════════════════════════
# EVENT IDS
# ══════════════════════════════════════════════════════════════

def event_id(
    pallet_id: str,
    event_type: PalletEventType,
    at: datetime,
    sequence: Optional[int] = None,
) -> str:
    base = f"{pallet_id}-{event_type.value}-{epoch_ms(at)}"
    if sequence is None:
        return base
    return f"{base}-{sequence}"


class EventIdSequence:
    """Monotonic, thread-safe counter used to disambiguate event ids."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._counter)


# ══════════════════════════════════════════════════════════════
# ORDERING
# ══════════════════════════════════════════════════════════════

def newest_first(events: Iterable[PalletEvent]) -> List[PalletEvent]:
    """Sort by `at` descending. Equal timestamps keep their input order."""
    return sorted(events, key=lambda event: event.at, reverse=True)


def events_for_pallet(events: Iterable[PalletEvent], pallet_id: str) -> List[PalletEvent]:
    return newest_first(event for event in events if event.pallet_id == pallet_id)


def group_events_by_pallet(events: Iterable[PalletEvent]) -> Dict[str, List[PalletEvent]]:
    grouped: Dict[str, List[PalletEvent]] = {}
    for event in events:
        grouped.setdefault(event.pallet_id, []).append(event)
    return {pallet_id: newest_first(items) for pallet_id, items in grouped.items()}


# ══════════════════════════════════════════════════════════════
# INITIAL SYNTHESIS
# ══════════════════════════════════════════════════════════════

def _synthesized(
    pallet_id: str,
    event_type: PalletEventType,
    at: datetime,
    actor: str,
    source: EventSource,
    note: Optional[str] = None,
) -> PalletEvent:
    return PalletEvent(
        id=event_id(pallet_id, event_type, at),
        pallet_id=pallet_id,
        type=event_type,
        at=at,
        actor=actor,
        source=source,
        note=note,
    )


def build_pallet_events(pallets: Sequence[Pallet]) -> List[PalletEvent]:
    """
    Deterministic backstory for a fleet, anchored at each pallet's last scan.

    Every pallet gets received / putaway / scan. Every third pallet by
    position also gets a relocation. Transit pallets add picked and
    loaded, delayed pallets add a delay flag. Output is newest-first.
    """
    events: List[PalletEvent] = []

    for index, pallet in enumerate(pallets):
        last_scan = pallet.last_scanned_at
        received_at = last_scan - timedelta(hours=36, minutes=index * 10)
        putaway_at = last_scan - timedelta(hours=30, minutes=index * 8)

        events.append(_synthesized(
            pallet.id, PalletEventType.RECEIVED, received_at,
            ACTOR_POOL[index % len(ACTOR_POOL)], EventSource.SCANNER,
        ))
        events.append(_synthesized(
            pallet.id, PalletEventType.PUTAWAY, putaway_at,
            ACTOR_POOL[(index + 1) % len(ACTOR_POOL)], EventSource.OPERATOR,
        ))
        events.append(_synthesized(
            pallet.id, PalletEventType.SCAN, last_scan,
            ACTOR_POOL[(index + 2) % len(ACTOR_POOL)], EventSource.SCANNER,
        ))

        if index % 3 == 0:
            events.append(_synthesized(
                pallet.id, PalletEventType.RELOCATED, last_scan - timedelta(hours=18),
                ACTOR_POOL[(index + 3) % len(ACTOR_POOL)], EventSource.OPERATOR,
                RELOCATED_BACKSTORY_NOTE,
            ))

        if pallet.status is PalletStatus.TRANSIT:
            events.append(_synthesized(
                pallet.id, PalletEventType.PICKED, last_scan - timedelta(hours=6),
                "Wave-Picker", EventSource.OPERATOR,
            ))
            events.append(_synthesized(
                pallet.id, PalletEventType.LOADED, last_scan + timedelta(minutes=30),
                "Dock-02", EventSource.SCANNER,
            ))

        if pallet.status is PalletStatus.DELAYED:
            events.append(_synthesized(
                pallet.id, PalletEventType.DELAY_FLAGGED, last_scan + timedelta(minutes=15),
                "Rule-Engine", EventSource.SYSTEM, DELAY_NOTE,
            ))

    return newest_first(events)


# ══════════════════════════════════════════════════════════════
# ACTION EVENTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ActionEventSpec:
    event_type: PalletEventType
    actor: str
    source: EventSource
    note: Optional[str] = None


ACTION_EVENT_SPECS: Dict[PalletAction, ActionEventSpec] = {
    PalletAction.RECEIVE: ActionEventSpec(PalletEventType.RECEIVED, "Dock-01", EventSource.SCANNER),
    PalletAction.PUTAWAY: ActionEventSpec(PalletEventType.PUTAWAY, "Forklift-07", EventSource.OPERATOR),
    PalletAction.SCAN: ActionEventSpec(PalletEventType.SCAN, "Scanner-03", EventSource.SCANNER),
    PalletAction.RELOCATE: ActionEventSpec(PalletEventType.RELOCATED, "Ops-Lead", EventSource.OPERATOR),
    PalletAction.PICK: ActionEventSpec(PalletEventType.PICKED, "Wave-Picker", EventSource.OPERATOR),
    PalletAction.LOAD: ActionEventSpec(PalletEventType.LOADED, "Dock-02", EventSource.SCANNER),
    PalletAction.DELAY: ActionEventSpec(
        PalletEventType.DELAY_FLAGGED, "Rule-Engine", EventSource.SYSTEM, DELAY_NOTE,
    ),
    PalletAction.SET_STATUS: ActionEventSpec(PalletEventType.SCAN, "Ops-Lead", EventSource.OPERATOR),
    PalletAction.SET_DESTINATION: ActionEventSpec(PalletEventType.SCAN, "Ops-Lead", EventSource.OPERATOR),
}

# set_status records the lifecycle event matching the status it lands on.
STATUS_EVENT_TYPES: Dict[PalletStatus, PalletEventType] = {
    PalletStatus.STORED: PalletEventType.PUTAWAY,
    PalletStatus.TRANSIT: PalletEventType.PICKED,
    PalletStatus.DELAYED: PalletEventType.DELAY_FLAGGED,
}


def make_action_event(
    pallet_id: str,
    action: PalletAction,
    timestamp: datetime,
    sequence: int,
    *,
    slot_id: Optional[str] = None,
    target_status: Optional[PalletStatus] = None,
    target_destination: Optional[str] = None,
) -> PalletEvent:
    """
    The one event recorded for an executed action.

    Args:
        pallet_id:          Pallet the action ran against.
        action:             Executed action.
        timestamp:          Mutation time.
        sequence:           Value from an EventIdSequence.
        slot_id:            New slot, for relocate.
        target_status:      Landing status, for set_status.
        target_destination: New destination, for set_destination.
    """
    spec = ACTION_EVENT_SPECS[action]
    event_type = spec.event_type
    note = spec.note

    if action is PalletAction.RELOCATE:
        if slot_id is None:
            raise ValueError("relocate events require slot_id.")
        note = f"Re-slotted to {slot_id}"
    elif action is PalletAction.SET_STATUS:
        if target_status is None:
            raise ValueError("set_status events require target_status.")
        event_type = STATUS_EVENT_TYPES[target_status]
        note = f"Status set to {target_status.value}"
    elif action is PalletAction.SET_DESTINATION:
        if target_destination is None:
            raise ValueError("set_destination events require target_destination.")
        note = f"Destination changed to {target_destination}"

    return PalletEvent(
        id=event_id(pallet_id, event_type, timestamp, sequence),
        pallet_id=pallet_id,
        type=event_type,
        at=timestamp,
        actor=spec.actor,
        source=spec.source,
        note=note,
    )
