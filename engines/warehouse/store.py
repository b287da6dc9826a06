"""
SpaceFlow Warehouse Engine - Inventory Store
==============================================
Owns the canonical pallet collection, the event log and the filtered
view read by the table and the spatial scene.

RULES (NON-NEGOTIABLE):
- Only the MutationEngine changes pallets; the store republishes
- Every mutation runs under one re-entrant lock, so one completes fully
  before the next begins
- pallets / filtered_pallets / events are immutable tuples replaced
  wholesale after each mutation
- filter_revision increases on every filter apply or reset
"""

from __future__ import annotations

import logging
import random
import threading
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from core.time.clock import Clock, SystemClock
from engines.warehouse.commands import ActionOverrides, RelocateOverrides
from engines.warehouse.events import (
    EventIdSequence,
    build_pallet_events,
    events_for_pallet,
)
from engines.warehouse.filters import PalletFilter, filter_pallets
from engines.warehouse.location_grid import DEFAULT_DIMENSIONS, GridDimensions
from engines.warehouse.models import Pallet, PalletAction, PalletEvent, PalletStatus
from engines.warehouse.services import (
    ActionResult,
    BulkActionResult,
    MutationEngine,
    select_bulk_targets,
)
from engines.warehouse.simulation import DEFAULT_PERIOD_S, SimulationDriver


logger = logging.getLogger("spaceflow.warehouse")


# Status-appropriate action pools for simulated activity.
SIMULATION_ACTION_POOLS: Dict[PalletStatus, Tuple[PalletAction, ...]] = {
    PalletStatus.STORED: (
        PalletAction.SCAN, PalletAction.RELOCATE, PalletAction.PICK, PalletAction.DELAY,
    ),
    PalletStatus.TRANSIT: (
        PalletAction.SCAN, PalletAction.LOAD, PalletAction.DELAY,
    ),
    PalletStatus.DELAYED: (
        PalletAction.SCAN, PalletAction.PUTAWAY, PalletAction.PICK, PalletAction.RECEIVE,
    ),
}


class InventoryStore:
    """
    Session state for one warehouse.

    Args:
        pallets:             Initial snapshot.
        events:              Initial event log. None synthesizes one.
        clock:               Time source for mutations.
        rng:                 Random source for simulated ticks.
        simulation_period_s: Initial simulation period.
        dimensions:          Grid bounds used for relocation.
    """

    def __init__(
        self,
        pallets: Sequence[Pallet] = (),
        events: Optional[Sequence[PalletEvent]] = None,
        *,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        simulation_period_s: float = DEFAULT_PERIOD_S,
        dimensions: GridDimensions = DEFAULT_DIMENSIONS,
        engine: Optional[MutationEngine] = None,
    ):
        self._lock = threading.RLock()
        self._clock = clock or SystemClock()
        self._rng = rng or random.Random()
        self._engine = engine or MutationEngine(
            clock=self._clock,
            dimensions=dimensions,
            sequence=EventIdSequence(),
        )
        self._simulation = SimulationDriver(
            self.simulate_tick, period_s=simulation_period_s,
        )

        self._pallets: Tuple[Pallet, ...] = ()
        self._filtered: Tuple[Pallet, ...] = ()
        self._events: Tuple[PalletEvent, ...] = ()
        self._active_filter: Optional[PalletFilter] = None
        self._highlight_color: Optional[str] = None
        self._hovered_pallet_id: Optional[str] = None
        self._selected_pallet_id: Optional[str] = None
        self._filter_revision = 0

        self.load(pallets, events)

    # ══════════════════════════════════════════════════════════
    # READ SIDE
    # ══════════════════════════════════════════════════════════

    @property
    def pallets(self) -> Tuple[Pallet, ...]:
        return self._pallets

    @property
    def filtered_pallets(self) -> Tuple[Pallet, ...]:
        return self._filtered

    @property
    def events(self) -> Tuple[PalletEvent, ...]:
        return self._events

    @property
    def active_filter(self) -> Optional[PalletFilter]:
        return self._active_filter

    @property
    def active_highlight_color(self) -> Optional[str]:
        return self._highlight_color

    @property
    def hovered_pallet_id(self) -> Optional[str]:
        return self._hovered_pallet_id

    @property
    def selected_pallet_id(self) -> Optional[str]:
        return self._selected_pallet_id

    @property
    def filter_revision(self) -> int:
        return self._filter_revision

    def get_pallet(self, pallet_id: str) -> Optional[Pallet]:
        for pallet in self._pallets:
            if pallet.id == pallet_id:
                return pallet
        return None

    def events_for_pallet(self, pallet_id: str) -> List[PalletEvent]:
        return events_for_pallet(self._events, pallet_id)

    def preview_bulk_targets(self, pallet_filter: PalletFilter, max_targets: int) -> List[Pallet]:
        """Pallets a bulk action with these arguments would target."""
        return select_bulk_targets(list(self._pallets), pallet_filter, max_targets)

    def view_dict(self) -> dict:
        return {
            "pallets": [pallet.to_dict() for pallet in self._filtered],
            "total": len(self._pallets),
            "filterRevision": self._filter_revision,
            "activeFilter": self._active_filter.to_dict() if self._active_filter else None,
            "highlightColor": self._highlight_color,
            "hoveredPalletId": self._hovered_pallet_id,
            "selectedPalletId": self._selected_pallet_id,
        }

    # ══════════════════════════════════════════════════════════
    # LOAD & FILTER
    # ══════════════════════════════════════════════════════════

    def load(
        self,
        pallets: Sequence[Pallet],
        events: Optional[Sequence[PalletEvent]] = None,
    ) -> None:
        """Replace the whole snapshot. Pallet ids and slot ids must be unique."""
        pallets = tuple(pallets)
        seen = set()
        occupied = set()
        for pallet in pallets:
            if pallet.id in seen:
                raise ValueError(f"Duplicate pallet id: {pallet.id}.")
            slot = pallet.logical_address.id
            if slot in occupied:
                raise ValueError(f"Duplicate slot id: {slot} holds more than one pallet.")
            seen.add(pallet.id)
            occupied.add(slot)

        with self._lock:
            self._pallets = pallets
            self._events = tuple(
                build_pallet_events(pallets) if events is None else events
            )
            self._republish()
            self._clear_interaction()
            self._filter_revision += 1
        logger.info(f"Loaded {len(pallets)} pallets and {len(self._events)} events")

    def apply_filter(self, pallet_filter: PalletFilter) -> Tuple[Pallet, ...]:
        with self._lock:
            self._active_filter = pallet_filter
            self._highlight_color = pallet_filter.highlight_color
            self._filtered = tuple(filter_pallets(self._pallets, pallet_filter))
            self._clear_interaction()
            self._filter_revision += 1
            logger.info(
                f"Filter applied: {len(self._filtered)} of {len(self._pallets)} "
                f"pallets (revision {self._filter_revision})"
            )
            return self._filtered

    def reset_filter(self) -> None:
        with self._lock:
            self._active_filter = None
            self._highlight_color = None
            self._filtered = self._pallets
            self._clear_interaction()
            self._filter_revision += 1
            logger.info(f"Filter reset (revision {self._filter_revision})")

    def set_hovered_pallet_id(self, pallet_id: Optional[str]) -> None:
        with self._lock:
            self._hovered_pallet_id = pallet_id

    def set_selected_pallet_id(self, pallet_id: Optional[str]) -> None:
        with self._lock:
            self._selected_pallet_id = pallet_id

    # ══════════════════════════════════════════════════════════
    # MUTATIONS
    # ══════════════════════════════════════════════════════════

    def apply_action(
        self,
        pallet_id: str,
        action: PalletAction,
        overrides: Optional[ActionOverrides] = None,
    ) -> ActionResult:
        with self._lock:
            pallets = list(self._pallets)
            events = list(self._events)
            result = self._engine.apply_action(pallets, events, pallet_id, action, overrides)
            if result.applied:
                self._publish(pallets, events)
                logger.info(f"Action {action.value} applied to {pallet_id} ({result.event_id})")
            return result

    def apply_bulk_action(
        self,
        action: PalletAction,
        pallet_filter: PalletFilter,
        max_targets: int = 10,
        overrides: Optional[ActionOverrides] = None,
    ) -> BulkActionResult:
        with self._lock:
            pallets = list(self._pallets)
            events = list(self._events)
            result = self._engine.apply_bulk_action(
                pallets, events, action, pallet_filter, max_targets, overrides,
            )
            if result.affected_count:
                self._publish(pallets, events)
            return result

    def restore_pallet_state(
        self,
        previous: Iterable[Pallet],
        event_ids: Iterable[str],
    ) -> int:
        """
        Undo: put `previous` pallet values back and drop `event_ids`.

        Returns the number of pallets restored. Pallets no longer in the
        collection are skipped.
        """
        with self._lock:
            by_id = {pallet.id: pallet for pallet in previous}
            drop = set(event_ids)
            pallets = [by_id.get(pallet.id, pallet) for pallet in self._pallets]
            events = [event for event in self._events if event.id not in drop]
            restored = sum(1 for pallet in self._pallets if pallet.id in by_id)
            self._publish(pallets, events)
            logger.info(f"Restored {restored} pallets, dropped {len(drop)} events")
            return restored

    def reapply_pallet_state(
        self,
        after: Iterable[Pallet],
        events: Iterable[PalletEvent],
    ) -> int:
        """Redo: put `after` pallet values back and re-append `events`."""
        with self._lock:
            by_id = {pallet.id: pallet for pallet in after}
            present = {event.id for event in self._events}
            pallets = [by_id.get(pallet.id, pallet) for pallet in self._pallets]
            appended = list(self._events)
            appended.extend(event for event in events if event.id not in present)
            reapplied = sum(1 for pallet in self._pallets if pallet.id in by_id)
            self._publish(pallets, appended)
            logger.info(f"Reapplied {reapplied} pallets")
            return reapplied

    # ══════════════════════════════════════════════════════════
    # SIMULATION
    # ══════════════════════════════════════════════════════════

    def simulate_tick(self) -> Optional[ActionResult]:
        """One random status-appropriate action on one random pallet."""
        with self._lock:
            if not self._pallets:
                return None
            pallet = self._rng.choice(self._pallets)
            action = self._rng.choice(SIMULATION_ACTION_POOLS[pallet.status])
            overrides = RelocateOverrides() if action is PalletAction.RELOCATE else None
            logger.debug(f"Simulated {action.value} on {pallet.id}")
            return self.apply_action(pallet.id, action, overrides)

    def start_simulation(self, period_s: Optional[float] = None) -> bool:
        return self._simulation.start(period_s)

    def stop_simulation(self) -> bool:
        return self._simulation.stop()

    def set_simulation_speed(self, period_s: float) -> None:
        self._simulation.set_period(period_s)

    @property
    def is_simulation_running(self) -> bool:
        return self._simulation.is_running

    @property
    def simulation_period_s(self) -> float:
        return self._simulation.period_s

    # ══════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════

    def _publish(self, pallets: Sequence[Pallet], events: Sequence[PalletEvent]) -> None:
        self._pallets = tuple(pallets)
        self._events = tuple(events)
        self._republish()

    def _republish(self) -> None:
        if self._active_filter is None:
            self._filtered = self._pallets
        else:
            self._filtered = tuple(filter_pallets(self._pallets, self._active_filter))

    def _clear_interaction(self) -> None:
        self._hovered_pallet_id = None
        self._selected_pallet_id = None
