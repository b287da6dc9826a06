"""
SpaceFlow Warehouse Engine - Mutation Engine
==============================================
Resolves action targets and applies the per-pallet state machine.

RULES (NON-NEGOTIABLE):
- Every PalletAction has exactly one transition (checked at construction)
- One executed action appends exactly one event
- A relocation never lands on a slot held by another pallet
- A relocation with no free slot leaves the pallet unchanged and
  appends nothing
- Bulk actions touch at most max(1, min(50, max_targets)) pallets
- The engine keeps no history. Callers snapshot `before` for undo.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import AbstractSet, Callable, Dict, List, Optional, Tuple

from core.time.clock import Clock, SystemClock
from engines.warehouse.commands import (
    ActionOverrides,
    RelocateOverrides,
    SetDestinationOverrides,
    SetStatusOverrides,
    require_overrides,
)
from engines.warehouse.events import EventIdSequence, make_action_event
from engines.warehouse.filters import PalletFilter, filter_pallets
from engines.warehouse.location_grid import (
    DEFAULT_DIMENSIONS,
    GridDimensions,
    next_free_slot,
)
from engines.warehouse.models import (
    Pallet,
    PalletAction,
    PalletEvent,
    PalletStatus,
    Urgency,
)


logger = logging.getLogger("spaceflow.warehouse")

MIN_BULK_TARGETS = 1
MAX_BULK_TARGETS = 50


def clamp_max_targets(max_targets: int) -> int:
    return max(MIN_BULK_TARGETS, min(MAX_BULK_TARGETS, int(max_targets)))


# ══════════════════════════════════════════════════════════════
# RESULTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ActionResult:
    """
    Outcome of a single-target action.

    before is None when the pallet id is unknown. For a relocation that
    found no free slot, applied is False and after equals before.
    """
    applied: bool
    event_id: Optional[str] = None
    before: Optional[Pallet] = None
    after: Optional[Pallet] = None
    event: Optional[PalletEvent] = None

    @property
    def found(self) -> bool:
        return self.before is not None


@dataclass(frozen=True)
class BulkActionResult:
    """
    Outcome of a bulk action.

    before/after/events hold only the pallets that actually changed,
    index-aligned with event_ids.
    """
    affected_count: int
    event_ids: Tuple[str, ...] = ()
    before: Tuple[Pallet, ...] = ()
    after: Tuple[Pallet, ...] = ()
    events: Tuple[PalletEvent, ...] = ()
    matched_count: int = 0


# ══════════════════════════════════════════════════════════════
# TRANSITIONS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransitionContext:
    now: datetime
    overrides: Optional[ActionOverrides]
    occupied: AbstractSet[str]      # slot ids held by every other pallet
    dimensions: GridDimensions


Transition = Callable[[Pallet, TransitionContext], Optional[Pallet]]


def _to_stored(pallet: Pallet, ctx: TransitionContext) -> Pallet:
    return replace(pallet, status=PalletStatus.STORED, last_scanned_at=ctx.now)


def _to_transit(pallet: Pallet, ctx: TransitionContext) -> Pallet:
    return replace(pallet, status=PalletStatus.TRANSIT, last_scanned_at=ctx.now)


def _delay(pallet: Pallet, ctx: TransitionContext) -> Pallet:
    return replace(
        pallet,
        status=PalletStatus.DELAYED,
        urgency=Urgency.HIGH,
        last_scanned_at=ctx.now,
    )


def _scan(pallet: Pallet, ctx: TransitionContext) -> Pallet:
    return replace(pallet, last_scanned_at=ctx.now)


def _relocate(pallet: Pallet, ctx: TransitionContext) -> Optional[Pallet]:
    target_zone = None
    if isinstance(ctx.overrides, RelocateOverrides):
        target_zone = ctx.overrides.target_zone
    slot = next_free_slot(
        pallet.logical_address,
        ctx.occupied,
        dimensions=ctx.dimensions,
        zone=target_zone,
    )
    if slot is None:
        return None
    return replace(pallet, logical_address=slot, last_scanned_at=ctx.now)


def _set_status(pallet: Pallet, ctx: TransitionContext) -> Pallet:
    overrides: SetStatusOverrides = ctx.overrides
    return replace(pallet, status=overrides.target_status, last_scanned_at=ctx.now)


def _set_destination(pallet: Pallet, ctx: TransitionContext) -> Pallet:
    overrides: SetDestinationOverrides = ctx.overrides
    return replace(
        pallet,
        destination=overrides.target_destination,
        last_scanned_at=ctx.now,
    )


TRANSITIONS: Dict[PalletAction, Transition] = {
    PalletAction.RECEIVE: _to_stored,
    PalletAction.PUTAWAY: _to_stored,
    PalletAction.PICK: _to_transit,
    PalletAction.LOAD: _to_transit,
    PalletAction.DELAY: _delay,
    PalletAction.SCAN: _scan,
    PalletAction.RELOCATE: _relocate,
    PalletAction.SET_STATUS: _set_status,
    PalletAction.SET_DESTINATION: _set_destination,
}


def missing_transitions(transitions: Dict[PalletAction, Transition]) -> List[PalletAction]:
    return [action for action in PalletAction if action not in transitions]


# ══════════════════════════════════════════════════════════════
# MUTATION ENGINE
# ══════════════════════════════════════════════════════════════

class MutationEngine:
    """
    Stateless resolver over caller-owned working lists.

    `pallets` and `events` passed to apply_action / apply_bulk_action are
    mutated in place: changed pallets are replaced at their index and
    new events are appended. The caller republishes them.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        dimensions: GridDimensions = DEFAULT_DIMENSIONS,
        sequence: Optional[EventIdSequence] = None,
        transitions: Optional[Dict[PalletAction, Transition]] = None,
    ):
        self._clock = clock or SystemClock()
        self._dimensions = dimensions
        self._sequence = sequence or EventIdSequence()
        self._transitions = dict(TRANSITIONS if transitions is None else transitions)

        missing = missing_transitions(self._transitions)
        if missing:
            raise ValueError(
                "Transition table is missing actions: "
                + ", ".join(action.value for action in missing)
            )

    @property
    def dimensions(self) -> GridDimensions:
        return self._dimensions

    # ── Single target ─────────────────────────────────────────

    def apply_action(
        self,
        pallets: List[Pallet],
        events: List[PalletEvent],
        pallet_id: str,
        action: PalletAction,
        overrides: Optional[ActionOverrides] = None,
    ) -> ActionResult:
        """
        Apply `action` to the pallet with `pallet_id`.

        Raises ValueError when `action` is not a PalletAction or its
        override struct is missing or of the wrong kind.
        """
        self._check_request(action, overrides)

        index = _index_of(pallets, pallet_id)
        if index is None:
            logger.info(f"Action {action.value} skipped: pallet {pallet_id} not found")
            return ActionResult(applied=False)

        now = self._clock.now_utc()
        return self._apply_at(pallets, events, index, action, overrides, now)

    # ── Bulk ──────────────────────────────────────────────────

    def apply_bulk_action(
        self,
        pallets: List[Pallet],
        events: List[PalletEvent],
        action: PalletAction,
        pallet_filter: PalletFilter,
        max_targets: int,
        overrides: Optional[ActionOverrides] = None,
    ) -> BulkActionResult:
        """
        Apply `action` to the first matching pallets, bounded by
        max(1, min(50, max_targets)).
        """
        self._check_request(action, overrides)

        candidates = select_bulk_targets(pallets, pallet_filter, max_targets)
        if not candidates:
            logger.info(f"Bulk {action.value} matched no pallets")
            return BulkActionResult(affected_count=0)

        now = self._clock.now_utc()
        results = []
        for candidate in candidates:
            index = _index_of(pallets, candidate.id)
            result = self._apply_at(pallets, events, index, action, overrides, now)
            if result.applied:
                results.append(result)

        logger.info(
            f"Bulk {action.value} applied to {len(results)} of "
            f"{len(candidates)} targeted pallets"
        )
        return BulkActionResult(
            affected_count=len(results),
            event_ids=tuple(r.event_id for r in results),
            before=tuple(r.before for r in results),
            after=tuple(r.after for r in results),
            events=tuple(r.event for r in results),
            matched_count=len(candidates),
        )

    # ── Internals ─────────────────────────────────────────────

    def _check_request(
        self,
        action: PalletAction,
        overrides: Optional[ActionOverrides],
    ) -> None:
        if not isinstance(action, PalletAction):
            raise ValueError(f"Unknown action: {action!r}.")
        require_overrides(action, overrides)

    def _apply_at(
        self,
        pallets: List[Pallet],
        events: List[PalletEvent],
        index: int,
        action: PalletAction,
        overrides: Optional[ActionOverrides],
        now: datetime,
    ) -> ActionResult:
        before = pallets[index]
        occupied: AbstractSet[str] = frozenset()
        if action is PalletAction.RELOCATE:
            occupied = frozenset(
                p.logical_address.id for i, p in enumerate(pallets) if i != index
            )

        ctx = TransitionContext(
            now=now,
            overrides=overrides,
            occupied=occupied,
            dimensions=self._dimensions,
        )
        after = self._transitions[action](before, ctx)

        if after is None:
            if action is PalletAction.RELOCATE:
                logger.warning(
                    f"No free slot for pallet {before.id} in zone "
                    f"{_relocation_zone(before, overrides)}; address unchanged"
                )
            return ActionResult(applied=False, before=before, after=before)

        event = make_action_event(
            before.id,
            action,
            now,
            self._sequence.next(),
            slot_id=after.logical_address.id,
            target_status=after.status,
            target_destination=after.destination,
        )
        pallets[index] = after
        events.append(event)

        logger.debug(
            f"Pallet {before.id} {action.value}: "
            f"{before.status.value} -> {after.status.value} ({event.id})"
        )
        return ActionResult(
            applied=True,
            event_id=event.id,
            before=before,
            after=after,
            event=event,
        )


# ══════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════

def select_bulk_targets(
    pallets: List[Pallet],
    pallet_filter: PalletFilter,
    max_targets: int,
) -> List[Pallet]:
    """Matching pallets in collection order, truncated to the bulk bound."""
    return filter_pallets(pallets, pallet_filter)[:clamp_max_targets(max_targets)]


def _index_of(pallets: List[Pallet], pallet_id: str) -> Optional[int]:
    for index, pallet in enumerate(pallets):
        if pallet.id == pallet_id:
            return index
    return None


def _relocation_zone(pallet: Pallet, overrides: Optional[ActionOverrides]) -> str:
    if isinstance(overrides, RelocateOverrides) and overrides.target_zone:
        return overrides.target_zone
    return pallet.logical_address.zone
