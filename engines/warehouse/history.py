"""
SpaceFlow Warehouse Engine - Mutation History
===============================================
Caller-side undo/redo log for executed actions.

Each entry carries the exact pre-mutation pallets, the post-mutation
pallets and the events the mutation appended. Undo restores `before`
and drops the events; redo re-applies `after` and re-appends them.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

from engines.warehouse.models import Pallet, PalletEvent


DEFAULT_HISTORY_DEPTH = 50


@dataclass(frozen=True)
class MutationEntry:
    label: str
    before: Tuple[Pallet, ...]
    after: Tuple[Pallet, ...]
    events: Tuple[PalletEvent, ...]

    def __post_init__(self):
        if not self.label:
            raise ValueError("label must be non-empty.")
        if len(self.before) != len(self.after):
            raise ValueError("before and after must be index-aligned.")

    @property
    def event_ids(self) -> Tuple[str, ...]:
        return tuple(event.id for event in self.events)

    @property
    def pallet_ids(self) -> Tuple[str, ...]:
        return tuple(pallet.id for pallet in self.before)

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "palletIds": list(self.pallet_ids),
            "eventIds": list(self.event_ids),
        }


class MutationHistory:
    """Bounded undo stack with a redo stack cleared by every new record."""

    def __init__(self, max_depth: int = DEFAULT_HISTORY_DEPTH):
        if max_depth < 1:
            raise ValueError("max_depth must be >= 1.")
        self._max_depth = max_depth
        self._undo: List[MutationEntry] = []
        self._redo: List[MutationEntry] = []
        self._lock = threading.Lock()

    def record(self, entry: MutationEntry) -> None:
        with self._lock:
            self._undo.append(entry)
            if len(self._undo) > self._max_depth:
                del self._undo[0]
            self._redo.clear()

    def pop_undo(self) -> Optional[MutationEntry]:
        """Most recent entry, moved onto the redo stack. None when empty."""
        with self._lock:
            if not self._undo:
                return None
            entry = self._undo.pop()
            self._redo.append(entry)
            return entry

    def pop_redo(self) -> Optional[MutationEntry]:
        with self._lock:
            if not self._redo:
                return None
            entry = self._redo.pop()
            self._undo.append(entry)
            return entry

    def clear(self) -> None:
        with self._lock:
            self._undo.clear()
            self._redo.clear()

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)
