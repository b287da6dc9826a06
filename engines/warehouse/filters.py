"""
SpaceFlow Warehouse Engine - Filter Evaluator
===============================================
Pure predicate deciding whether a pallet belongs to a filtered view.

A pallet matches iff ALL non-default criteria match. `highlight_color`
is display-only and never participates in matching.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from engines.warehouse.models import STATUS_VALUES, URGENCY_VALUES, Pallet


FILTER_ALL = "all"
VALID_FILTER_STATUSES = frozenset({FILTER_ALL}) | STATUS_VALUES
VALID_FILTER_URGENCIES = frozenset({FILTER_ALL}) | URGENCY_VALUES

HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ══════════════════════════════════════════════════════════════
# FILTER
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PalletFilter:
    """Query criteria. Defaults select every pallet."""
    pallet_id: Optional[str] = None
    destination: Optional[str] = None
    status: str = FILTER_ALL
    urgency_level: str = FILTER_ALL
    weight_min_kg: Optional[float] = None
    weight_max_kg: Optional[float] = None
    highlight_color: Optional[str] = None

    def __post_init__(self):
        if self.pallet_id is not None and not isinstance(self.pallet_id, str):
            raise ValueError("pallet_id must be a string or None.")
        if self.destination is not None and not isinstance(self.destination, str):
            raise ValueError("destination must be a string or None.")
        if self.status not in VALID_FILTER_STATUSES:
            raise ValueError(f"status '{self.status}' not valid.")
        if self.urgency_level not in VALID_FILTER_URGENCIES:
            raise ValueError(f"urgency_level '{self.urgency_level}' not valid.")
        for name in ("weight_min_kg", "weight_max_kg"):
            value = getattr(self, name)
            if value is not None and not _is_number(value):
                raise ValueError(f"{name} must be a number or None.")
        if self.highlight_color is not None and not (
            isinstance(self.highlight_color, str)
            and HEX_COLOR_RE.match(self.highlight_color)
        ):
            raise ValueError("highlight_color must be a hex color like '#ef4444'.")

    @property
    def is_unfiltered(self) -> bool:
        return self.without_highlight() == PalletFilter()

    def without_highlight(self) -> "PalletFilter":
        return PalletFilter(
            pallet_id=self.pallet_id,
            destination=self.destination,
            status=self.status,
            urgency_level=self.urgency_level,
            weight_min_kg=self.weight_min_kg,
            weight_max_kg=self.weight_max_kg,
        )

    def to_dict(self) -> dict:
        return {
            "palletId": self.pallet_id,
            "destination": self.destination,
            "status": self.status,
            "urgencyLevel": self.urgency_level,
            "weightMinKg": self.weight_min_kg,
            "weightMaxKg": self.weight_max_kg,
            "highlightColor": self.highlight_color,
        }


MATCH_ALL = PalletFilter()


# ══════════════════════════════════════════════════════════════
# EVALUATION
# ══════════════════════════════════════════════════════════════

def matches(pallet: Pallet, pallet_filter: PalletFilter) -> bool:
    """Decide inclusion. Total and side-effect free."""
    if pallet_filter.pallet_id is not None and pallet.id != pallet_filter.pallet_id:
        return False

    if pallet_filter.destination:
        if pallet_filter.destination.lower() not in pallet.destination.lower():
            return False

    if pallet_filter.status != FILTER_ALL and pallet.status.value != pallet_filter.status:
        return False

    if (
        pallet_filter.urgency_level != FILTER_ALL
        and pallet.urgency.value != pallet_filter.urgency_level
    ):
        return False

    if pallet_filter.weight_min_kg is not None and pallet.weight_kg < pallet_filter.weight_min_kg:
        return False

    if pallet_filter.weight_max_kg is not None and pallet.weight_kg > pallet_filter.weight_max_kg:
        return False

    return True


def filter_pallets(pallets: Iterable[Pallet], pallet_filter: PalletFilter) -> List[Pallet]:
    """Matching pallets in their original order."""
    return [pallet for pallet in pallets if matches(pallet, pallet_filter)]
