"""
SpaceFlow Warehouse Engine - Location Grid
============================================
Maps logical storage addresses to slot ids and world positions, and
finds the next free slot for a relocation.

RULES (NON-NEGOTIABLE):
- slot_id is deterministic and zero padded: LOC-A-01-02-03
- A zone's (aisle x bay x level) space is linearized aisle-major,
  then bay, then level. Index 0 is (1, 1, 1).
- next_free_slot probes each slot of the zone at most once, so it
  terminates in at most aisles * bays * levels probes
- The pallet's own slot is never returned as a "free" slot
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Iterator, Optional, Tuple

from engines.warehouse.models import SLOT_ID_FORMAT, VALID_ZONES, StorageLocation


# ══════════════════════════════════════════════════════════════
# WORLD LAYOUT CONSTANTS (spatial view)
# ══════════════════════════════════════════════════════════════

AISLE_SPACING_X = 4.0     # distance between aisles
BAY_SPACING_Z = 1.2       # width of one bay
LEVEL_HEIGHT_Y = 1.4      # height of one shelf level
START_OFFSET = (-25.0, 0.7, -25.0)
ZONE_GAP_X = 6.0          # empty floor between neighbouring zones


# ══════════════════════════════════════════════════════════════
# GRID DIMENSIONS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GridDimensions:
    """Bounded address space shared by every zone."""
    zones: Tuple[str, ...] = VALID_ZONES
    aisles: int = 6
    bays: int = 10
    levels: int = 4

    def __post_init__(self):
        if not self.zones:
            raise ValueError("zones must be non-empty.")
        for name in ("aisles", "bays", "levels"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive integer.")

    @property
    def slots_per_zone(self) -> int:
        return self.aisles * self.bays * self.levels

    def contains(self, location: StorageLocation) -> bool:
        return (
            location.zone in self.zones
            and location.aisle <= self.aisles
            and location.bay <= self.bays
            and location.level <= self.levels
        )


DEFAULT_DIMENSIONS = GridDimensions()


# ══════════════════════════════════════════════════════════════
# SLOT IDS
# ══════════════════════════════════════════════════════════════

def slot_id(zone: str, aisle: int, bay: int, level: int) -> str:
    """Canonical slot id. The sole collision key for occupancy."""
    return SLOT_ID_FORMAT.format(zone=zone, aisle=aisle, bay=bay, level=level)


# ══════════════════════════════════════════════════════════════
# LINEARIZATION
# ══════════════════════════════════════════════════════════════

def slot_index(location: StorageLocation, dimensions: GridDimensions = DEFAULT_DIMENSIONS) -> int:
    """Position of `location` in its zone's total order."""
    if not dimensions.contains(location):
        raise ValueError(f"{location.id} is outside the grid {dimensions}.")
    return (
        ((location.aisle - 1) * dimensions.bays + (location.bay - 1))
        * dimensions.levels
        + (location.level - 1)
    )


def location_at(zone: str, index: int, dimensions: GridDimensions = DEFAULT_DIMENSIONS) -> StorageLocation:
    """Inverse of slot_index."""
    if not 0 <= index < dimensions.slots_per_zone:
        raise ValueError(f"index {index} out of range for zone {zone}.")
    aisle_bay, level = divmod(index, dimensions.levels)
    aisle, bay = divmod(aisle_bay, dimensions.bays)
    return StorageLocation(zone=zone, aisle=aisle + 1, bay=bay + 1, level=level + 1)


def iter_zone_slots(zone: str, dimensions: GridDimensions = DEFAULT_DIMENSIONS) -> Iterator[StorageLocation]:
    for index in range(dimensions.slots_per_zone):
        yield location_at(zone, index, dimensions)


# ══════════════════════════════════════════════════════════════
# FREE SLOT SEARCH
# ══════════════════════════════════════════════════════════════

def next_free_slot(
    current: StorageLocation,
    occupied: AbstractSet[str],
    dimensions: GridDimensions = DEFAULT_DIMENSIONS,
    zone: Optional[str] = None,
) -> Optional[StorageLocation]:
    """
    First unoccupied slot after `current`, wrapping around the zone.

    Args:
        current:    The pallet's present address.
        occupied:   Slot ids held by every OTHER pallet.
        dimensions: Grid bounds.
        zone:       Target zone. Defaults to current.zone. When it differs,
                    the scan starts at current's coordinates in the target
                    zone and that slot itself is a candidate.

    Returns:
        A free StorageLocation, or None when the zone has no free slot
        other than the pallet's own.
    """
    target_zone = zone or current.zone
    if target_zone not in dimensions.zones:
        raise ValueError(f"zone '{target_zone}' is not part of the grid.")

    total = dimensions.slots_per_zone
    same_zone = target_zone == current.zone
    probe_start = StorageLocation(
        zone=target_zone,
        aisle=current.aisle,
        bay=current.bay,
        level=current.level,
    )

    if dimensions.contains(probe_start):
        start = slot_index(probe_start, dimensions)
        if same_zone:
            start += 1
    else:
        # Address outside the configured grid: scan the whole zone from 0.
        start = 0
        same_zone = False

    probes = total - 1 if same_zone else total
    for offset in range(probes):
        candidate = location_at(target_zone, (start + offset) % total, dimensions)
        if same_zone and candidate == current:
            continue
        if candidate.id not in occupied:
            return candidate
    return None


# ══════════════════════════════════════════════════════════════
# WORLD POSITION
# ══════════════════════════════════════════════════════════════

def grid_position(
    location: StorageLocation,
    dimensions: GridDimensions = DEFAULT_DIMENSIONS,
) -> Tuple[float, float, float]:
    """
    World (x, y, z) of a slot for the spatial view.

    Zones are laid out side by side along x; level 1 sits on the floor.
    """
    zone_index = dimensions.zones.index(location.zone) if location.zone in dimensions.zones else 0
    zone_width = dimensions.aisles * AISLE_SPACING_X + ZONE_GAP_X
    x = START_OFFSET[0] + zone_index * zone_width + location.aisle * AISLE_SPACING_X
    y = START_OFFSET[1] + (location.level - 1) * LEVEL_HEIGHT_Y
    z = START_OFFSET[2] + location.bay * BAY_SPACING_Z
    return (x, y, z)
