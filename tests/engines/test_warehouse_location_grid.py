"""
SpaceFlow - Location Grid Tests
=================================
Slot ids, linearization, free-slot search and world positions.
"""

import pytest

from engines.warehouse.location_grid import (
    DEFAULT_DIMENSIONS,
    GridDimensions,
    grid_position,
    iter_zone_slots,
    location_at,
    next_free_slot,
    slot_id,
    slot_index,
)
from engines.warehouse.models import StorageLocation

SMALL = GridDimensions(zones=("A", "B"), aisles=2, bays=2, levels=2)


def loc(zone="A", aisle=1, bay=1, level=1):
    return StorageLocation(zone=zone, aisle=aisle, bay=bay, level=level)


# ══════════════════════════════════════════════════════════════
# SLOT IDS
# ══════════════════════════════════════════════════════════════

class TestSlotId:
    def test_zero_padded_format(self):
        assert slot_id("A", 1, 2, 3) == "LOC-A-01-02-03"

    def test_two_digit_values_unpadded(self):
        assert slot_id("C", 12, 10, 4) == "LOC-C-12-10-04"

    def test_deterministic(self):
        assert slot_id("B", 3, 4, 1) == slot_id("B", 3, 4, 1)

    def test_location_id_matches_slot_id(self):
        assert loc("B", 2, 7, 3).id == slot_id("B", 2, 7, 3)

    def test_location_rejects_zero_level(self):
        with pytest.raises(ValueError, match="level"):
            StorageLocation(zone="A", aisle=1, bay=1, level=0)


# ══════════════════════════════════════════════════════════════
# LINEARIZATION
# ══════════════════════════════════════════════════════════════

class TestLinearization:
    def test_first_slot_is_index_zero(self):
        assert slot_index(loc(), SMALL) == 0

    def test_level_varies_fastest(self):
        assert slot_index(loc(level=2), SMALL) == 1
        assert slot_index(loc(bay=2), SMALL) == 2
        assert slot_index(loc(aisle=2), SMALL) == 4

    def test_location_at_inverts_slot_index(self):
        for index in range(SMALL.slots_per_zone):
            assert slot_index(location_at("A", index, SMALL), SMALL) == index

    def test_out_of_range_index_rejected(self):
        with pytest.raises(ValueError):
            location_at("A", SMALL.slots_per_zone, SMALL)

    def test_default_zone_capacity(self):
        assert DEFAULT_DIMENSIONS.slots_per_zone == 6 * 10 * 4
        assert len(list(iter_zone_slots("A"))) == 240


# ══════════════════════════════════════════════════════════════
# FREE SLOT SEARCH
# ══════════════════════════════════════════════════════════════

class TestNextFreeSlot:
    def test_returns_slot_just_after_current(self):
        result = next_free_slot(loc(), occupied={loc().id}, dimensions=SMALL)
        assert result == loc(level=2)

    def test_skips_occupied_slots(self):
        occupied = {loc().id, loc(level=2).id, loc(bay=2).id}
        assert next_free_slot(loc(), occupied, dimensions=SMALL) == loc(bay=2, level=2)

    def test_wraps_around_to_start_of_zone(self):
        last = loc(aisle=2, bay=2, level=2)
        assert next_free_slot(last, occupied={last.id}, dimensions=SMALL) == loc()

    def test_never_returns_current_slot(self):
        current = loc(aisle=1, bay=2, level=1)
        others = {s.id for s in iter_zone_slots("A", SMALL) if s != current}
        assert next_free_slot(current, others, dimensions=SMALL) is None

    def test_full_zone_returns_none(self):
        occupied = {s.id for s in iter_zone_slots("A", SMALL)}
        assert next_free_slot(loc(), occupied, dimensions=SMALL) is None

    def test_ignores_other_zones(self):
        occupied = {s.id for s in iter_zone_slots("B", SMALL)}
        assert next_free_slot(loc(), occupied, dimensions=SMALL) == loc(level=2)

    def test_target_zone_starts_at_same_coordinates_inclusive(self):
        current = loc("A", 1, 2, 1)
        assert next_free_slot(current, set(), dimensions=SMALL, zone="B") == loc("B", 1, 2, 1)

    def test_target_zone_full_returns_none(self):
        occupied = {s.id for s in iter_zone_slots("B", SMALL)}
        assert next_free_slot(loc(), occupied, dimensions=SMALL, zone="B") is None

    def test_unknown_zone_rejected(self):
        with pytest.raises(ValueError, match="zone"):
            next_free_slot(loc(), set(), dimensions=SMALL, zone="Z")

    def test_result_is_never_occupied(self):
        occupied = {s.id for i, s in enumerate(iter_zone_slots("A", SMALL)) if i % 2 == 0}
        for start in iter_zone_slots("A", SMALL):
            result = next_free_slot(start, occupied - {start.id}, dimensions=SMALL)
            assert result is not None
            assert result.id not in occupied - {start.id}
            assert result != start


# ══════════════════════════════════════════════════════════════
# WORLD POSITION
# ══════════════════════════════════════════════════════════════

class TestGridPosition:
    def test_first_slot_position(self):
        x, y, z = grid_position(loc())
        assert (x, y, z) == pytest.approx((-21.0, 0.7, -23.8))

    def test_levels_stack_vertically(self):
        _, y1, _ = grid_position(loc(level=1))
        _, y2, _ = grid_position(loc(level=2))
        assert y2 - y1 == pytest.approx(1.4)

    def test_zones_do_not_overlap(self):
        last_a, _, _ = grid_position(loc("A", 6, 1, 1))
        first_b, _, _ = grid_position(loc("B", 1, 1, 1))
        assert first_b > last_a
