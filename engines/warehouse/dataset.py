"""
SpaceFlow Warehouse Engine - Initial Dataset
==============================================
Loads the initial pallet snapshot from a JSON file of camelCase
records, or generates a deterministic demo fleet when none is configured.
"""

from __future__ import annotations

import json
import random
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, List, Optional, Union

from core.time.clock import to_utc
from engines.warehouse.location_grid import DEFAULT_DIMENSIONS, GridDimensions, location_at
from engines.warehouse.models import Pallet, PalletStatus, StorageLocation, Urgency


DEMO_DESTINATIONS = (
    "Zürich", "Bern", "Basel", "Genf", "Lausanne", "Luzern", "St. Gallen", "Lugano",
)
DEMO_STATUS_WEIGHTS = (
    (PalletStatus.STORED, 60),
    (PalletStatus.TRANSIT, 25),
    (PalletStatus.DELAYED, 15),
)
DEMO_PALLET_COUNT = 120
DEMO_SEED = 42


class DatasetError(ValueError):
    """Malformed snapshot file or record."""


# ══════════════════════════════════════════════════════════════
# PARSING
# ══════════════════════════════════════════════════════════════

def parse_timestamp(value: str) -> datetime:
    """ISO-8601 string to an aware UTC datetime. Naive values are UTC."""
    if not isinstance(value, str) or not value:
        raise DatasetError("timestamp must be a non-empty ISO-8601 string.")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise DatasetError(f"invalid timestamp '{value}'.") from exc
    return to_utc(parsed)


def parse_pallet_record(record: Any) -> Pallet:
    """One camelCase pallet record to a Pallet. Raises DatasetError."""
    if not isinstance(record, dict):
        raise DatasetError("pallet record must be an object.")
    try:
        address = record["logicalAddress"]
        if not isinstance(address, dict):
            raise DatasetError("logicalAddress must be an object.")
        location = StorageLocation(
            zone=address["zone"],
            aisle=address["aisle"],
            bay=address["bay"],
            level=address["level"],
        )
        return Pallet(
            id=record["id"],
            destination=record["destination"],
            status=PalletStatus(record["status"]),
            urgency=Urgency(record["urgency"]),
            weight_kg=record["weightKg"],
            last_scanned_at=parse_timestamp(record["lastScannedAt"]),
            logical_address=location,
        )
    except KeyError as exc:
        raise DatasetError(f"pallet record is missing field {exc.args[0]!r}.") from exc
    except DatasetError:
        raise
    except ValueError as exc:
        raise DatasetError(str(exc)) from exc


def load_pallets(path: Union[str, Path]) -> List[Pallet]:
    """
    Read a JSON list of pallet records.

    Raises DatasetError naming the offending record index, or when ids
    or slot ids repeat.
    """
    with open(path, encoding="utf-8") as handle:
        try:
            raw = json.load(handle)
        except json.JSONDecodeError as exc:
            raise DatasetError(f"{path} is not valid JSON: {exc}") from exc

    if not isinstance(raw, list):
        raise DatasetError(f"{path} must contain a JSON list of pallets.")

    pallets: List[Pallet] = []
    ids = set()
    slots = set()
    for index, record in enumerate(raw):
        try:
            pallet = parse_pallet_record(record)
        except DatasetError as exc:
            raise DatasetError(f"record {index}: {exc}") from exc
        if pallet.id in ids:
            raise DatasetError(f"record {index}: duplicate pallet id {pallet.id}.")
        if pallet.logical_address.id in slots:
            raise DatasetError(
                f"record {index}: slot {pallet.logical_address.id} already occupied."
            )
        ids.add(pallet.id)
        slots.add(pallet.logical_address.id)
        pallets.append(pallet)
    return pallets


# ══════════════════════════════════════════════════════════════
# DEMO FLEET
# ══════════════════════════════════════════════════════════════

def generate_demo_pallets(
    count: int = DEMO_PALLET_COUNT,
    *,
    seed: int = DEMO_SEED,
    now: Optional[datetime] = None,
    dimensions: GridDimensions = DEFAULT_DIMENSIONS,
) -> List[Pallet]:
    """Deterministic fleet for a given seed and `now`; every slot is unique."""
    capacity = len(dimensions.zones) * dimensions.slots_per_zone
    if count < 0 or count > capacity:
        raise ValueError(f"count must be between 0 and {capacity}.")

    rng = random.Random(seed)
    now = now or datetime.now(timezone.utc)
    statuses = [status for status, _ in DEMO_STATUS_WEIGHTS]
    weights = [weight for _, weight in DEMO_STATUS_WEIGHTS]

    pallets = []
    for number, flat_index in enumerate(sorted(rng.sample(range(capacity), count)), start=1):
        zone_index, slot = divmod(flat_index, dimensions.slots_per_zone)
        pallets.append(Pallet(
            id=f"PAL-{number:05d}",
            destination=rng.choice(DEMO_DESTINATIONS),
            status=rng.choices(statuses, weights=weights)[0],
            urgency=rng.choice(list(Urgency)),
            weight_kg=round(rng.uniform(120.0, 980.0), 1),
            last_scanned_at=now - timedelta(minutes=rng.randint(5, 72 * 60)),
            logical_address=location_at(dimensions.zones[zone_index], slot, dimensions),
        ))
    return pallets
