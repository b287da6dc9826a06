"""
SpaceFlow Warehouse Engine - Domain Model
===========================================
Pallets, storage locations and lifecycle events.

RULES:
- Pallet and StorageLocation are frozen; a mutation replaces the whole
  value, so a held reference is already an exact pre-mutation snapshot
- PalletEvent is append-only and never edited
- All timestamps are timezone-aware UTC datetimes
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class PalletStatus(Enum):
    STORED = "stored"
    TRANSIT = "transit"
    DELAYED = "delayed"


class Urgency(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PalletAction(Enum):
    """Closed action vocabulary recognized by the mutation engine."""
    RECEIVE = "receive"
    PUTAWAY = "putaway"
    SCAN = "scan"
    RELOCATE = "relocate"
    PICK = "pick"
    LOAD = "load"
    DELAY = "delay"
    SET_STATUS = "set_status"
    SET_DESTINATION = "set_destination"


class PalletEventType(Enum):
    RECEIVED = "received"
    PUTAWAY = "putaway"
    SCAN = "scan"
    RELOCATED = "relocated"
    PICKED = "picked"
    LOADED = "loaded"
    DELAY_FLAGGED = "delay_flagged"


class EventSource(Enum):
    SCANNER = "scanner"
    OPERATOR = "operator"
    SYSTEM = "system"


VALID_ZONES = ("A", "B", "C")
SLOT_ID_FORMAT = "LOC-{zone}-{aisle:02d}-{bay:02d}-{level:02d}"
STATUS_VALUES = frozenset(s.value for s in PalletStatus)
URGENCY_VALUES = frozenset(u.value for u in Urgency)
ACTION_VALUES = frozenset(a.value for a in PalletAction)


# ══════════════════════════════════════════════════════════════
# STORAGE LOCATION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StorageLocation:
    """
    One physical slot. `id` is derived from (zone, aisle, bay, level)
    and is the only key used for collision checks.
    """
    zone: str
    aisle: int
    bay: int
    level: int

    def __post_init__(self):
        if not self.zone or not isinstance(self.zone, str):
            raise ValueError("zone must be a non-empty string.")
        for name in ("aisle", "bay", "level"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive integer.")

    @property
    def id(self) -> str:
        return SLOT_ID_FORMAT.format(
            zone=self.zone, aisle=self.aisle, bay=self.bay, level=self.level,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "zone": self.zone,
            "aisle": self.aisle,
            "bay": self.bay,
            "level": self.level,
        }


# ══════════════════════════════════════════════════════════════
# PALLET
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Pallet:
    """The mutable unit of inventory, modelled as a replaceable value."""
    id: str
    destination: str
    status: PalletStatus
    urgency: Urgency
    weight_kg: float
    last_scanned_at: datetime
    logical_address: StorageLocation

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError("id must be a non-empty string.")
        if not isinstance(self.destination, str):
            raise ValueError("destination must be a string.")
        if not isinstance(self.status, PalletStatus):
            raise ValueError(
                f"status must be PalletStatus, got {type(self.status).__name__}."
            )
        if not isinstance(self.urgency, Urgency):
            raise ValueError(
                f"urgency must be Urgency, got {type(self.urgency).__name__}."
            )
        if (
            isinstance(self.weight_kg, bool)
            or not isinstance(self.weight_kg, (int, float))
            or self.weight_kg <= 0
        ):
            raise ValueError("weight_kg must be a positive number.")
        if not isinstance(self.last_scanned_at, datetime):
            raise ValueError("last_scanned_at must be a datetime.")
        if self.last_scanned_at.tzinfo is None:
            raise ValueError("last_scanned_at must be timezone-aware.")
        if not isinstance(self.logical_address, StorageLocation):
            raise ValueError("logical_address must be StorageLocation.")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "destination": self.destination,
            "status": self.status.value,
            "urgency": self.urgency.value,
            "weightKg": self.weight_kg,
            "lastScannedAt": self.last_scanned_at.isoformat(),
            "logicalAddress": self.logical_address.to_dict(),
        }


# ══════════════════════════════════════════════════════════════
# PALLET EVENT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PalletEvent:
    """Immutable lifecycle record. References its pallet by id only."""
    id: str
    pallet_id: str
    type: PalletEventType
    at: datetime
    actor: str
    source: EventSource
    note: Optional[str] = None

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError("id must be a non-empty string.")
        if not self.pallet_id:
            raise ValueError("pallet_id must be non-empty.")
        if not isinstance(self.type, PalletEventType):
            raise ValueError("type must be PalletEventType.")
        if not isinstance(self.at, datetime) or self.at.tzinfo is None:
            raise ValueError("at must be a timezone-aware datetime.")
        if not isinstance(self.source, EventSource):
            raise ValueError("source must be EventSource.")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "palletId": self.pallet_id,
            "type": self.type.value,
            "at": self.at.isoformat(),
            "actor": self.actor,
            "source": self.source.value,
            "note": self.note,
        }
