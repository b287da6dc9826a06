"""
SpaceFlow Warehouse Engine - Action Overrides
===============================================
Typed per-action override records threaded through single and bulk
actions. Which override is legal for which action is decided before
the mutation engine runs; the engine only reads the struct it expects.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from engines.warehouse.models import VALID_ZONES, PalletAction, PalletStatus


# ══════════════════════════════════════════════════════════════
# OVERRIDE STRUCTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RelocateOverrides:
    """Optional target zone for a relocation. None keeps the current zone."""
    target_zone: Optional[str] = None

    def __post_init__(self):
        if self.target_zone is not None and self.target_zone not in VALID_ZONES:
            raise ValueError(f"target_zone '{self.target_zone}' not valid.")


@dataclass(frozen=True)
class SetStatusOverrides:
    target_status: PalletStatus

    def __post_init__(self):
        if not isinstance(self.target_status, PalletStatus):
            raise ValueError("target_status must be PalletStatus.")


@dataclass(frozen=True)
class SetDestinationOverrides:
    target_destination: str

    def __post_init__(self):
        if not isinstance(self.target_destination, str) or not self.target_destination.strip():
            raise ValueError("target_destination must be a non-empty string.")


ActionOverrides = Union[RelocateOverrides, SetStatusOverrides, SetDestinationOverrides]

OVERRIDE_TYPES = {
    PalletAction.RELOCATE: RelocateOverrides,
    PalletAction.SET_STATUS: SetStatusOverrides,
    PalletAction.SET_DESTINATION: SetDestinationOverrides,
}

# Actions that cannot run without their override struct.
ACTIONS_REQUIRING_OVERRIDES = frozenset({
    PalletAction.SET_STATUS,
    PalletAction.SET_DESTINATION,
})


def overrides_for(
    action: PalletAction,
    *,
    target_zone: Optional[str] = None,
    target_status: Optional[str] = None,
    target_destination: Optional[str] = None,
) -> Optional[ActionOverrides]:
    """
    Build the override struct for `action` from flat intent fields.

    Fields that do not belong to `action` are ignored here; their
    legality is checked upstream.
    """
    if action is PalletAction.RELOCATE:
        return RelocateOverrides(target_zone=target_zone)
    if action is PalletAction.SET_STATUS:
        if target_status is None:
            raise ValueError("set_status requires target_status.")
        return SetStatusOverrides(target_status=PalletStatus(target_status))
    if action is PalletAction.SET_DESTINATION:
        if target_destination is None:
            raise ValueError("set_destination requires target_destination.")
        return SetDestinationOverrides(target_destination=target_destination)
    return None


def require_overrides(
    action: PalletAction,
    overrides: Optional[ActionOverrides],
) -> Optional[ActionOverrides]:
    """Check `overrides` is the struct `action` expects. Raises ValueError."""
    expected = OVERRIDE_TYPES.get(action)
    if overrides is None:
        if action in ACTIONS_REQUIRING_OVERRIDES:
            raise ValueError(f"{action.value} requires {expected.__name__}.")
        return None
    if expected is None or not isinstance(overrides, expected):
        raise ValueError(
            f"{type(overrides).__name__} is not valid for action {action.value}."
        )
    return overrides
