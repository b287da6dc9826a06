"""
SpaceFlow Warehouse Engine - Policies
=======================================
Action-level validation policies. Each returns a RejectionReason when
the action request is illegal, None otherwise.
"""

from __future__ import annotations

from typing import Optional

from core.commands.rejection import ReasonCode, RejectionReason
from engines.warehouse.models import PalletAction


def is_blank(value: Optional[str]) -> bool:
    """None and whitespace-only strings both count as absent."""
    return value is None or not value.strip()


def required_override_policy(
    action: Optional[PalletAction],
    *,
    target_zone: Optional[str] = None,
    target_status: Optional[str] = None,
    target_destination: Optional[str] = None,
) -> Optional[RejectionReason]:
    """set_status needs a status, set_destination needs a destination."""
    if action is PalletAction.SET_STATUS and is_blank(target_status):
        return RejectionReason(
            code=ReasonCode.INTENT_INVARIANT_VIOLATED,
            message="Action set_status requires targetStatus.",
            policy_name="required_override_policy",
            details={"rule": "set_status_requires_target_status"},
        )
    if action is PalletAction.SET_DESTINATION and is_blank(target_destination):
        return RejectionReason(
            code=ReasonCode.INTENT_INVARIANT_VIOLATED,
            message="Action set_destination requires targetDestination.",
            policy_name="required_override_policy",
            details={"rule": "set_destination_requires_target_destination"},
        )
    return None


def override_legality_policy(
    action: Optional[PalletAction],
    *,
    target_zone: Optional[str] = None,
    target_status: Optional[str] = None,
    target_destination: Optional[str] = None,
) -> Optional[RejectionReason]:
    """
    Reject targeting fields that do not belong to the action.

    targetZone only on relocate, targetStatus only on set_status,
    targetDestination only on set_destination.
    """
    owners = (
        ("targetZone", target_zone, PalletAction.RELOCATE),
        ("targetStatus", target_status, PalletAction.SET_STATUS),
        ("targetDestination", target_destination, PalletAction.SET_DESTINATION),
    )
    for field_name, value, owner in owners:
        if not is_blank(value) and action is not owner:
            action_name = action.value if action is not None else "none"
            return RejectionReason(
                code=ReasonCode.INTENT_INVARIANT_VIOLATED,
                message=(
                    f"{field_name} is only valid for {owner.value}, "
                    f"not for {action_name}."
                ),
                policy_name="override_legality_policy",
                details={
                    "rule": "override_not_allowed_for_action",
                    "field": field_name,
                    "action": action_name,
                },
            )
    return None

