"""
SpaceFlow AI Intents - Intent Model & Schema Parsing
======================================================
The structured command produced by the intent translator.

External JSON is parsed exactly once, here, into a typed Intent. Any
mismatch raises IntentSchemaError listing every problem found; nothing
partially parsed ever reaches the validator or the mutation engine.

Cross-field invariants (filter vs action, required targets) are NOT
checked here. They belong to ai.intents.validator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from engines.warehouse.filters import (
    FILTER_ALL,
    HEX_COLOR_RE,
    VALID_FILTER_STATUSES,
    VALID_FILTER_URGENCIES,
    PalletFilter,
)
from engines.warehouse.models import (
    ACTION_VALUES,
    STATUS_VALUES,
    VALID_ZONES,
    PalletAction,
)


DEFAULT_MAX_TARGETS = 10
MIN_MAX_TARGETS = 1
MAX_MAX_TARGETS = 50

SCHEMA_MISMATCH_MESSAGE = "The AI response did not match the expected intent schema."


class IntentType(Enum):
    FILTER = "filter"
    ACTION = "action"


INTENT_TYPE_VALUES = frozenset(t.value for t in IntentType)


# ══════════════════════════════════════════════════════════════
# INTENT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Intent:
    """A translated operator command, either a display filter or an action."""
    intent_type: IntentType
    filter: PalletFilter = field(default_factory=PalletFilter)
    action: Optional[PalletAction] = None
    max_targets: int = DEFAULT_MAX_TARGETS
    target_pallet_id: Optional[str] = None
    target_zone: Optional[str] = None
    target_status: Optional[str] = None
    target_destination: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.intent_type, IntentType):
            raise ValueError("intent_type must be IntentType.")
        if not isinstance(self.filter, PalletFilter):
            raise ValueError("filter must be PalletFilter.")
        if self.action is not None and not isinstance(self.action, PalletAction):
            raise ValueError("action must be PalletAction or None.")
        if (
            isinstance(self.max_targets, bool)
            or not isinstance(self.max_targets, int)
            or not MIN_MAX_TARGETS <= self.max_targets <= MAX_MAX_TARGETS
        ):
            raise ValueError(
                f"max_targets must be an integer in "
                f"[{MIN_MAX_TARGETS}, {MAX_MAX_TARGETS}]."
            )

    @property
    def is_action(self) -> bool:
        return self.intent_type is IntentType.ACTION

    @property
    def targeting_fields(self) -> Dict[str, Optional[str]]:
        return {
            "targetPalletId": self.target_pallet_id,
            "targetZone": self.target_zone,
            "targetStatus": self.target_status,
            "targetDestination": self.target_destination,
        }

    def to_dict(self) -> dict:
        data = {
            "intentType": self.intent_type.value,
            "filter": self.filter.to_dict(),
            "action": self.action.value if self.action else None,
            "maxTargets": self.max_targets,
        }
        data.update(self.targeting_fields)
        return data


# ══════════════════════════════════════════════════════════════
# JSON SCHEMA (sent to the translator as structured output format)
# ══════════════════════════════════════════════════════════════

def _nullable(type_name: str) -> dict:
    return {"type": [type_name, "null"]}


def _nullable_enum(values) -> dict:
    return {"type": ["string", "null"], "enum": sorted(values) + [None]}


FILTER_JSON_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "required": [
        "palletId", "destination", "status", "urgencyLevel",
        "weightMinKg", "weightMaxKg", "highlightColor",
    ],
    "properties": {
        "palletId": _nullable("string"),
        "destination": _nullable("string"),
        "status": {"type": "string", "enum": sorted(VALID_FILTER_STATUSES)},
        "urgencyLevel": {"type": "string", "enum": sorted(VALID_FILTER_URGENCIES)},
        "weightMinKg": _nullable("number"),
        "weightMaxKg": _nullable("number"),
        "highlightColor": _nullable("string"),
    },
}

INTENT_JSON_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "required": [
        "intentType", "filter", "action", "maxTargets",
        "targetPalletId", "targetZone", "targetStatus", "targetDestination",
    ],
    "properties": {
        "intentType": {"type": "string", "enum": sorted(INTENT_TYPE_VALUES)},
        "filter": FILTER_JSON_SCHEMA,
        "action": _nullable_enum(ACTION_VALUES),
        "maxTargets": {"type": "integer"},
        "targetPalletId": _nullable("string"),
        "targetZone": _nullable_enum(VALID_ZONES),
        "targetStatus": _nullable_enum(STATUS_VALUES),
        "targetDestination": _nullable("string"),
    },
}


# ══════════════════════════════════════════════════════════════
# PARSING
# ══════════════════════════════════════════════════════════════

class IntentSchemaError(ValueError):
    """External intent JSON did not match the schema."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(SCHEMA_MISMATCH_MESSAGE)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _optional_str(data: dict, key: str, path: str, errors: List[str]) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        errors.append(f"{path}{key}: expected string or null")
        return None
    return value


def _optional_number(data: dict, key: str, path: str, errors: List[str]) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    if not _is_number(value):
        errors.append(f"{path}{key}: expected number or null")
        return None
    return value


def _choice(data: dict, key: str, allowed, default, path: str, errors: List[str]):
    value = data.get(key, default)
    if not (value is None or isinstance(value, str)) or value not in allowed:
        choices = sorted(choice for choice in allowed if choice is not None)
        errors.append(f"{path}{key}: {value!r} is not one of {choices}")
        return default
    return value


def _reject_unknown(data: dict, known, path: str, errors: List[str]) -> None:
    for key in sorted(set(data) - set(known)):
        errors.append(f"{path}{key}: unexpected field")


def parse_filter_payload(data: Any, errors: List[str], path: str = "filter.") -> PalletFilter:
    if not isinstance(data, dict):
        errors.append(f"{path[:-1]}: expected object")
        return PalletFilter()

    _reject_unknown(data, FILTER_JSON_SCHEMA["properties"], path, errors)

    pallet_id = _optional_str(data, "palletId", path, errors)
    destination = _optional_str(data, "destination", path, errors)
    status = _choice(data, "status", VALID_FILTER_STATUSES, FILTER_ALL, path, errors)
    urgency = _choice(data, "urgencyLevel", VALID_FILTER_URGENCIES, FILTER_ALL, path, errors)
    weight_min = _optional_number(data, "weightMinKg", path, errors)
    weight_max = _optional_number(data, "weightMaxKg", path, errors)
    color = _optional_str(data, "highlightColor", path, errors)

    if weight_min is not None and weight_max is not None and weight_min > weight_max:
        errors.append(f"{path}weightMinKg: greater than weightMaxKg")
    if color is not None and not HEX_COLOR_RE.match(color):
        errors.append(f"{path}highlightColor: {color!r} is not a hex color")
        color = None

    return PalletFilter(
        pallet_id=pallet_id,
        destination=destination,
        status=status,
        urgency_level=urgency,
        weight_min_kg=weight_min,
        weight_max_kg=weight_max,
        highlight_color=color,
    )


def parse_intent_payload(data: Any) -> Intent:
    """
    Parse translator JSON (already decoded) into an Intent.

    Optional fields may be omitted: targets default to null, filter
    status/urgencyLevel to "all" and maxTargets to 10.

    Raises:
        IntentSchemaError: with every mismatch in `errors`.
    """
    if not isinstance(data, dict):
        raise IntentSchemaError(["$: expected object"])

    errors: List[str] = []
    _reject_unknown(data, INTENT_JSON_SCHEMA["properties"], "", errors)

    if "intentType" not in data:
        errors.append("intentType: required")
    intent_type = _choice(data, "intentType", INTENT_TYPE_VALUES, IntentType.FILTER.value, "", errors)

    if "filter" not in data:
        errors.append("filter: required")
    pallet_filter = parse_filter_payload(data.get("filter", {}), errors)

    action = _choice(data, "action", ACTION_VALUES | {None}, None, "", errors)

    max_targets = data.get("maxTargets", DEFAULT_MAX_TARGETS)
    if (
        isinstance(max_targets, bool)
        or not isinstance(max_targets, int)
        or not MIN_MAX_TARGETS <= max_targets <= MAX_MAX_TARGETS
    ):
        errors.append(
            f"maxTargets: expected integer in [{MIN_MAX_TARGETS}, {MAX_MAX_TARGETS}]"
        )
        max_targets = DEFAULT_MAX_TARGETS

    target_pallet_id = _optional_str(data, "targetPalletId", "", errors)
    target_zone = _choice(data, "targetZone", set(VALID_ZONES) | {None}, None, "", errors)
    target_status = _choice(data, "targetStatus", STATUS_VALUES | {None}, None, "", errors)
    target_destination = _optional_str(data, "targetDestination", "", errors)

    if errors:
        raise IntentSchemaError(errors)

    return Intent(
        intent_type=IntentType(intent_type),
        filter=pallet_filter,
        action=PalletAction(action) if action is not None else None,
        max_targets=max_targets,
        target_pallet_id=target_pallet_id,
        target_zone=target_zone,
        target_status=target_status,
        target_destination=target_destination,
    )
