"""
SpaceFlow AI Intents - Intent Validator
=========================================
Restores trust in a translated intent before it reaches the resolver.

Order of checks:
  0. Blank targeting strings are cleared to null
  1. Text fallbacks: narrow filter status/urgencyLevel left at "all"
     when the prompt carries an unambiguous keyword
  2. Scan override: an action prompt mentioning "scan" becomes a scan
     with zone/status/destination targeting cleared
  3. Intent-type invariants (filter vs action)
  4. Required targets (set_status, set_destination)
  5. Normalization: set_destination to a status word becomes set_status
  6. Override legality per action

A failure raises IntentValidationError naming the violated rule. The
input intent is never mutated; each step returns a new Intent.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Optional, Tuple

from core.commands.rejection import ReasonCode, RejectionReason
from engines.warehouse.filters import FILTER_ALL
from engines.warehouse.models import STATUS_VALUES, PalletAction
from engines.warehouse.policies import (
    is_blank,
    override_legality_policy,
    required_override_policy,
)
from ai.intents.models import Intent, IntentType


logger = logging.getLogger("spaceflow.intents")


# ══════════════════════════════════════════════════════════════
# KEYWORD CUES (English and German operator phrasing)
# ══════════════════════════════════════════════════════════════

URGENCY_CUES: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("high", re.compile(r"\bhigh\s+urgency\b|\burgent\b|\bhoch\b|\bdringend\b")),
    ("medium", re.compile(r"\bmedium\s+urgency\b|\bmittel\b")),
    ("low", re.compile(r"\blow\s+urgency\b|\bniedrig\b")),
)

STATUS_CUES: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("delayed", re.compile(r"\bdelayed\b|\boverdue\b|\büberfällig\b")),
    ("stored", re.compile(r"\bstored\b|\blager\b")),
    ("transit", re.compile(r"\btransit\b|\bin transit\b")),
)

SCAN_CUE = re.compile(r"\bscan\b|\bscanne\b")


# ══════════════════════════════════════════════════════════════
# ERRORS
# ══════════════════════════════════════════════════════════════

class IntentValidationError(ValueError):
    """A translated intent violated a cross-field rule."""

    def __init__(self, rule: str, message: str, policy_name: str = "validate_intent"):
        self.code = ReasonCode.INTENT_INVARIANT_VIOLATED
        self.rule = rule
        self.message = message
        self.policy_name = policy_name
        super().__init__(f"[{rule}] {message}")

    def to_rejection(self) -> RejectionReason:
        return RejectionReason(
            code=self.code,
            message=self.message,
            policy_name=self.policy_name,
            details={"rule": self.rule},
        )

    @classmethod
    def from_rejection(cls, rejection: RejectionReason) -> "IntentValidationError":
        return cls(
            rule=rejection.details.get("rule", rejection.policy_name),
            message=rejection.message,
            policy_name=rejection.policy_name,
        )


# ══════════════════════════════════════════════════════════════
# STEPS
# ══════════════════════════════════════════════════════════════

def _first_cue(text: str, cues) -> Optional[str]:
    for value, pattern in cues:
        if pattern.search(text):
            return value
    return None


def clear_blank_targets(intent: Intent) -> Intent:
    """Empty or whitespace-only targeting strings mean "not given"."""
    blanks = {
        field: None
        for field in ("target_pallet_id", "target_zone", "target_status", "target_destination")
        if getattr(intent, field) is not None and is_blank(getattr(intent, field))
    }
    if not blanks:
        return intent
    return replace(intent, **blanks)


def apply_text_fallbacks(intent: Intent, prompt: str) -> Intent:
    """Only narrows defaults. Explicit filter values are never replaced."""
    text = prompt.lower()
    pallet_filter = intent.filter

    if pallet_filter.urgency_level == FILTER_ALL:
        urgency = _first_cue(text, URGENCY_CUES)
        if urgency:
            pallet_filter = replace(pallet_filter, urgency_level=urgency)

    if pallet_filter.status == FILTER_ALL:
        status = _first_cue(text, STATUS_CUES)
        if status:
            pallet_filter = replace(pallet_filter, status=status)

    if pallet_filter is intent.filter:
        return intent
    logger.debug(f"Prompt fallbacks narrowed filter to {pallet_filter.to_dict()}")
    return replace(intent, filter=pallet_filter)


def apply_scan_override(intent: Intent, prompt: str) -> Intent:
    if not intent.is_action or not SCAN_CUE.search(prompt.lower()):
        return intent
    return replace(
        intent,
        action=PalletAction.SCAN,
        target_zone=None,
        target_status=None,
        target_destination=None,
    )


def check_intent_type(intent: Intent) -> None:
    if intent.intent_type is IntentType.ACTION:
        if intent.action is None:
            raise IntentValidationError(
                "action_intent_requires_action",
                "Action intent must include an action.",
            )
        return

    if intent.action is not None:
        raise IntentValidationError(
            "filter_intent_forbids_action",
            "Filter intent must not include an action.",
        )
    if any(not is_blank(value) for value in intent.targeting_fields.values()):
        raise IntentValidationError(
            "filter_intent_forbids_targeting",
            "Filter intent must not include action targeting fields.",
        )


def normalize_status_destination(intent: Intent) -> Intent:
    """set_destination to 'stored' / 'transit' / 'delayed' means set_status."""
    if intent.action is not PalletAction.SET_DESTINATION or intent.target_destination is None:
        return intent
    normalized = intent.target_destination.strip().lower()
    if normalized not in STATUS_VALUES:
        return intent
    logger.info(
        f"Normalized set_destination '{intent.target_destination}' to set_status"
    )
    return replace(
        intent,
        action=PalletAction.SET_STATUS,
        target_status=normalized,
        target_destination=None,
    )


def _raise_on(rejection: Optional[RejectionReason]) -> None:
    if rejection is not None:
        raise IntentValidationError.from_rejection(rejection)


# ══════════════════════════════════════════════════════════════
# ENTRY POINT
# ══════════════════════════════════════════════════════════════

def validate_intent(intent: Intent, prompt: str) -> Intent:
    """
    Run every check in order and return the validated intent.

    Raises:
        IntentValidationError: on the first violated rule.
    """
    intent = clear_blank_targets(intent)
    intent = apply_text_fallbacks(intent, prompt)
    intent = apply_scan_override(intent, prompt)

    check_intent_type(intent)
    if not intent.is_action:
        return intent

    targets = dict(
        target_zone=intent.target_zone,
        target_status=intent.target_status,
        target_destination=intent.target_destination,
    )
    _raise_on(required_override_policy(intent.action, **targets))

    intent = normalize_status_destination(intent)

    _raise_on(override_legality_policy(
        intent.action,
        target_zone=intent.target_zone,
        target_status=intent.target_status,
        target_destination=intent.target_destination,
    ))
    return intent
