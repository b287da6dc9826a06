"""
SpaceFlow Command Layer - Rejection Model
===========================================
Structured reasons for intents and commands that did not execute.

This is NOT an exception. It is an explanation structure that is
returned to the caller of the intent pipeline and rendered into the
HTTP error envelope.

Every rejection must be:
- Deterministic (same input, same rejection)
- Machine-readable (code)
- Human-readable (message)
- Attributable (policy_name names the check that refused)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for a refused intent or action.

    Fields:
        code:        Machine-readable code (e.g. 'PROMPT_TOO_LONG').
        message:     Human-readable explanation.
        policy_name: Name of the check that caused the rejection.
        details:     Optional extra diagnostics (e.g. the violated rule).
    """

    code: str
    message: str
    policy_name: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        """Serialize for the HTTP envelope."""
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
            "details": dict(self.details),
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known rejection codes.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Prompt input ──────────────────────────────────────────
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    PROMPT_MISSING = "PROMPT_MISSING"
    PROMPT_TOO_LONG = "PROMPT_TOO_LONG"

    # ── Upstream translation ──────────────────────────────────
    UPSTREAM_NO_CONTENT = "UPSTREAM_NO_CONTENT"
    UPSTREAM_INVALID_JSON = "UPSTREAM_INVALID_JSON"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    SCHEMA_VALIDATION_FAILED = "SCHEMA_VALIDATION_FAILED"

    # ── Intent invariants ─────────────────────────────────────
    INTENT_INVARIANT_VIOLATED = "INTENT_INVARIANT_VIOLATED"

    # ── Resolution ────────────────────────────────────────────
    PALLET_NOT_FOUND = "PALLET_NOT_FOUND"
    NO_MATCHING_PALLETS = "NO_MATCHING_PALLETS"
    NOTHING_TO_UNDO = "NOTHING_TO_UNDO"
    NOTHING_TO_REDO = "NOTHING_TO_REDO"
    NO_FREE_SLOT = "NO_FREE_SLOT"

    # ── Request lifecycle ─────────────────────────────────────
    REQUEST_IN_FLIGHT = "REQUEST_IN_FLIGHT"
    REQUEST_SUPERSEDED = "REQUEST_SUPERSEDED"

    # ── General ───────────────────────────────────────────────
    INTERNAL_ERROR = "INTERNAL_ERROR"
