"""
SpaceFlow AI Guardrails - Prompt Input Boundaries
===================================================
Checks applied to operator input BEFORE any call to the translator.

Rules (in order):
  1. Request bodies over 2000 bytes are refused
  2. The prompt must be a non-blank string
  3. The prompt must be at most 500 characters
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from core.commands.rejection import ReasonCode, RejectionReason


MAX_REQUEST_BYTES = 2000
MAX_PROMPT_CHARS = 500


# ══════════════════════════════════════════════════════════════
# GUARDRAIL CHECK
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GuardrailResult:
    """Result of a prompt guardrail check."""
    allowed: bool
    reason: str
    code: Optional[str] = None


def check_prompt_guardrail(
    prompt: Any,
    body_bytes: Optional[int] = None,
) -> GuardrailResult:
    """
    Enforce prompt guardrails.

    Args:
        prompt:     Raw prompt value from the request body.
        body_bytes: Size of the raw request body, when known.
    """
    if body_bytes is not None and body_bytes > MAX_REQUEST_BYTES:
        return GuardrailResult(
            allowed=False,
            reason=f"Payload too large. Maximum request size is {MAX_REQUEST_BYTES} bytes.",
            code=ReasonCode.PAYLOAD_TOO_LARGE,
        )

    if not isinstance(prompt, str) or not prompt.strip():
        return GuardrailResult(
            allowed=False,
            reason="A non-empty text prompt is required.",
            code=ReasonCode.PROMPT_MISSING,
        )

    if len(prompt) > MAX_PROMPT_CHARS:
        return GuardrailResult(
            allowed=False,
            reason=f"Prompt is too long. Maximum length is {MAX_PROMPT_CHARS} characters.",
            code=ReasonCode.PROMPT_TOO_LONG,
        )

    return GuardrailResult(allowed=True, reason="Prompt accepted.")


def prompt_rejection_reason(result: GuardrailResult) -> Optional[RejectionReason]:
    """Convert a denied guardrail result into a RejectionReason."""
    if result.allowed:
        return None
    return RejectionReason(
        code=result.code,
        message=result.reason,
        policy_name="check_prompt_guardrail",
    )


class PromptRejected(ValueError):
    """Raised by require_prompt when a guardrail refuses the input."""

    def __init__(self, rejection: RejectionReason):
        self.rejection = rejection
        self.code = rejection.code
        super().__init__(rejection.message)


def require_prompt(prompt: Any, body_bytes: Optional[int] = None) -> str:
    """Return the prompt unchanged or raise PromptRejected."""
    rejection = prompt_rejection_reason(check_prompt_guardrail(prompt, body_bytes))
    if rejection is not None:
        raise PromptRejected(rejection)
    return prompt
