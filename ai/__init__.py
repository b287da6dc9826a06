"""
SpaceFlow AI Module - Intent Translation
==========================================
The LLM only proposes an intent. Nothing it returns reaches the store
without passing the guardrails, the schema parser and the validator.
"""

from ai.guardrails import (
    GuardrailResult,
    PromptRejected,
    check_prompt_guardrail,
    prompt_rejection_reason,
)

__all__ = [
    "GuardrailResult",
    "PromptRejected",
    "check_prompt_guardrail",
    "prompt_rejection_reason",
]
