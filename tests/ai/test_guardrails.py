"""
Tests for ai.guardrails - prompt input boundaries.
"""

import pytest

from ai.guardrails import (
    MAX_PROMPT_CHARS,
    MAX_REQUEST_BYTES,
    PromptRejected,
    check_prompt_guardrail,
    prompt_rejection_reason,
    require_prompt,
)
from core.commands.rejection import ReasonCode


class TestPromptGuardrail:
    def test_normal_prompt_allowed(self):
        result = check_prompt_guardrail("Show all delayed pallets", body_bytes=64)
        assert result.allowed
        assert prompt_rejection_reason(result) is None

    @pytest.mark.parametrize("prompt", [None, "", "   ", 42, ["scan"]])
    def test_missing_prompt(self, prompt):
        result = check_prompt_guardrail(prompt)
        assert not result.allowed
        assert result.code == ReasonCode.PROMPT_MISSING

    def test_exactly_max_chars_allowed(self):
        assert check_prompt_guardrail("x" * MAX_PROMPT_CHARS).allowed

    def test_too_long(self):
        result = check_prompt_guardrail("x" * (MAX_PROMPT_CHARS + 1))
        assert result.code == ReasonCode.PROMPT_TOO_LONG

    def test_body_size_checked_first(self):
        result = check_prompt_guardrail(None, body_bytes=MAX_REQUEST_BYTES + 1)
        assert result.code == ReasonCode.PAYLOAD_TOO_LARGE

    def test_body_at_limit_allowed(self):
        assert check_prompt_guardrail("scan", body_bytes=MAX_REQUEST_BYTES).allowed


class TestRequirePrompt:
    def test_returns_prompt(self):
        assert require_prompt("scan PAL-00001") == "scan PAL-00001"

    def test_raises_with_rejection(self):
        with pytest.raises(PromptRejected) as exc_info:
            require_prompt("")
        assert exc_info.value.code == ReasonCode.PROMPT_MISSING
        assert exc_info.value.rejection.policy_name == "check_prompt_guardrail"
