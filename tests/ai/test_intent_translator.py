"""
SpaceFlow - Intent Translator Tests
=====================================
Uses an in-memory stand-in for the OpenAI client; no network access.
"""

import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from ai.translator import (
    RESPONSE_FORMAT,
    SYSTEM_PROMPT,
    IntentTranslator,
    TranslationError,
)
from core.commands.rejection import ReasonCode

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class FakeCompletions:
    def __init__(self, content=None, error=None, choices=None):
        self.content = content
        self.error = error
        self.choices = choices
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.choices is not None:
            return SimpleNamespace(choices=self.choices)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(**kwargs):
    completions = FakeCompletions(**kwargs)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


class TestTranslate:
    def test_returns_decoded_payload(self):
        client, _ = fake_client(content=json.dumps({"intentType": "filter", "filter": {}}))
        payload = IntentTranslator(client=client).translate("show all pallets")
        assert payload == {"intentType": "filter", "filter": {}}

    def test_request_shape(self):
        client, completions = fake_client(content="{}")
        IntentTranslator(client=client, model="test-model", timeout_s=3.0).translate("scan PAL-1")

        call = completions.calls[0]
        assert call["model"] == "test-model"
        assert call["response_format"] is RESPONSE_FORMAT
        assert call["timeout"] == 3.0
        assert call["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert call["messages"][1] == {"role": "user", "content": "scan PAL-1"}

    def test_schema_is_strict(self):
        assert RESPONSE_FORMAT["json_schema"]["strict"] is True

    def test_timeout(self):
        client, _ = fake_client(error=openai.APITimeoutError(request=REQUEST))
        with pytest.raises(TranslationError) as exc_info:
            IntentTranslator(client=client).translate("scan")
        assert exc_info.value.code == ReasonCode.UPSTREAM_TIMEOUT

    def test_connection_error(self):
        client, _ = fake_client(error=openai.APIConnectionError(request=REQUEST))
        with pytest.raises(TranslationError) as exc_info:
            IntentTranslator(client=client).translate("scan")
        assert exc_info.value.code == ReasonCode.UPSTREAM_UNAVAILABLE

    @pytest.mark.parametrize("content", [None, ""])
    def test_no_content(self, content):
        client, _ = fake_client(content=content)
        with pytest.raises(TranslationError) as exc_info:
            IntentTranslator(client=client).translate("scan")
        assert exc_info.value.code == ReasonCode.UPSTREAM_NO_CONTENT

    def test_no_choices(self):
        client, _ = fake_client(choices=[])
        with pytest.raises(TranslationError) as exc_info:
            IntentTranslator(client=client).translate("scan")
        assert exc_info.value.code == ReasonCode.UPSTREAM_NO_CONTENT

    def test_invalid_json(self):
        client, _ = fake_client(content="not json")
        with pytest.raises(TranslationError) as exc_info:
            IntentTranslator(client=client).translate("scan")
        assert exc_info.value.code == ReasonCode.UPSTREAM_INVALID_JSON

    def test_rejection_conversion(self):
        error = TranslationError(ReasonCode.UPSTREAM_TIMEOUT, "too slow")
        rejection = error.to_rejection()
        assert rejection.code == ReasonCode.UPSTREAM_TIMEOUT
        assert rejection.policy_name == "intent_translator"


class TestClientConstruction:
    def test_missing_api_key_reports_unavailable(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(TranslationError) as exc_info:
            IntentTranslator().translate("scan")
        assert exc_info.value.code == ReasonCode.UPSTREAM_UNAVAILABLE

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ValueError):
            IntentTranslator(timeout_s=0)
