"""
SpaceFlow AI Translator - Natural Language to Intent JSON
===========================================================
Thin client around the OpenAI chat completions API with structured
output. Returns the decoded JSON object; schema parsing and invariant
checks happen downstream.

Failures raise TranslationError carrying a reason code:
  UPSTREAM_TIMEOUT      request exceeded the configured timeout
  UPSTREAM_UNAVAILABLE  client could not be built or the API errored
  UPSTREAM_NO_CONTENT   completion carried no message content
  UPSTREAM_INVALID_JSON content was not a JSON document
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import openai
from openai import OpenAI

from core.commands.rejection import ReasonCode, RejectionReason
from ai.intents.models import INTENT_JSON_SCHEMA


logger = logging.getLogger("spaceflow.translator")

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.1
DEFAULT_TIMEOUT_S = 15.0
DEFAULT_MAX_RETRIES = 1

SYSTEM_PROMPT = """You are the assistant of the "SpaceFlow" warehouse management system.
Translate the operator's natural language into one structured intent object.

intentType rules:
- intentType="filter" when the operator only wants to show, filter or highlight pallets.
- intentType="action" when the operator wants an operational change
  (scan, relocate, pick, load, putaway, receive, delay, set_status, set_destination).

For intentType="action":
- action MUST be set.
- filter describes the group of target pallets.
- maxTargets: a sensible count between 1 and 20, 10 when unclear.
- targetPalletId for one concrete pallet (e.g. "PAL-00001").
- targetZone only when relocating into a specific zone (A/B/C).
- targetStatus only for status changes (stored/transit/delayed).
- targetDestination only for destination changes.

For intentType="filter":
- action = null, maxTargets = 10.
- targetPalletId/targetZone/targetStatus/targetDestination = null.

Filter rules:
- Fields that are not mentioned: palletId = null, status/urgencyLevel = "all",
  destination = null, weightMinKg/weightMaxKg = null.
- When the operator names a pallet id (e.g. "PAL-00001"), set filter.palletId.
- Weights are always kg: "under X kg" => weightMaxKg = X, "over X kg" => weightMinKg = X,
  "between X and Y kg" => weightMinKg = X, weightMaxKg = Y.
- Normalize colors to hex codes (e.g. red -> #ef4444).

Examples:
- "Show me PAL-00001." => filter with filter.palletId = "PAL-00001"
- "Show all overdue shipments for Zürich and mark them red." => filter
- "Relocate all delayed pallets in Bern." => action relocate
- "Scan the heavy Zürich pallets." => action scan
- "Move PAL-00001 to zone C." => action relocate + targetPalletId + targetZone
- "Change PAL-00001 status to stored." => action set_status + targetPalletId + targetStatus
- "Change PAL-00002 destination to Bern." => action set_destination + targetPalletId + targetDestination"""

RESPONSE_FORMAT = {
    "type": "json_schema",
    "json_schema": {
        "name": "logistics_intent",
        "strict": True,
        "schema": INTENT_JSON_SCHEMA,
    },
}


class TranslationError(RuntimeError):
    """The translator could not produce a JSON intent."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

    def to_rejection(self) -> RejectionReason:
        return RejectionReason(
            code=self.code,
            message=self.message,
            policy_name="intent_translator",
        )


class IntentTranslator:
    """
    Calls the LLM once per prompt.

    Args:
        client:      OpenAI-compatible client. Built lazily when None.
        model:       Chat model name.
        temperature: Sampling temperature.
        timeout_s:   Per-request timeout passed to the client.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        if timeout_s <= 0:
            raise ValueError("timeout_s must be positive.")
        self._client = client
        self.model = model
        self.temperature = temperature
        self.timeout_s = timeout_s
        self.max_retries = max_retries

    def _get_client(self):
        if self._client is None:
            try:
                self._client = OpenAI(timeout=self.timeout_s, max_retries=self.max_retries)
            except openai.OpenAIError as exc:
                logger.warning(f"OpenAI client unavailable: {exc}")
                raise TranslationError(
                    ReasonCode.UPSTREAM_UNAVAILABLE,
                    "The intent translator is not configured.",
                ) from exc
        return self._client

    def build_messages(self, prompt: str) -> list:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    def translate(self, prompt: str) -> dict:
        """
        Translate `prompt` into a decoded (not yet validated) intent object.

        Raises:
            TranslationError: see module docstring for codes.
        """
        client = self._get_client()
        try:
            completion = client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(prompt),
                response_format=RESPONSE_FORMAT,
                temperature=self.temperature,
                timeout=self.timeout_s,
            )
        except openai.APITimeoutError as exc:
            logger.warning(f"Intent translation timed out after {self.timeout_s}s")
            raise TranslationError(
                ReasonCode.UPSTREAM_TIMEOUT,
                f"The intent translator did not answer within {self.timeout_s:g} seconds.",
            ) from exc
        except openai.OpenAIError as exc:
            logger.warning(f"Intent translation failed: {exc}")
            raise TranslationError(
                ReasonCode.UPSTREAM_UNAVAILABLE,
                "The intent translator is unavailable.",
            ) from exc

        try:
            content = completion.choices[0].message.content
        except (AttributeError, IndexError) as exc:
            raise TranslationError(
                ReasonCode.UPSTREAM_NO_CONTENT,
                "The intent translator returned no content.",
            ) from exc
        if not content:
            raise TranslationError(
                ReasonCode.UPSTREAM_NO_CONTENT,
                "The intent translator returned no content.",
            )

        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            logger.warning("Intent translator returned invalid JSON")
            raise TranslationError(
                ReasonCode.UPSTREAM_INVALID_JSON,
                "The intent translator did not return valid JSON.",
            ) from exc

        logger.debug(f"Translated prompt into {payload}")
        return payload
