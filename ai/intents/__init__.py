"""
SpaceFlow AI Intents - Public API
===================================
"""

from ai.intents.models import (
    DEFAULT_MAX_TARGETS,
    INTENT_JSON_SCHEMA,
    SCHEMA_MISMATCH_MESSAGE,
    Intent,
    IntentSchemaError,
    IntentType,
    parse_intent_payload,
)
from ai.intents.validator import IntentValidationError, validate_intent

__all__ = [
    "DEFAULT_MAX_TARGETS",
    "INTENT_JSON_SCHEMA",
    "SCHEMA_MISMATCH_MESSAGE",
    "Intent",
    "IntentSchemaError",
    "IntentType",
    "IntentValidationError",
    "parse_intent_payload",
    "validate_intent",
]
