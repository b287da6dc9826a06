"""
SpaceFlow - Intent Validator Tests
====================================
Prompt fallbacks, scan override, intent-type gate, required targets,
status/destination normalization and override legality.
"""

import pytest

from ai.intents.models import Intent, IntentType
from ai.intents.validator import (
    IntentValidationError,
    apply_scan_override,
    apply_text_fallbacks,
    check_intent_type,
    clear_blank_targets,
    normalize_status_destination,
    validate_intent,
)
from core.commands.rejection import ReasonCode
from engines.warehouse.filters import PalletFilter
from engines.warehouse.models import PalletAction


def action_intent(action, **fields):
    return Intent(intent_type=IntentType.ACTION, action=action, **fields)


def filter_intent(**fields):
    return Intent(intent_type=IntentType.FILTER, **fields)


def rule_of(exc_info):
    return exc_info.value.rule


# ══════════════════════════════════════════════════════════════
# TEXT FALLBACKS
# ══════════════════════════════════════════════════════════════

class TestTextFallbacks:
    def test_urgent_narrows_urgency(self):
        intent = apply_text_fallbacks(filter_intent(), "Show urgent pallets")
        assert intent.filter.urgency_level == "high"

    def test_german_overdue_narrows_status(self):
        intent = apply_text_fallbacks(filter_intent(), "Zeige alle überfällig Paletten")
        assert intent.filter.status == "delayed"

    def test_explicit_values_never_replaced(self):
        original = filter_intent(filter=PalletFilter(status="stored", urgency_level="low"))
        intent = apply_text_fallbacks(original, "urgent delayed pallets")
        assert intent.filter.status == "stored"
        assert intent.filter.urgency_level == "low"

    def test_no_cue_returns_same_intent(self):
        original = filter_intent()
        assert apply_text_fallbacks(original, "show everything") is original


# ══════════════════════════════════════════════════════════════
# SCAN OVERRIDE
# ══════════════════════════════════════════════════════════════

class TestScanOverride:
    def test_scan_prompt_forces_scan_and_clears_targets(self):
        intent = action_intent(
            PalletAction.RELOCATE, target_pallet_id="PAL-00001", target_zone="B",
        )
        result = apply_scan_override(intent, "Please scan PAL-00001 and move it to B")
        assert result.action is PalletAction.SCAN
        assert result.target_zone is None
        assert result.target_pallet_id == "PAL-00001"

    def test_filter_intents_untouched(self):
        intent = filter_intent()
        assert apply_scan_override(intent, "scan") is intent

    def test_word_boundary(self):
        intent = action_intent(PalletAction.PICK)
        assert apply_scan_override(intent, "pick the scanned pallets").action is PalletAction.PICK


# ══════════════════════════════════════════════════════════════
# INTENT-TYPE GATE
# ══════════════════════════════════════════════════════════════

class TestIntentTypeGate:
    def test_action_without_action_rejected(self):
        with pytest.raises(IntentValidationError) as exc_info:
            check_intent_type(action_intent(None))
        assert rule_of(exc_info) == "action_intent_requires_action"

    def test_filter_with_action_rejected(self):
        with pytest.raises(IntentValidationError) as exc_info:
            check_intent_type(filter_intent(action=PalletAction.SCAN))
        assert rule_of(exc_info) == "filter_intent_forbids_action"

    def test_filter_with_targeting_rejected(self):
        with pytest.raises(IntentValidationError) as exc_info:
            check_intent_type(filter_intent(target_pallet_id="PAL-00001"))
        assert rule_of(exc_info) == "filter_intent_forbids_targeting"

    def test_rejection_carries_invariant_code(self):
        with pytest.raises(IntentValidationError) as exc_info:
            check_intent_type(action_intent(None))
        rejection = exc_info.value.to_rejection()
        assert rejection.code == ReasonCode.INTENT_INVARIANT_VIOLATED
        assert rejection.details["rule"] == "action_intent_requires_action"


# ══════════════════════════════════════════════════════════════
# NORMALIZATION
# ══════════════════════════════════════════════════════════════

class TestNormalization:
    def test_destination_status_word_becomes_set_status(self):
        intent = action_intent(
            PalletAction.SET_DESTINATION, target_pallet_id="PAL-2", target_destination="stored",
        )
        result = normalize_status_destination(intent)
        assert result.action is PalletAction.SET_STATUS
        assert result.target_status == "stored"
        assert result.target_destination is None

    def test_case_and_whitespace_insensitive(self):
        intent = action_intent(PalletAction.SET_DESTINATION, target_destination="  Transit ")
        assert normalize_status_destination(intent).target_status == "transit"

    def test_real_destination_kept(self):
        intent = action_intent(PalletAction.SET_DESTINATION, target_destination="Bern")
        assert normalize_status_destination(intent) is intent


# ══════════════════════════════════════════════════════════════
# FULL VALIDATION
# ══════════════════════════════════════════════════════════════

class TestValidateIntent:
    def test_set_destination_to_status_word_executes_as_set_status(self):
        intent = action_intent(
            PalletAction.SET_DESTINATION, target_pallet_id="PAL-2", target_destination="stored",
        )
        result = validate_intent(intent, "set destination of PAL-2 to stored")
        assert result.action is PalletAction.SET_STATUS
        assert result.target_status == "stored"
        assert result.target_destination is None
        assert result.target_pallet_id == "PAL-2"

    def test_input_intent_not_mutated(self):
        intent = action_intent(PalletAction.SET_DESTINATION, target_destination="delayed")
        validate_intent(intent, "update destination")
        assert intent.action is PalletAction.SET_DESTINATION

    def test_set_status_requires_target(self):
        with pytest.raises(IntentValidationError) as exc_info:
            validate_intent(action_intent(PalletAction.SET_STATUS), "change status")
        assert rule_of(exc_info) == "set_status_requires_target_status"

    def test_set_destination_requires_target(self):
        with pytest.raises(IntentValidationError) as exc_info:
            validate_intent(action_intent(PalletAction.SET_DESTINATION), "change destination")
        assert rule_of(exc_info) == "set_destination_requires_target_destination"

    def test_zone_only_on_relocate(self):
        intent = action_intent(PalletAction.PICK, target_zone="C")
        with pytest.raises(IntentValidationError) as exc_info:
            validate_intent(intent, "pick into zone C")
        assert rule_of(exc_info) == "override_not_allowed_for_action"

    def test_status_target_on_relocate_rejected(self):
        intent = action_intent(PalletAction.RELOCATE, target_status="stored")
        with pytest.raises(IntentValidationError):
            validate_intent(intent, "relocate")

    def test_relocate_with_zone_accepted(self):
        intent = action_intent(PalletAction.RELOCATE, target_pallet_id="PAL-1", target_zone="C")
        assert validate_intent(intent, "move PAL-1 to zone C") == intent

    def test_scan_override_clears_illegal_targets_before_legality(self):
        intent = action_intent(PalletAction.PICK, target_zone="C")
        result = validate_intent(intent, "scan and pick zone C")
        assert result.action is PalletAction.SCAN
        assert result.target_zone is None

    def test_filter_intent_passes_with_fallbacks(self):
        result = validate_intent(filter_intent(), "show delayed pallets")
        assert result.filter.status == "delayed"

    def test_scan_prompt_on_filter_intent_stays_filter(self):
        result = validate_intent(filter_intent(), "show pallets needing a scan")
        assert result.intent_type is IntentType.FILTER
        assert result.action is None


# ══════════════════════════════════════════════════════════════
# BLANK TARGETS
# ══════════════════════════════════════════════════════════════

class TestBlankTargets:
    @pytest.mark.parametrize("destination", ["", "   "])
    def test_blank_destination_counts_as_missing(self, destination):
        intent = action_intent(
            PalletAction.SET_DESTINATION, target_pallet_id="PAL-1", target_destination=destination,
        )
        with pytest.raises(IntentValidationError) as exc_info:
            validate_intent(intent, "change destination of PAL-1")
        assert rule_of(exc_info) == "set_destination_requires_target_destination"

    def test_blank_status_counts_as_missing(self):
        intent = action_intent(PalletAction.SET_STATUS, target_status=" ")
        with pytest.raises(IntentValidationError) as exc_info:
            validate_intent(intent, "change status")
        assert rule_of(exc_info) == "set_status_requires_target_status"

    def test_filter_intent_with_empty_targets_accepted(self):
        intent = filter_intent(target_pallet_id="", target_destination="  ")
        result = validate_intent(intent, "show everything")
        assert result.intent_type is IntentType.FILTER
        assert result.target_pallet_id is None
        assert result.target_destination is None

    def test_blank_pallet_id_cleared(self):
        intent = action_intent(PalletAction.PICK, target_pallet_id="")
        assert clear_blank_targets(intent).target_pallet_id is None

    def test_nothing_blank_returns_same_intent(self):
        intent = action_intent(PalletAction.RELOCATE, target_pallet_id="PAL-1", target_zone="B")
        assert clear_blank_targets(intent) is intent
