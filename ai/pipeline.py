"""
SpaceFlow AI Pipeline - Intent Resolution
===========================================
prompt -> guardrails -> translator -> schema parse -> validator ->
{filter | single action | bulk action} -> history.

Every failure is converted into a PipelineOutcome carrying a
RejectionReason; nothing escapes to the caller or the store.

Request tagging:
  Each submission takes a ticket. A second submission while one is
  outstanding is refused with REQUEST_IN_FLIGHT unless it asks to
  supersede. A superseded request's translation is discarded on
  arrival with REQUEST_SUPERSEDED, so a stale answer can never
  overwrite a newer result.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Optional, Tuple

from core.commands.rejection import ReasonCode, RejectionReason
from engines.warehouse.commands import overrides_for
from engines.warehouse.history import MutationEntry, MutationHistory
from engines.warehouse.models import PalletAction
from engines.warehouse.store import InventoryStore
from ai.guardrails import PromptRejected, require_prompt
from ai.intents.models import Intent, IntentSchemaError, parse_intent_payload
from ai.intents.validator import IntentValidationError, validate_intent
from ai.translator import IntentTranslator, TranslationError


logger = logging.getLogger("spaceflow.pipeline")


ACTION_LABELS = {
    PalletAction.DELAY: "Delay flag",
    PalletAction.PUTAWAY: "Putaway",
    PalletAction.SET_STATUS: "Status update",
    PalletAction.SET_DESTINATION: "Destination update",
}


def format_action_label(action: PalletAction) -> str:
    return ACTION_LABELS.get(action, action.value.capitalize())


# ══════════════════════════════════════════════════════════════
# OUTCOME
# ══════════════════════════════════════════════════════════════

OUTCOME_PARSE = "parse"
OUTCOME_FILTER = "filter"
OUTCOME_ACTION = "action"
OUTCOME_BULK_ACTION = "bulk_action"
OUTCOME_UNDO = "undo"
OUTCOME_REDO = "redo"


@dataclass(frozen=True)
class PipelineOutcome:
    """
    Result of one pipeline call.

    ok=False always carries `reason`. ok=True may carry `notice` for
    valid empty results (no matching pallets, no free slot).
    """
    ok: bool
    kind: str
    message: str
    intent: Optional[Intent] = None
    reason: Optional[RejectionReason] = None
    notice: Optional[RejectionReason] = None
    affected_count: int = 0
    pallet_ids: Tuple[str, ...] = ()
    event_ids: Tuple[str, ...] = ()
    ticket: Optional[int] = None

    def __post_init__(self):
        if not self.ok and self.reason is None:
            raise ValueError("A failed outcome must carry a reason.")

    @classmethod
    def rejected(
        cls,
        kind: str,
        reason: RejectionReason,
        *,
        intent: Optional[Intent] = None,
        ticket: Optional[int] = None,
    ) -> "PipelineOutcome":
        return cls(
            ok=False,
            kind=kind,
            message=reason.message,
            intent=intent,
            reason=reason,
            ticket=ticket,
        )

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "kind": self.kind,
            "message": self.message,
            "intent": self.intent.to_dict() if self.intent else None,
            "reason": self.reason.to_dict() if self.reason else None,
            "notice": self.notice.to_dict() if self.notice else None,
            "affectedCount": self.affected_count,
            "palletIds": list(self.pallet_ids),
            "eventIds": list(self.event_ids),
            "ticket": self.ticket,
        }


def _internal_error(exc: Exception) -> RejectionReason:
    return RejectionReason(
        code=ReasonCode.INTERNAL_ERROR,
        message="Internal error while resolving the intent.",
        policy_name="intent_pipeline",
        details={"error": type(exc).__name__},
    )


# ══════════════════════════════════════════════════════════════
# PIPELINE
# ══════════════════════════════════════════════════════════════

class IntentPipeline:
    """
    Resolves operator prompts against one InventoryStore.

    Args:
        store:      Target store.
        translator: Object with `translate(prompt) -> dict`.
        history:    Undo/redo log. A fresh one when None.
    """

    def __init__(
        self,
        store: InventoryStore,
        translator: IntentTranslator,
        history: Optional[MutationHistory] = None,
    ):
        self._store = store
        self._translator = translator
        self._history = history or MutationHistory()
        self._lock = threading.Lock()
        self._last_ticket = 0
        self._latest_ticket = 0
        self._in_flight = 0

    @property
    def store(self) -> InventoryStore:
        return self._store

    @property
    def history(self) -> MutationHistory:
        return self._history

    @property
    def in_flight(self) -> int:
        return self._in_flight

    # ── Entry points ──────────────────────────────────────────

    def parse(
        self,
        prompt: Any,
        *,
        body_bytes: Optional[int] = None,
    ) -> PipelineOutcome:
        """Translate and validate only. No ticket, no store access."""
        try:
            intent_or_reason = self._interpret(prompt, body_bytes)
        except Exception as exc:
            logger.error(f"Intent parsing failed: {exc}", exc_info=True)
            return PipelineOutcome.rejected(OUTCOME_PARSE, _internal_error(exc))
        if isinstance(intent_or_reason, RejectionReason):
            return PipelineOutcome.rejected(OUTCOME_PARSE, intent_or_reason)
        return PipelineOutcome(
            ok=True,
            kind=OUTCOME_PARSE,
            message="Intent recognized.",
            intent=intent_or_reason,
        )

    def submit(
        self,
        prompt: Any,
        *,
        body_bytes: Optional[int] = None,
        supersede: bool = False,
    ) -> PipelineOutcome:
        """Full round trip: interpret the prompt and resolve it against the store."""
        try:
            require_prompt(prompt, body_bytes)
        except PromptRejected as exc:
            logger.info(f"Prompt rejected: [{exc.code}] {exc}")
            return PipelineOutcome.rejected(OUTCOME_PARSE, exc.rejection)

        ticket = self._take_ticket(supersede)
        if ticket is None:
            return PipelineOutcome.rejected(
                OUTCOME_PARSE,
                RejectionReason(
                    code=ReasonCode.REQUEST_IN_FLIGHT,
                    message="Another command is still being processed.",
                    policy_name="intent_pipeline",
                ),
            )

        try:
            intent_or_reason = self._interpret(prompt, body_bytes)
        except Exception as exc:
            logger.error(f"Intent interpretation failed: {exc}", exc_info=True)
            intent_or_reason = _internal_error(exc)

        with self._lock:
            self._in_flight -= 1
            if ticket != self._latest_ticket:
                logger.info(f"Discarding response for superseded request {ticket}")
                return PipelineOutcome.rejected(
                    OUTCOME_PARSE,
                    RejectionReason(
                        code=ReasonCode.REQUEST_SUPERSEDED,
                        message="A newer command replaced this one.",
                        policy_name="intent_pipeline",
                        details={"ticket": ticket, "latest_ticket": self._latest_ticket},
                    ),
                    ticket=ticket,
                )
            if isinstance(intent_or_reason, RejectionReason):
                return PipelineOutcome.rejected(OUTCOME_PARSE, intent_or_reason, ticket=ticket)
            try:
                outcome = self.resolve(intent_or_reason)
            except Exception as exc:
                logger.error(f"Intent resolution failed: {exc}", exc_info=True)
                return PipelineOutcome.rejected(
                    OUTCOME_PARSE, _internal_error(exc), intent=intent_or_reason, ticket=ticket,
                )
            return _with_ticket(outcome, ticket)

    def resolve(self, intent: Intent) -> PipelineOutcome:
        """Apply an already validated intent to the store."""
        if not intent.is_action:
            visible = self._store.apply_filter(intent.filter)
            return PipelineOutcome(
                ok=True,
                kind=OUTCOME_FILTER,
                message=f"Filter applied: {len(visible)} pallets visible.",
                intent=intent,
                affected_count=len(visible),
                pallet_ids=tuple(pallet.id for pallet in visible),
            )

        overrides = overrides_for(
            intent.action,
            target_zone=intent.target_zone,
            target_status=intent.target_status,
            target_destination=intent.target_destination,
        )
        if intent.target_pallet_id:
            return self._resolve_single(intent, overrides)
        return self._resolve_bulk(intent, overrides)

    def undo(self) -> PipelineOutcome:
        entry = self._history.pop_undo()
        if entry is None:
            return PipelineOutcome.rejected(
                OUTCOME_UNDO,
                RejectionReason(
                    code=ReasonCode.NOTHING_TO_UNDO,
                    message="There is nothing to undo.",
                    policy_name="mutation_history",
                ),
            )
        restored = self._store.restore_pallet_state(entry.before, entry.event_ids)
        logger.info(f"Undid '{entry.label}' on {restored} pallets")
        return PipelineOutcome(
            ok=True,
            kind=OUTCOME_UNDO,
            message=f"Undid {entry.label}.",
            affected_count=restored,
            pallet_ids=entry.pallet_ids,
            event_ids=entry.event_ids,
        )

    def redo(self) -> PipelineOutcome:
        entry = self._history.pop_redo()
        if entry is None:
            return PipelineOutcome.rejected(
                OUTCOME_REDO,
                RejectionReason(
                    code=ReasonCode.NOTHING_TO_REDO,
                    message="There is nothing to redo.",
                    policy_name="mutation_history",
                ),
            )
        reapplied = self._store.reapply_pallet_state(entry.after, entry.events)
        logger.info(f"Redid '{entry.label}' on {reapplied} pallets")
        return PipelineOutcome(
            ok=True,
            kind=OUTCOME_REDO,
            message=f"Redid {entry.label}.",
            affected_count=reapplied,
            pallet_ids=entry.pallet_ids,
            event_ids=entry.event_ids,
        )

    # ── Internals ─────────────────────────────────────────────

    def _take_ticket(self, supersede: bool) -> Optional[int]:
        with self._lock:
            if self._in_flight and not supersede:
                logger.info("Submission refused: a request is already in flight")
                return None
            self._last_ticket += 1
            self._latest_ticket = self._last_ticket
            self._in_flight += 1
            return self._last_ticket

    def _interpret(self, prompt: Any, body_bytes: Optional[int]):
        """Intent on success, RejectionReason on any expected failure."""
        try:
            require_prompt(prompt, body_bytes)
        except PromptRejected as exc:
            return exc.rejection

        try:
            payload = self._translator.translate(prompt)
        except TranslationError as exc:
            return exc.to_rejection()

        try:
            intent = parse_intent_payload(payload)
        except IntentSchemaError as exc:
            logger.warning(f"Translator output failed schema validation: {exc.errors}")
            return RejectionReason(
                code=ReasonCode.SCHEMA_VALIDATION_FAILED,
                message=str(exc),
                policy_name="parse_intent_payload",
                details={"errors": exc.errors},
            )

        try:
            return validate_intent(intent, prompt)
        except IntentValidationError as exc:
            logger.info(f"Intent rejected: {exc}")
            return exc.to_rejection()

    def _resolve_single(self, intent: Intent, overrides) -> PipelineOutcome:
        pallet_id = intent.target_pallet_id
        result = self._store.apply_action(pallet_id, intent.action, overrides)
        label = format_action_label(intent.action)

        if not result.found:
            return PipelineOutcome.rejected(
                OUTCOME_ACTION,
                RejectionReason(
                    code=ReasonCode.PALLET_NOT_FOUND,
                    message=f"Pallet {pallet_id} not found.",
                    policy_name="intent_pipeline",
                    details={"pallet_id": pallet_id},
                ),
                intent=intent,
            )

        if not result.applied:
            return PipelineOutcome(
                ok=True,
                kind=OUTCOME_ACTION,
                message=f"{label} skipped: no free slot for {pallet_id}.",
                intent=intent,
                notice=RejectionReason(
                    code=ReasonCode.NO_FREE_SLOT,
                    message=f"No free slot available for pallet {pallet_id}.",
                    policy_name="mutation_engine",
                    details={"pallet_id": pallet_id},
                ),
                pallet_ids=(pallet_id,),
            )

        self._history.record(MutationEntry(
            label=f"{label} on {pallet_id}",
            before=(result.before,),
            after=(result.after,),
            events=(result.event,),
        ))
        return PipelineOutcome(
            ok=True,
            kind=OUTCOME_ACTION,
            message=f"{label} applied: {pallet_id} updated.",
            intent=intent,
            affected_count=1,
            pallet_ids=(pallet_id,),
            event_ids=(result.event_id,),
        )

    def _resolve_bulk(self, intent: Intent, overrides) -> PipelineOutcome:
        result = self._store.apply_bulk_action(
            intent.action, intent.filter, intent.max_targets, overrides,
        )
        label = format_action_label(intent.action)

        if result.affected_count == 0:
            if result.matched_count:
                code, message = ReasonCode.NO_FREE_SLOT, "No free slot for any matching pallet."
            else:
                code, message = ReasonCode.NO_MATCHING_PALLETS, "No matching pallets found for this action."
            return PipelineOutcome(
                ok=True,
                kind=OUTCOME_BULK_ACTION,
                message=message,
                intent=intent,
                notice=RejectionReason(
                    code=code, message=message, policy_name="intent_pipeline",
                ),
            )

        self._history.record(MutationEntry(
            label=f"{label} on {result.affected_count} pallets",
            before=result.before,
            after=result.after,
            events=result.events,
        ))
        return PipelineOutcome(
            ok=True,
            kind=OUTCOME_BULK_ACTION,
            message=f"{label} applied: {result.affected_count} pallets updated.",
            intent=intent,
            affected_count=result.affected_count,
            pallet_ids=tuple(pallet.id for pallet in result.after),
            event_ids=result.event_ids,
        )


def _with_ticket(outcome: PipelineOutcome, ticket: int) -> PipelineOutcome:
    return replace(outcome, ticket=ticket)
