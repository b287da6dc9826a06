"""
SpaceFlow Django Adapter Views
================================
Pass-through HTTP views over the intent pipeline and inventory store.
"""

from __future__ import annotations

import json
from typing import Any

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from adapters.django_api.wiring import build_dependencies
from ai.guardrails import MAX_REQUEST_BYTES, PromptRejected, require_prompt
from ai.pipeline import PipelineOutcome
from core.commands.rejection import ReasonCode, RejectionReason
from core.http_api.contracts import PromptHttpRequest, SimulationStartHttpRequest
from core.http_api.errors import (
    error_response,
    http_status_for,
    rejection_response,
    success_response,
)
from engines.warehouse.kpis import calculate_logistics_kpis


def _json_error(code: str, message: str, status: int = 400) -> JsonResponse:
    return JsonResponse(
        error_response(code=code, message=message, details={}),
        status=status,
    )


def _rejection(reason: RejectionReason) -> JsonResponse:
    return JsonResponse(rejection_response(reason), status=http_status_for(reason.code))


def _method_not_allowed() -> JsonResponse:
    return _json_error(
        "METHOD_NOT_ALLOWED",
        "Method not allowed for this endpoint.",
        status=405,
    )


def _parse_json_body(request: HttpRequest) -> dict[str, Any]:
    if not request.body:
        return {}
    try:
        parsed = json.loads(request.body.decode("utf-8"))
    except Exception as exc:
        raise ValueError("Request body must be valid JSON.") from exc
    if not isinstance(parsed, dict):
        raise ValueError("Request body must be a JSON object.")
    return parsed


def _outcome_response(outcome: PipelineOutcome) -> JsonResponse:
    if outcome.ok:
        return JsonResponse(success_response(outcome.to_dict()))
    return JsonResponse(
        rejection_response(outcome.reason, extra_details={"ticket": outcome.ticket}),
        status=http_status_for(outcome.reason.code),
    )


def _dispatch_prompt(request: HttpRequest, handler) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()

    body_bytes = len(request.body)
    try:
        if body_bytes > MAX_REQUEST_BYTES:
            require_prompt("", body_bytes)
    except PromptRejected as exc:
        return _rejection(exc.rejection)

    try:
        body = _parse_json_body(request)
    except ValueError as exc:
        return _json_error("INVALID_REQUEST", str(exc), status=400)

    prompt = body.get("prompt")
    if not isinstance(prompt, str):
        try:
            require_prompt(prompt, body_bytes)
        except PromptRejected as exc:
            return _rejection(exc.rejection)
    try:
        contract = PromptHttpRequest(prompt=prompt, supersede=body.get("supersede", False))
    except ValueError as exc:
        return _json_error("INVALID_REQUEST", str(exc), status=400)

    return _outcome_response(handler(contract, body_bytes))


# ══════════════════════════════════════════════════════════════
# INTENTS & COMMANDS
# ══════════════════════════════════════════════════════════════

@csrf_exempt
def parse_intent_view(request: HttpRequest) -> JsonResponse:
    pipeline = build_dependencies().pipeline
    return _dispatch_prompt(
        request,
        lambda contract, body_bytes: pipeline.parse(contract.prompt, body_bytes=body_bytes),
    )


@csrf_exempt
def commands_view(request: HttpRequest) -> JsonResponse:
    pipeline = build_dependencies().pipeline
    return _dispatch_prompt(
        request,
        lambda contract, body_bytes: pipeline.submit(
            contract.prompt, body_bytes=body_bytes, supersede=contract.supersede,
        ),
    )


@csrf_exempt
def undo_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    return _outcome_response(build_dependencies().pipeline.undo())


@csrf_exempt
def redo_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    return _outcome_response(build_dependencies().pipeline.redo())


# ══════════════════════════════════════════════════════════════
# READ SIDE
# ══════════════════════════════════════════════════════════════

def pallets_view(request: HttpRequest) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    return JsonResponse(success_response(build_dependencies().store.view_dict()))


def pallet_events_view(request: HttpRequest, pallet_id: str) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    store = build_dependencies().store
    if store.get_pallet(pallet_id) is None:
        return _rejection(RejectionReason(
            code=ReasonCode.PALLET_NOT_FOUND,
            message=f"Pallet {pallet_id} not found.",
            policy_name="pallet_events_view",
            details={"pallet_id": pallet_id},
        ))
    events = store.events_for_pallet(pallet_id)
    return JsonResponse(success_response({
        "palletId": pallet_id,
        "events": [event.to_dict() for event in events],
    }))


def kpis_view(request: HttpRequest) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    deps = build_dependencies()
    kpis = calculate_logistics_kpis(
        deps.store.pallets, deps.store.events, deps.clock.now_utc(),
    )
    return JsonResponse(success_response(kpis.to_dict()))


@csrf_exempt
def filter_reset_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    store = build_dependencies().store
    store.reset_filter()
    return JsonResponse(success_response(store.view_dict()))


# ══════════════════════════════════════════════════════════════
# SIMULATION
# ══════════════════════════════════════════════════════════════

def _simulation_state(store) -> dict[str, Any]:
    return {
        "running": store.is_simulation_running,
        "periodS": store.simulation_period_s,
    }


def _simulation_request(request: HttpRequest) -> SimulationStartHttpRequest:
    body = _parse_json_body(request)
    return SimulationStartHttpRequest(period_s=body.get("periodS"))


@csrf_exempt
def simulation_start_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    try:
        contract = _simulation_request(request)
    except ValueError as exc:
        return _json_error("INVALID_REQUEST", str(exc), status=400)
    store = build_dependencies().store
    store.start_simulation(contract.period_s)
    return JsonResponse(success_response(_simulation_state(store)))


@csrf_exempt
def simulation_stop_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    store = build_dependencies().store
    store.stop_simulation()
    return JsonResponse(success_response(_simulation_state(store)))


@csrf_exempt
def simulation_speed_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    try:
        contract = _simulation_request(request)
        if contract.period_s is None:
            raise ValueError("periodS is required.")
    except ValueError as exc:
        return _json_error("INVALID_REQUEST", str(exc), status=400)
    store = build_dependencies().store
    store.set_simulation_speed(contract.period_s)
    return JsonResponse(success_response(_simulation_state(store)))
