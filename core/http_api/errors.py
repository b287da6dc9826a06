"""
SpaceFlow HTTP API - Error Mapping
====================================
Stable transport error mapping for pipeline rejections.
"""

from __future__ import annotations

from typing import Any, Optional

from core.commands.rejection import ReasonCode, RejectionReason
from core.http_api.contracts import HttpApiErrorBody, HttpApiResponse


# Unlisted codes map to 400.
HTTP_STATUS_BY_CODE = {
    ReasonCode.PAYLOAD_TOO_LARGE: 413,
    ReasonCode.PROMPT_MISSING: 400,
    ReasonCode.PROMPT_TOO_LONG: 400,
    ReasonCode.UPSTREAM_NO_CONTENT: 502,
    ReasonCode.UPSTREAM_INVALID_JSON: 502,
    ReasonCode.UPSTREAM_TIMEOUT: 504,
    ReasonCode.UPSTREAM_UNAVAILABLE: 502,
    ReasonCode.SCHEMA_VALIDATION_FAILED: 502,
    ReasonCode.INTENT_INVARIANT_VIOLATED: 422,
    ReasonCode.PALLET_NOT_FOUND: 404,
    ReasonCode.NO_MATCHING_PALLETS: 200,
    ReasonCode.NOTHING_TO_UNDO: 409,
    ReasonCode.NOTHING_TO_REDO: 409,
    ReasonCode.REQUEST_IN_FLIGHT: 409,
    ReasonCode.REQUEST_SUPERSEDED: 409,
    ReasonCode.INTERNAL_ERROR: 500,
}


def http_status_for(code: str) -> int:
    return HTTP_STATUS_BY_CODE.get(code, 400)


def error_response(
    *,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return HttpApiResponse(
        ok=False,
        error=HttpApiErrorBody(
            code=code,
            message=message,
            details=details or {},
        ),
    ).to_dict()


def success_response(data: Any) -> dict[str, Any]:
    return HttpApiResponse(ok=True, data=data).to_dict()


def map_rejection_reason(reason: RejectionReason) -> HttpApiErrorBody:
    details = {"policy_name": reason.policy_name}
    details.update(reason.details)
    return HttpApiErrorBody(
        code=reason.code,
        message=reason.message,
        details=details,
    )


def rejection_response(
    reason: RejectionReason,
    *,
    extra_details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    mapped = map_rejection_reason(reason)
    details = dict(mapped.details)
    if extra_details:
        details.update(extra_details)
    return error_response(
        code=mapped.code,
        message=mapped.message,
        details=details,
    )
