"""
SpaceFlow HTTP API - Public API
=================================
"""

from core.http_api.contracts import (
    HttpApiErrorBody,
    HttpApiResponse,
    PromptHttpRequest,
    SimulationStartHttpRequest,
)
from core.http_api.errors import (
    error_response,
    http_status_for,
    map_rejection_reason,
    rejection_response,
    success_response,
)

__all__ = [
    "HttpApiErrorBody",
    "HttpApiResponse",
    "PromptHttpRequest",
    "SimulationStartHttpRequest",
    "error_response",
    "http_status_for",
    "map_rejection_reason",
    "rejection_response",
    "success_response",
]
