"""
SpaceFlow HTTP API - Contracts
================================
Framework-agnostic request/response DTOs for the operator endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class PromptHttpRequest:
    """Body of POST /parse-intent and POST /commands."""
    prompt: str
    supersede: bool = False

    def __post_init__(self):
        if not isinstance(self.prompt, str):
            raise ValueError("prompt must be a string.")
        if not isinstance(self.supersede, bool):
            raise ValueError("supersede must be a boolean.")


@dataclass(frozen=True)
class SimulationStartHttpRequest:
    period_s: Optional[float] = None

    def __post_init__(self):
        if self.period_s is None:
            return
        if isinstance(self.period_s, bool) or not isinstance(self.period_s, (int, float)):
            raise ValueError("period_s must be a number.")
        if self.period_s <= 0:
            raise ValueError("period_s must be positive.")


@dataclass(frozen=True)
class HttpApiErrorBody:
    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class HttpApiResponse:
    ok: bool
    data: Any = None
    error: Optional[HttpApiErrorBody] = None

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": True, "data": self.data}
        if self.error is None:
            raise ValueError("error must be set when ok is False.")
        return {"ok": False, "error": self.error.to_dict()}
