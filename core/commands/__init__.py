"""
SpaceFlow Command Layer - Rejection Model
===========================================
Every refused intent or action carries exactly one RejectionReason.
"""

from core.commands.rejection import (
    ReasonCode,
    RejectionReason,
)

__all__ = [
    "RejectionReason",
    "ReasonCode",
]
