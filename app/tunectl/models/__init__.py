"""Data models for tunectl.

This module exports the core data structures used throughout the application.
"""

from tunectl.models.action import Action, ActionType, ExecutionResult, Outcome
from tunectl.models.resource import (
    Precondition,
    PreconditionKind,
    Resource,
    ResourceKind,
    RuntimeCheck,
    Trigger,
)
from tunectl.models.verification import VerificationResult, VerificationStatus

__all__ = [
    "Action",
    "ActionType",
    "ExecutionResult",
    "Outcome",
    "Precondition",
    "PreconditionKind",
    "Resource",
    "ResourceKind",
    "RuntimeCheck",
    "Trigger",
    "VerificationResult",
    "VerificationStatus",
]
