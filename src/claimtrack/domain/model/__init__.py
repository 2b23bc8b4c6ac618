"""Claim domain model."""

from __future__ import annotations

from .base import Clock, IdFactory, new_id, utcnow
from .claim import Claim, ClaimVersion
from .enums import ActorKind, OperationKind
from .errors import (
    ClaimEngineError,
    InconsistentBatchStats,
    InconsistentCycleStats,
    InvalidAmount,
    InvalidIdentifier,
    InvalidInputRow,
    NoChange,
    TerminalStateViolation,
)
from .grading import GRADING_RANK, Grading, GradingChange, assess_change, can_transition
from .primitives import ClaimIdentifier, MonetaryAmount
from .records import BatchImportRecord, RevalidationCycle

__all__ = [
    "GRADING_RANK",
    "ActorKind",
    "BatchImportRecord",
    "Claim",
    "ClaimEngineError",
    "ClaimIdentifier",
    "ClaimVersion",
    "Clock",
    "Grading",
    "GradingChange",
    "IdFactory",
    "InconsistentBatchStats",
    "InconsistentCycleStats",
    "InvalidAmount",
    "InvalidIdentifier",
    "InvalidInputRow",
    "MonetaryAmount",
    "NoChange",
    "OperationKind",
    "RevalidationCycle",
    "TerminalStateViolation",
    "assess_change",
    "can_transition",
    "new_id",
    "utcnow",
]
