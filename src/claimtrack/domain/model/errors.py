"""Domain error hierarchy."""

from __future__ import annotations


class ClaimEngineError(Exception):
    """Base class for all claim engine errors."""


class InvalidIdentifier(ClaimEngineError, ValueError):
    """Raised when a raw claim number cannot be normalized."""


class InvalidAmount(ClaimEngineError, ValueError):
    """Raised when a raw cost is not a valid monetary amount."""


class InconsistentBatchStats(ClaimEngineError):
    """Raised when batch import counters do not add up."""


class InconsistentCycleStats(ClaimEngineError):
    """Raised when revalidation cycle counters or timestamps are inconsistent."""


class NoChange(ClaimEngineError):
    """Raised when a cost update carries neither a new cost nor a new grading."""


class TerminalStateViolation(ClaimEngineError):
    """Raised when an approved claim is asked to change."""


class InvalidInputRow(ClaimEngineError):
    """Raised when an import row cannot be parsed; the whole batch is rejected."""

    def __init__(self, position: int, raw: tuple[object, object], cause: Exception) -> None:
        super().__init__(f"Row {position} is invalid ({raw[0]!r}, {raw[1]!r}): {cause}")
        self.position = position
        self.raw = raw
        self.cause = cause
