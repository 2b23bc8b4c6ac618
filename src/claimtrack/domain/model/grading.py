"""Claim grading outcomes and their transition semantics."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final


class Grading(StrEnum):
    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"

    @property
    def rank(self) -> int:
        return GRADING_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self is Grading.APPROVED


# Severity only; higher is better. Says nothing about legality.
GRADING_RANK: Final[dict[Grading, int]] = {
    Grading.APPROVED: 4,
    Grading.PENDING: 3,
    Grading.REJECTED: 2,
    Grading.NOT_FOUND: 1,
}


def can_transition(current: Grading, new: Grading) -> bool:
    """Return whether a claim graded ``current`` may be re-graded as ``new``."""

    return not current.is_terminal or new is current


@dataclass(frozen=True, slots=True)
class GradingChange:
    previous: Grading | None
    new: Grading

    @property
    def changed(self) -> bool:
        return self.previous is not self.new

    @property
    def improvement(self) -> bool:
        if self.previous is None:
            return False
        return self.new.rank > self.previous.rank

    @property
    def regression(self) -> bool:
        if self.previous is None:
            return False
        return self.new.rank < self.previous.rank

    def describe(self) -> str:
        if self.previous is None:
            return f"graded {self.new}"
        if not self.changed:
            return f"unchanged ({self.new})"
        direction = "improved" if self.improvement else "regressed"
        return f"{direction}: {self.previous} -> {self.new}"


def assess_change(previous: Grading | None, new: Grading) -> GradingChange:
    return GradingChange(previous=previous, new=new)
