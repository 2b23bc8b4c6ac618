"""Read-side summaries over stored claims."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from claimtrack.domain.model import Grading

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class GradingSummary:
    tenant_id: str
    approved: int = 0
    pending: int = 0
    rejected: int = 0
    not_found: int = 0

    @classmethod
    def from_counts(cls, tenant_id: str, counts: Mapping[Grading, int]) -> GradingSummary:
        return cls(
            tenant_id=tenant_id,
            approved=counts.get(Grading.APPROVED, 0),
            pending=counts.get(Grading.PENDING, 0),
            rejected=counts.get(Grading.REJECTED, 0),
            not_found=counts.get(Grading.NOT_FOUND, 0),
        )

    @property
    def total(self) -> int:
        return self.approved + self.pending + self.rejected + self.not_found

    @property
    def open(self) -> int:
        """Claims that still need attention (everything except approved)."""
        return self.total - self.approved

    @property
    def approval_rate(self) -> float:
        return self.approved / self.total * 100 if self.total else 0.0
