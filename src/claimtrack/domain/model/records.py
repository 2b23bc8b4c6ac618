"""Immutable summaries of finished batch imports and revalidation cycles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import InconsistentBatchStats, InconsistentCycleStats

if TYPE_CHECKING:
    from datetime import datetime, timedelta
    from uuid import UUID


_BATCH_COUNTS = (
    "total",
    "new",
    "updated",
    "unchanged",
    "errored",
    "approved",
    "pending",
    "rejected",
    "not_found",
)
_CYCLE_COUNTS = ("processed", "newly_approved", "still_rejected", "still_not_found", "cost_changes")


def _negative_counts(record: object, names: tuple[str, ...]) -> list[str]:
    return [name for name in names if getattr(record, name) < 0]


@dataclass(frozen=True, slots=True, kw_only=True)
class BatchImportRecord:
    id: UUID
    tenant_id: str
    source: str
    total: int
    new: int
    updated: int
    unchanged: int
    errored: int
    approved: int
    pending: int
    rejected: int
    not_found: int
    baseline: bool
    actor: str
    created_at: datetime

    def __post_init__(self) -> None:
        negative = _negative_counts(self, _BATCH_COUNTS)
        if negative:
            raise InconsistentBatchStats(f"Negative counts: {', '.join(negative)}")
        classified = self.new + self.updated + self.unchanged + self.errored
        if classified != self.total:
            raise InconsistentBatchStats(
                f"new + updated + unchanged + errored = {classified}, expected total {self.total}"
            )
        if self.graded != self.total - self.errored:
            raise InconsistentBatchStats(
                f"approved + pending + rejected + not_found = {self.graded}, "
                f"expected {self.total - self.errored}"
            )

    @property
    def graded(self) -> int:
        return self.approved + self.pending + self.rejected + self.not_found

    @property
    def has_errors(self) -> bool:
        return self.errored > 0

    @property
    def approval_rate(self) -> float:
        """Percentage of graded rows that were approved."""
        return self.approved / self.graded * 100 if self.graded else 0.0

    @property
    def success_rate(self) -> float:
        return self.graded / self.total * 100 if self.total else 0.0

    def summary(self) -> str:
        text = (
            f"{self.total} rows: {self.new} new, {self.updated} updated, "
            f"{self.unchanged} unchanged, {self.errored} errored | "
            f"{self.approved} approved, {self.pending} pending, "
            f"{self.rejected} rejected, {self.not_found} not found"
        )
        if self.baseline:
            text += " (baseline)"
        return text


@dataclass(frozen=True, slots=True, kw_only=True)
class RevalidationCycle:
    id: UUID
    tenant_id: str | None
    processed: int
    newly_approved: int
    still_rejected: int
    still_not_found: int
    cost_changes: int
    started_at: datetime
    finished_at: datetime

    def __post_init__(self) -> None:
        negative = _negative_counts(self, _CYCLE_COUNTS)
        if negative:
            raise InconsistentCycleStats(f"Negative counts: {', '.join(negative)}")
        outcomes = self.newly_approved + self.still_rejected + self.still_not_found
        if outcomes > self.processed:
            raise InconsistentCycleStats(
                f"Outcome counts ({outcomes}) exceed processed claims ({self.processed})"
            )
        if self.finished_at < self.started_at:
            raise InconsistentCycleStats("Cycle cannot finish before it started")

    @property
    def duration(self) -> timedelta:
        return self.finished_at - self.started_at

    @property
    def is_global(self) -> bool:
        return self.tenant_id is None

    @property
    def should_notify(self) -> bool:
        return self.newly_approved > 0 or self.cost_changes > 0

    @property
    def approval_change_rate(self) -> float:
        return self.newly_approved / self.processed * 100 if self.processed else 0.0

    def formatted_duration(self) -> str:
        total_seconds = int(self.duration.total_seconds())
        minutes, seconds = divmod(total_seconds, 60)
        hours, minutes = divmod(minutes, 60)
        if hours:
            return f"{hours}h {minutes}m {seconds}s"
        if minutes:
            return f"{minutes}m {seconds}s"
        return f"{self.duration.total_seconds():.1f}s"

    def summary(self) -> str:
        scope = "all tenants" if self.is_global else f"tenant {self.tenant_id}"
        return (
            f"{self.processed} claims revalidated for {scope} in {self.formatted_duration()}: "
            f"{self.newly_approved} newly approved, {self.cost_changes} cost changes, "
            f"{self.still_rejected} still rejected, {self.still_not_found} still not found"
        )
