"""Batch import: reconcile a tenant's declared claim costs against the external system.

Every surviving row is looked up, graded and classified as new, updated,
unchanged or errored. Unchanged rows never append a version, so re-importing
the same file leaves the history untouched. Lookup failures are isolated to
their row; everything else aborts the unit of work.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from claimtrack.domain.model import (
    ActorKind,
    BatchImportRecord,
    Claim,
    Grading,
    NoChange,
    can_transition,
    new_id,
    utcnow,
)
from claimtrack.domain.release import attempt_release
from claimtrack.domain.rules import DEFAULT_NOT_FOUND_POLICY, RuleSet, evaluate

from .normalize import normalize_rows

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from uuid import UUID

    from claimtrack.domain.model import (
        ClaimIdentifier,
        Clock,
        IdFactory,
        MonetaryAmount,
    )
    from claimtrack.domain.ports import ClaimSystem, ClaimUnitOfWork
    from claimtrack.domain.rules import Evaluation, NotFoundPolicy

    from .normalize import NormalizedRow, RawRow

log = logging.getLogger(__name__)


class RowOutcome(StrEnum):
    NEW = "new"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    ERRORED = "errored"


@dataclass(frozen=True, slots=True)
class RowResult:
    """What happened to one deduplicated row; enough to render a results sheet."""

    identifier: ClaimIdentifier
    declared_cost: MonetaryAmount
    outcome: RowOutcome
    grading: Grading | None = None
    system_cost: MonetaryAmount | None = None
    reason: str = ""
    released: bool | None = None


@dataclass(slots=True)
class BatchImportResult:
    record: BatchImportRecord
    rows: list[RowResult] = field(default_factory=list["RowResult"])
    collapsed: int = 0

    @property
    def errored(self) -> list[ClaimIdentifier]:
        return [row.identifier for row in self.rows if row.outcome is RowOutcome.ERRORED]

    @property
    def released(self) -> list[ClaimIdentifier]:
        return [row.identifier for row in self.rows if row.released]


def import_batch(
    *,
    tenant_id: str,
    rows: Iterable[RawRow],
    claim_system: ClaimSystem,
    unit_of_work_factory: Callable[[], ClaimUnitOfWork],
    rules: RuleSet | None = None,
    not_found_policy: NotFoundPolicy = DEFAULT_NOT_FOUND_POLICY,
    source: str = "",
    actor: str = "",
    clock: Clock = utcnow,
    id_factory: IdFactory = new_id,
) -> BatchImportResult:
    """Reconcile ``rows`` for ``tenant_id`` and persist claims plus one batch record.

    Raises ``InvalidInputRow`` before touching persistence when any row is malformed.
    """

    normalized = normalize_rows(rows)
    effective_rules = rules or RuleSet()
    batch_id = id_factory()
    log.info(
        "Importing %s claims for tenant %s from %r (%s duplicate rows collapsed)",
        len(normalized.rows),
        tenant_id,
        source,
        normalized.collapsed,
    )

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        baseline = repositories.batches.count_for_tenant(tenant_id) == 0

        results: list[RowResult] = []
        touched: list[Claim] = []
        for row in normalized.rows:
            existing = repositories.claims.find(tenant_id, row.identifier)
            try:
                lookup = claim_system.lookup(row.identifier, row.cost)
            except Exception:
                log.exception("Lookup failed for claim %s; row counted as errored", row.identifier)
                results.append(
                    RowResult(
                        identifier=row.identifier,
                        declared_cost=row.cost,
                        outcome=RowOutcome.ERRORED,
                        reason="External lookup failed",
                    )
                )
                continue

            evaluation = evaluate(
                row.cost, lookup, effective_rules, not_found_policy=not_found_policy
            )
            claim, outcome = _reconcile_row(
                tenant_id,
                row,
                existing,
                evaluation,
                batch_id=batch_id,
                clock=clock,
                id_factory=id_factory,
            )
            released: bool | None = None
            if outcome is not RowOutcome.UNCHANGED:
                touched.append(claim)
                if claim.grading is Grading.APPROVED:
                    released = attempt_release(claim_system, claim)
            results.append(
                RowResult(
                    identifier=row.identifier,
                    declared_cost=row.cost,
                    outcome=outcome,
                    grading=claim.grading,
                    system_cost=lookup.system_cost if lookup.found else None,
                    reason=claim.reason,
                    released=released,
                )
            )

        repositories.claims.save_all(touched)
        record = _build_record(
            results,
            tenant_id=tenant_id,
            source=source,
            actor=actor,
            baseline=baseline,
            batch_id=batch_id,
            clock=clock,
        )
        repositories.batches.add(record)
        uow.commit()

    log.info("Finished import for tenant %s: %s", tenant_id, record.summary())
    return BatchImportResult(record=record, rows=results, collapsed=normalized.collapsed)


def _reconcile_row(
    tenant_id: str,
    row: NormalizedRow,
    existing: Claim | None,
    evaluation: Evaluation,
    *,
    batch_id: UUID,
    clock: Clock,
    id_factory: IdFactory,
) -> tuple[Claim, RowOutcome]:
    if existing is None:
        claim = Claim.create(
            tenant_id=tenant_id,
            identifier=row.identifier,
            cost=row.cost,
            grading=evaluation.grading,
            reason=evaluation.reason,
            actor=ActorKind.BATCH_IMPORT,
            batch_id=batch_id,
            clock=clock,
            id_factory=id_factory,
        )
        return claim, RowOutcome.NEW

    if not can_transition(existing.grading, evaluation.grading):
        log.warning(
            "Claim %s is already approved; ignoring new grading %s (%s)",
            existing.identifier,
            evaluation.grading,
            evaluation.reason,
        )
        return existing, RowOutcome.UNCHANGED

    try:
        existing.update_cost(
            row.cost,
            evaluation.grading,
            evaluation.reason,
            actor=ActorKind.BATCH_IMPORT,
            batch_id=batch_id,
            clock=clock,
            id_factory=id_factory,
        )
    except NoChange:
        return existing, RowOutcome.UNCHANGED
    return existing, RowOutcome.UPDATED


def _build_record(
    results: list[RowResult],
    *,
    tenant_id: str,
    source: str,
    actor: str,
    baseline: bool,
    batch_id: UUID,
    clock: Clock,
) -> BatchImportRecord:
    outcomes = Counter(row.outcome for row in results)
    gradings = Counter(row.grading for row in results if row.grading is not None)
    return BatchImportRecord(
        id=batch_id,
        tenant_id=tenant_id,
        source=source,
        total=len(results),
        new=outcomes[RowOutcome.NEW],
        updated=outcomes[RowOutcome.UPDATED],
        unchanged=outcomes[RowOutcome.UNCHANGED],
        errored=outcomes[RowOutcome.ERRORED],
        approved=gradings[Grading.APPROVED],
        pending=gradings[Grading.PENDING],
        rejected=gradings[Grading.REJECTED],
        not_found=gradings[Grading.NOT_FOUND],
        baseline=baseline,
        actor=actor,
        created_at=clock(),
    )
