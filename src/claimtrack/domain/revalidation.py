"""Periodic revalidation of claims the external system could not confirm yet."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from claimtrack.domain.model import (
    ActorKind,
    Grading,
    RevalidationCycle,
    TerminalStateViolation,
    new_id,
    utcnow,
)
from claimtrack.domain.release import attempt_release
from claimtrack.domain.rules import DEFAULT_NOT_FOUND_POLICY, RuleSet, evaluate, is_not_found

if TYPE_CHECKING:
    from collections.abc import Callable, Collection

    from claimtrack.domain.model import Claim, ClaimIdentifier, Clock, IdFactory, MonetaryAmount
    from claimtrack.domain.ports import ClaimSystem, ClaimUnitOfWork
    from claimtrack.domain.rules import NotFoundPolicy

DEFAULT_MAX_BATCH_SIZE: Final[int] = 1000
DEFAULT_ELIGIBLE_GRADINGS: Final[tuple[Grading, ...]] = (Grading.NOT_FOUND,)

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ClaimChange:
    identifier: ClaimIdentifier
    previous_grading: Grading
    new_grading: Grading
    previous_cost: MonetaryAmount
    new_cost: MonetaryAmount
    reason: str

    @property
    def cost_changed(self) -> bool:
        return self.previous_cost != self.new_cost


@dataclass(slots=True)
class RevalidationResult:
    cycle: RevalidationCycle
    changes: list[ClaimChange] = field(default_factory=list["ClaimChange"])
    eligible: int = 0

    @property
    def should_notify(self) -> bool:
        return self.cycle.should_notify

    @property
    def truncated(self) -> bool:
        return self.eligible > self.cycle.processed


@dataclass(slots=True)
class _Tally:
    processed: int = 0
    newly_approved: int = 0
    still_rejected: int = 0
    still_not_found: int = 0
    cost_changes: int = 0

    def record(self, previous: Grading, current: Grading, *, cost_changed: bool) -> None:
        self.processed += 1
        if cost_changed:
            self.cost_changes += 1
        if current is Grading.APPROVED and previous is not Grading.APPROVED:
            self.newly_approved += 1
        elif current is previous is Grading.REJECTED:
            self.still_rejected += 1
        elif current is previous is Grading.NOT_FOUND:
            self.still_not_found += 1


def run_revalidation(
    *,
    claim_system: ClaimSystem,
    unit_of_work_factory: Callable[[], ClaimUnitOfWork],
    tenant_id: str | None = None,
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
    rules: RuleSet | None = None,
    eligible_gradings: Collection[Grading] = DEFAULT_ELIGIBLE_GRADINGS,
    not_found_policy: NotFoundPolicy = DEFAULT_NOT_FOUND_POLICY,
    clock: Clock = utcnow,
    id_factory: IdFactory = new_id,
) -> RevalidationResult:
    """Re-check eligible claims against the external system and record one cycle.

    ``tenant_id=None`` revalidates every tenant. Approved claims are never eligible.
    """

    if Grading.APPROVED in eligible_gradings:
        raise ValueError("Approved claims are closed and cannot be revalidated")
    if not eligible_gradings:
        raise ValueError("At least one grading must be eligible for revalidation")
    if max_batch_size < 1:
        raise ValueError("max_batch_size must be positive")

    effective_rules = rules or RuleSet()
    started_at = clock()
    scope = tenant_id or "all tenants"

    with unit_of_work_factory() as uow:
        claims_repo = uow.repositories.claims
        claims = claims_repo.find_eligible(tenant_id, eligible_gradings)
        eligible = len(claims)
        if eligible > max_batch_size:
            log.info(
                "Revalidation for %s limited to %s of %s eligible claims",
                scope,
                max_batch_size,
                eligible,
            )
            claims = claims[:max_batch_size]
        log.info("Revalidating %s claims for %s", len(claims), scope)

        tally = _Tally()
        changes: list[ClaimChange] = []
        modified: list[Claim] = []
        for claim in claims:
            change = _revalidate_claim(
                claim,
                claim_system=claim_system,
                rules=effective_rules,
                not_found_policy=not_found_policy,
                clock=clock,
                id_factory=id_factory,
            )
            if change is None:
                continue
            tally.record(
                change.previous_grading, change.new_grading, cost_changed=change.cost_changed
            )
            if change.previous_grading is change.new_grading and not change.cost_changed:
                continue
            changes.append(change)
            modified.append(claim)
            if claim.grading is Grading.APPROVED:
                attempt_release(claim_system, claim)

        if modified:
            claims_repo.save_all(modified)
        cycle = RevalidationCycle(
            id=id_factory(),
            tenant_id=tenant_id,
            processed=tally.processed,
            newly_approved=tally.newly_approved,
            still_rejected=tally.still_rejected,
            still_not_found=tally.still_not_found,
            cost_changes=tally.cost_changes,
            started_at=started_at,
            finished_at=clock(),
        )
        uow.repositories.cycles.add(cycle)
        uow.commit()

    log.info("Revalidation finished: %s", cycle.summary())
    return RevalidationResult(cycle=cycle, changes=changes, eligible=eligible)


def _revalidate_claim(
    claim: Claim,
    *,
    claim_system: ClaimSystem,
    rules: RuleSet,
    not_found_policy: NotFoundPolicy,
    clock: Clock,
    id_factory: IdFactory,
) -> ClaimChange | None:
    """Re-grade one claim; ``None`` means the lookup failed and nothing was counted."""

    if not claim.can_be_reevaluated():
        raise TerminalStateViolation(
            f"Claim {claim.identifier} is {claim.grading} and cannot be revalidated"
        )

    previous_grading = claim.grading
    previous_cost = claim.cost
    try:
        lookup = claim_system.lookup(claim.identifier, claim.cost)
    except Exception:
        log.exception("Lookup failed while revalidating claim %s; skipping", claim.identifier)
        return None

    evaluation = evaluate(claim.cost, lookup, rules, not_found_policy=not_found_policy)
    if not is_not_found(lookup, not_found_policy) and lookup.system_cost != claim.cost:
        claim.update_cost(
            lookup.system_cost,
            evaluation.grading,
            f"Cost updated from external system: {evaluation.reason}",
            actor=ActorKind.PERIODIC_JOB,
            clock=clock,
            id_factory=id_factory,
        )
        log.info("Claim %s cost updated %s -> %s", claim.identifier, previous_cost, claim.cost)
    elif claim.reevaluate(
        evaluation.grading, evaluation.reason, clock=clock, id_factory=id_factory
    ):
        log.info("Claim %s regraded %s -> %s", claim.identifier, previous_grading, claim.grading)

    return ClaimChange(
        identifier=claim.identifier,
        previous_grading=previous_grading,
        new_grading=claim.grading,
        previous_cost=previous_cost,
        new_cost=claim.cost,
        reason=evaluation.reason,
    )

