"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import ExitStack
from logging import getLogger
from typing import TYPE_CHECKING

from claimtrack.adapters.claim_system import HttpClaimSystem
from claimtrack.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from claimtrack.config import get_revalidation_config, get_rule_config
from claimtrack.domain.ports.unit_of_work import ClaimUnitOfWork
from claimtrack.domain.reconciliation import BatchImportResult, import_batch
from claimtrack.domain.reporting import GradingSummary
from claimtrack.domain.revalidation import RevalidationResult, run_revalidation

if TYPE_CHECKING:
    from collections.abc import Iterable

    from claimtrack.config import RevalidationConfig, RuleConfig
    from claimtrack.domain.model import BatchImportRecord, RevalidationCycle
    from claimtrack.domain.ports import ClaimSystem, RevalidationNotifier
    from claimtrack.domain.reconciliation import RawRow

UnitOfWorkFactory = Callable[[], ClaimUnitOfWork]


log = getLogger(__name__)


def _ensure_started(unit_of_work_factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return SqlAlchemyUnitOfWork


def _claim_system(stack: ExitStack, claim_system: ClaimSystem | None) -> ClaimSystem:
    if claim_system is not None:
        return claim_system
    return stack.enter_context(HttpClaimSystem())


def import_claims(
    *,
    tenant_id: str,
    rows: Iterable[RawRow],
    source: str = "",
    actor: str = "",
    claim_system: ClaimSystem | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    rule_config: RuleConfig | None = None,
) -> BatchImportResult:
    """Reconcile one uploaded batch of (claim number, declared cost) rows."""

    effective_uow = _ensure_started(unit_of_work_factory)
    rule_config = rule_config or get_rule_config()
    log.info(
        "Starting import: tenant=%s, source=%r, rules=%s, not_found_policy=%s",
        tenant_id,
        source,
        [rule.name for rule in rule_config.rules.enabled],
        rule_config.not_found_policy,
    )

    with ExitStack() as stack:
        result = import_batch(
            tenant_id=tenant_id,
            rows=rows,
            source=source,
            actor=actor,
            claim_system=_claim_system(stack, claim_system),
            unit_of_work_factory=effective_uow,
            rules=rule_config.rules,
            not_found_policy=rule_config.not_found_policy,
        )

    if result.errored:
        log.warning(
            "Import for tenant %s finished with %s errored rows: %s",
            tenant_id,
            len(result.errored),
            ", ".join(str(identifier) for identifier in result.errored),
        )
    return result


def revalidate_claims(
    *,
    tenant_id: str | None = None,
    max_batch_size: int | None = None,
    claim_system: ClaimSystem | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    rule_config: RuleConfig | None = None,
    revalidation_config: RevalidationConfig | None = None,
    notifier: RevalidationNotifier | None = None,
) -> RevalidationResult:
    """Run one revalidation cycle and notify when it produced noteworthy changes."""

    effective_uow = _ensure_started(unit_of_work_factory)
    rule_config = rule_config or get_rule_config()
    revalidation_config = revalidation_config or get_revalidation_config()
    batch_size = max_batch_size or revalidation_config.max_batch_size
    log.info(
        "Starting revalidation: tenant=%s, max_batch_size=%s, gradings=%s",
        tenant_id or "all",
        batch_size,
        [str(grading) for grading in revalidation_config.eligible_gradings],
    )

    with ExitStack() as stack:
        result = run_revalidation(
            tenant_id=tenant_id,
            max_batch_size=batch_size,
            claim_system=_claim_system(stack, claim_system),
            unit_of_work_factory=effective_uow,
            rules=rule_config.rules,
            eligible_gradings=revalidation_config.eligible_gradings,
            not_found_policy=rule_config.not_found_policy,
        )

    if notifier is not None and result.should_notify:
        try:
            notifier(result)
        except Exception:
            log.exception("Revalidation notifier failed")
    return result


def log_revalidation_changes(result: RevalidationResult) -> None:
    """Notifier that writes every claim change of a cycle to the log."""

    log.info("Revalidation changes: %s", result.cycle.summary())
    for change in result.changes:
        log.info(
            "  %s: %s -> %s, cost %s -> %s (%s)",
            change.identifier,
            change.previous_grading,
            change.new_grading,
            change.previous_cost,
            change.new_cost,
            change.reason,
        )


def grading_summary(
    tenant_id: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> GradingSummary:
    effective_uow = _ensure_started(unit_of_work_factory)
    with effective_uow() as uow:
        counts = uow.repositories.claims.count_by_grading(tenant_id)
    return GradingSummary.from_counts(tenant_id, counts)


def batch_history(
    tenant_id: str,
    *,
    limit: int = 10,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[BatchImportRecord]:
    effective_uow = _ensure_started(unit_of_work_factory)
    with effective_uow() as uow:
        return uow.repositories.batches.list_recent(tenant_id, limit=limit)


def cycle_history(
    tenant_id: str | None = None,
    *,
    limit: int = 10,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[RevalidationCycle]:
    effective_uow = _ensure_started(unit_of_work_factory)
    with effective_uow() as uow:
        return uow.repositories.cycles.list_recent(tenant_id, limit=limit)
