from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from claimtrack.app import (
    batch_history,
    cycle_history,
    grading_summary,
    import_claims,
    log_revalidation_changes,
    revalidate_claims,
)
from claimtrack.config import RevalidationConfig, RuleConfig
from claimtrack.domain.rules import NotFoundPolicy, RuleSet
from tests.helpers.claims import TENANT, FakeClaimSystem, FakeUnitOfWork

if TYPE_CHECKING:
    from claimtrack.domain.revalidation import RevalidationResult

EXACT_ONLY = RuleConfig(rules=RuleSet())


def test_import_claims_uses_rule_config(fake_uow: FakeUnitOfWork) -> None:
    claim_system = FakeClaimSystem(costs={"CLM-1": "100", "CLM-2": "0"})
    rule_config = RuleConfig(
        rules=RuleSet(exact_match=False, margin=True),
        not_found_policy=NotFoundPolicy.FOUND_FLAG,
    )

    result = import_claims(
        tenant_id=TENANT,
        rows=[("CLM-1", "95"), ("CLM-2", "0")],
        source="batch.csv",
        actor="ops",
        claim_system=claim_system,
        unit_of_work_factory=fake_uow,
        rule_config=rule_config,
    )

    assert result.record.approved == 2
    assert result.record.source == "batch.csv"
    assert fake_uow.batches.records == [result.record]


def test_import_claims_logs_errored_rows(
    fake_uow: FakeUnitOfWork, caplog: pytest.LogCaptureFixture
) -> None:
    claim_system = FakeClaimSystem(failing={"CLM-1"})

    with caplog.at_level(logging.WARNING, logger="claimtrack.app"):
        result = import_claims(
            tenant_id=TENANT,
            rows=[("CLM-1", "1")],
            claim_system=claim_system,
            unit_of_work_factory=fake_uow,
            rule_config=EXACT_ONLY,
        )

    assert result.record.errored == 1
    assert "1 errored rows: CLM-1" in caplog.text


def test_revalidate_notifies_on_changes(fake_uow: FakeUnitOfWork) -> None:
    import_claims(
        tenant_id=TENANT,
        rows=[("CLM-1", "10")],
        claim_system=FakeClaimSystem(),
        unit_of_work_factory=fake_uow,
        rule_config=EXACT_ONLY,
    )
    notified: list[RevalidationResult] = []

    result = revalidate_claims(
        claim_system=FakeClaimSystem(costs={"CLM-1": "10"}),
        unit_of_work_factory=fake_uow,
        rule_config=EXACT_ONLY,
        revalidation_config=RevalidationConfig(max_batch_size=5),
        notifier=notified.append,
    )

    assert notified == [result]
    assert result.cycle.newly_approved == 1


def test_revalidate_skips_notifier_for_quiet_cycle(fake_uow: FakeUnitOfWork) -> None:
    notified: list[RevalidationResult] = []

    revalidate_claims(
        claim_system=FakeClaimSystem(),
        unit_of_work_factory=fake_uow,
        rule_config=EXACT_ONLY,
        revalidation_config=RevalidationConfig(),
        notifier=notified.append,
    )

    assert notified == []


def test_failing_notifier_does_not_fail_the_cycle(
    fake_uow: FakeUnitOfWork, caplog: pytest.LogCaptureFixture
) -> None:
    import_claims(
        tenant_id=TENANT,
        rows=[("CLM-1", "10")],
        claim_system=FakeClaimSystem(),
        unit_of_work_factory=fake_uow,
        rule_config=EXACT_ONLY,
    )

    def notifier(_: RevalidationResult) -> None:
        raise RuntimeError("mail server down")

    result = revalidate_claims(
        claim_system=FakeClaimSystem(costs={"CLM-1": "10"}),
        unit_of_work_factory=fake_uow,
        rule_config=EXACT_ONLY,
        revalidation_config=RevalidationConfig(),
        notifier=notifier,
    )

    assert result.cycle.processed == 1
    assert fake_uow.cycles.cycles == [result.cycle]
    assert "Revalidation notifier failed" in caplog.text


def test_max_batch_size_overrides_config(fake_uow: FakeUnitOfWork) -> None:
    import_claims(
        tenant_id=TENANT,
        rows=[("CLM-1", "1"), ("CLM-2", "2"), ("CLM-3", "3")],
        claim_system=FakeClaimSystem(),
        unit_of_work_factory=fake_uow,
        rule_config=EXACT_ONLY,
    )

    result = revalidate_claims(
        max_batch_size=2,
        claim_system=FakeClaimSystem(),
        unit_of_work_factory=fake_uow,
        rule_config=EXACT_ONLY,
        revalidation_config=RevalidationConfig(max_batch_size=100),
    )

    assert result.cycle.processed == 2
    assert result.truncated


def test_log_notifier_lists_changes(
    fake_uow: FakeUnitOfWork, caplog: pytest.LogCaptureFixture
) -> None:
    import_claims(
        tenant_id=TENANT,
        rows=[("CLM-1", "10")],
        claim_system=FakeClaimSystem(),
        unit_of_work_factory=fake_uow,
        rule_config=EXACT_ONLY,
    )

    with caplog.at_level(logging.INFO, logger="claimtrack.app"):
        revalidate_claims(
            claim_system=FakeClaimSystem(costs={"CLM-1": "10"}),
            unit_of_work_factory=fake_uow,
            rule_config=EXACT_ONLY,
            revalidation_config=RevalidationConfig(),
            notifier=log_revalidation_changes,
        )

    assert "CLM-1: not_found -> approved" in caplog.text


@pytest.mark.usefixtures("sqlite_unit_of_work")
def test_read_side_queries_against_sqlite() -> None:
    import_claims(
        tenant_id=TENANT,
        rows=[("CLM-1", "10"), ("CLM-2", "10"), ("CLM-3", "10")],
        claim_system=FakeClaimSystem(costs={"CLM-1": "10", "CLM-2": "20"}),
        rule_config=EXACT_ONLY,
    )
    revalidate_claims(
        claim_system=FakeClaimSystem(),
        rule_config=EXACT_ONLY,
        revalidation_config=RevalidationConfig(),
    )

    summary = grading_summary(TENANT)
    batches = batch_history(TENANT, limit=5)
    cycles = cycle_history()

    assert (summary.approved, summary.pending, summary.not_found) == (1, 1, 1)
    assert summary.open == 2
    assert [batch.total for batch in batches] == [3]
    assert batches[0].baseline
    assert len(cycles) == 1
    assert cycles[0].is_global
    assert grading_summary("nobody").total == 0
    assert summary.tenant_id == TENANT
