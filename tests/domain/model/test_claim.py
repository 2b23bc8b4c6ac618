from __future__ import annotations

from uuid import UUID

import pytest

from claimtrack.domain.model import (
    ActorKind,
    Claim,
    Grading,
    NoChange,
    OperationKind,
    TerminalStateViolation,
)
from tests.helpers.claims import TENANT, FixedClock, SequentialIds, cid, make_claim, money


def test_create_records_creation_version(clock: FixedClock, ids: SequentialIds) -> None:
    batch_id = UUID(int=999)
    claim = Claim.create(
        tenant_id=TENANT,
        identifier=cid("clm-1"),
        cost=money("10"),
        grading=Grading.PENDING,
        reason="first import",
        batch_id=batch_id,
        clock=clock,
        id_factory=ids,
    )

    assert claim.id == UUID(int=1)
    assert claim.version_count == 1
    version = claim.current_version
    assert version.sequence == 1
    assert version.operation is OperationKind.CREATION
    assert version.actor is ActorKind.BATCH_IMPORT
    assert version.previous_cost is None
    assert version.previous_grading is None
    assert version.batch_id == batch_id
    assert claim.first_seen_at == claim.updated_at == version.created_at
    assert not version.cost_changed
    assert not version.grading_changed


def test_update_cost_appends_version_and_mirrors_state(clock: FixedClock) -> None:
    claim = make_claim(cost="100", grading=Grading.PENDING, clock=clock)
    first = claim.current_version

    version = claim.update_cost(
        money("120"),
        Grading.REJECTED,
        "declared cost changed",
        actor=ActorKind.BATCH_IMPORT,
        clock=clock,
    )

    assert claim.versions == (first, version)
    assert version.sequence == 2
    assert version.operation is OperationKind.COST_UPDATE
    assert version.previous_cost == money("100")
    assert version.new_cost == money("120")
    assert version.previous_grading is Grading.PENDING
    assert claim.cost == money("120")
    assert claim.grading is Grading.REJECTED
    assert claim.reason == "declared cost changed"
    assert claim.updated_at == version.created_at
    assert claim.has_cost_change


def test_update_cost_with_same_cost_is_a_reevaluation() -> None:
    claim = make_claim(cost="100", grading=Grading.NOT_FOUND)

    version = claim.update_cost(
        money("100.00"), Grading.APPROVED, "now found", actor=ActorKind.BATCH_IMPORT
    )

    assert version.operation is OperationKind.PERIODIC_REEVALUATION
    assert claim.is_approved
    assert not claim.has_cost_change


def test_update_cost_without_change_raises_no_change() -> None:
    claim = make_claim(cost="100", grading=Grading.PENDING)

    with pytest.raises(NoChange):
        claim.update_cost(money("100.004"), Grading.PENDING, "same", actor=ActorKind.BATCH_IMPORT)
    assert claim.version_count == 1


def test_approved_claim_keeps_its_grading() -> None:
    claim = make_claim(cost="100", grading=Grading.APPROVED)

    with pytest.raises(TerminalStateViolation):
        claim.update_cost(money("80"), Grading.PENDING, "cheaper", actor=ActorKind.BATCH_IMPORT)

    version = claim.update_cost(
        money("80"), Grading.APPROVED, "corrected", actor=ActorKind.BATCH_IMPORT
    )
    assert version.operation is OperationKind.COST_UPDATE
    assert claim.grading is Grading.APPROVED
    assert claim.version_count == 2


def test_reevaluate_changes_grading_only() -> None:
    claim = make_claim(cost="50", grading=Grading.NOT_FOUND)

    assert claim.reevaluate(Grading.PENDING, "found at a different cost")
    assert claim.grading is Grading.PENDING
    assert claim.cost == money("50")
    version = claim.current_version
    assert version.operation is OperationKind.PERIODIC_REEVALUATION
    assert version.actor is ActorKind.PERIODIC_JOB
    assert version.grading_changed
    assert not version.cost_changed


def test_reevaluate_same_grading_returns_false() -> None:
    claim = make_claim(grading=Grading.REJECTED)

    assert not claim.reevaluate(Grading.REJECTED, "still rejected")
    assert claim.version_count == 1


def test_reevaluate_approved_claim_raises() -> None:
    claim = make_claim(grading=Grading.APPROVED)

    assert not claim.can_be_reevaluated()
    with pytest.raises(TerminalStateViolation):
        claim.reevaluate(Grading.APPROVED, "noop")
    assert claim.version_count == 1


def test_versions_are_exposed_read_only() -> None:
    claim = make_claim()

    assert isinstance(claim.versions, tuple)
    with pytest.raises(AttributeError):
        claim.versions.append(claim.current_version)  # type: ignore[attr-defined]
