from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from claimtrack.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from claimtrack.domain.model import Grading
from claimtrack.domain.reconciliation import import_batch
from claimtrack.domain.revalidation import run_revalidation
from tests.helpers.claims import (
    TENANT,
    FakeClaimSystem,
    FixedClock,
    SequentialIds,
    cid,
    make_claim,
    money,
    numbered_costs,
    rows_for,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine


def test_unit_of_work_requires_startup() -> None:
    shutdown()

    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyUnitOfWork()


def test_startup_refuses_double_initialisation(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    try:
        assert configured_engine() is sqlite_engine
        with pytest.raises(StartupError):
            startup(engine=sqlite_engine)
    finally:
        shutdown()


def test_repositories_unavailable_outside_context(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    uow = sqlite_unit_of_work()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_uncommitted_work_is_discarded(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.claims.add(make_claim("CLM-1"))
    assert not uow.committed

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.claims.find(TENANT, cid("CLM-1")) is None


def test_committed_claims_stay_readable_after_close(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        claim = make_claim("CLM-1", cost="12.50")
        uow.repositories.claims.add(claim)
        uow.commit()

    assert uow.committed
    assert claim.cost == money("12.50")
    assert claim.version_count == 1


def test_open_unit_of_work_cannot_be_reentered(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    uow = sqlite_unit_of_work()

    with uow, pytest.raises(StartupError):
        uow.__enter__()


def test_exception_rolls_back(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with pytest.raises(RuntimeError), sqlite_unit_of_work() as uow:
        uow.repositories.claims.add(make_claim("CLM-1"))
        uow.session.flush()
        raise RuntimeError("boom")

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.claims.find(TENANT, cid("CLM-1")) is None


def test_import_and_revalidation_end_to_end(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    clock = FixedClock()
    ids = SequentialIds()
    costs = numbered_costs(100)
    claim_system = FakeClaimSystem(costs={key: cost for key, cost in list(costs.items())[:90]})

    first = import_batch(
        tenant_id=TENANT,
        rows=rows_for(costs),
        claim_system=claim_system,
        unit_of_work_factory=sqlite_unit_of_work,
        clock=clock,
        id_factory=ids,
    )
    assert (first.record.new, first.record.approved, first.record.not_found) == (100, 90, 10)

    second = import_batch(
        tenant_id=TENANT,
        rows=rows_for(costs),
        claim_system=claim_system,
        unit_of_work_factory=sqlite_unit_of_work,
        clock=clock,
        id_factory=ids,
    )
    assert second.record.unchanged == 100
    assert not second.record.baseline

    claim_system.costs.update(costs)
    cycle = run_revalidation(
        tenant_id=TENANT,
        claim_system=claim_system,
        unit_of_work_factory=sqlite_unit_of_work,
        clock=clock,
        id_factory=ids,
    ).cycle
    assert (cycle.processed, cycle.newly_approved) == (10, 10)

    with sqlite_unit_of_work() as uow:
        repositories = uow.repositories
        counts = repositories.claims.count_by_grading(TENANT)
        claim = repositories.claims.find(TENANT, cid("CLM-0100"))
        assert claim is not None
        versions = claim.version_count
        batches = repositories.batches.list_recent(TENANT)
        cycles = repositories.cycles.list_recent(TENANT)

    assert counts[Grading.APPROVED] == 100
    assert versions == 2
    assert [batch.id for batch in batches] == [second.record.id, first.record.id]
    assert cycles == [cycle]
