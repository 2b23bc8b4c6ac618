"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from sqlalchemy import func, insert, select

from claimtrack.adapters.sqlalchemy.mappings import (
    batch_import_table,
    claim_table,
    revalidation_cycle_table,
)
from claimtrack.domain.model import BatchImportRecord, Claim, Grading, RevalidationCycle

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from sqlalchemy.orm import Session

    from claimtrack.domain.model import ClaimIdentifier


class SqlAlchemyClaimRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Claim) -> None:
        self.session.add(entity)

    def find(self, tenant_id: str, identifier: ClaimIdentifier) -> Claim | None:
        stmt = (
            select(Claim)
            .where(claim_table.c.tenant_id == tenant_id)
            .where(claim_table.c.identifier == identifier)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def save_all(self, claims: Iterable[Claim]) -> None:
        self.session.add_all(list(claims))

    def find_eligible(
        self,
        tenant_id: str | None,
        gradings: Collection[Grading],
        *,
        limit: int | None = None,
    ) -> list[Claim]:
        stmt = (
            select(Claim)
            .where(claim_table.c._grading.in_(list(gradings)))  # noqa: SLF001
            .order_by(claim_table.c._updated_at.desc(), claim_table.c.identifier)  # noqa: SLF001
        )
        if tenant_id is not None:
            stmt = stmt.where(claim_table.c.tenant_id == tenant_id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def count_by_grading(self, tenant_id: str) -> dict[Grading, int]:
        grading_column = claim_table.c._grading  # noqa: SLF001
        stmt = (
            select(grading_column, func.count())
            .where(claim_table.c.tenant_id == tenant_id)
            .group_by(grading_column)
        )
        counts = dict.fromkeys(Grading, 0)
        for grading, count in self.session.execute(stmt):
            counts[Grading(grading)] = count
        return counts


class SqlAlchemyBatchRecordRepository:
    """Core-level persistence for immutable batch import records."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: BatchImportRecord) -> None:
        self.session.execute(insert(batch_import_table).values(**asdict(entity)))

    def count_for_tenant(self, tenant_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(batch_import_table)
            .where(batch_import_table.c.tenant_id == tenant_id)
        )
        return self.session.execute(stmt).scalar_one()

    def list_recent(self, tenant_id: str, *, limit: int = 10) -> list[BatchImportRecord]:
        stmt = (
            select(batch_import_table)
            .where(batch_import_table.c.tenant_id == tenant_id)
            .order_by(batch_import_table.c.created_at.desc())
            .limit(limit)
        )
        return [BatchImportRecord(**row._mapping) for row in self.session.execute(stmt)]


class SqlAlchemyCycleRecordRepository:
    """Core-level persistence for immutable revalidation cycle records."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: RevalidationCycle) -> None:
        self.session.execute(insert(revalidation_cycle_table).values(**asdict(entity)))

    def list_recent(
        self, tenant_id: str | None = None, *, limit: int = 10
    ) -> list[RevalidationCycle]:
        stmt = (
            select(revalidation_cycle_table)
            .order_by(revalidation_cycle_table.c.started_at.desc())
            .limit(limit)
        )
        if tenant_id is not None:
            stmt = stmt.where(revalidation_cycle_table.c.tenant_id == tenant_id)
        return [RevalidationCycle(**row._mapping) for row in self.session.execute(stmt)]


if TYPE_CHECKING:
    from claimtrack.domain.ports.persistence import (
        BatchRecordRepository,
        ClaimRepository,
        CycleRecordRepository,
    )

    def _check_claims(session: Session) -> ClaimRepository:
        return SqlAlchemyClaimRepository(session)

    def _check_batches(session: Session) -> BatchRecordRepository:
        return SqlAlchemyBatchRecordRepository(session)

    def _check_cycles(session: Session) -> CycleRecordRepository:
        return SqlAlchemyCycleRecordRepository(session)
