"""Ports for persisting claims and run records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from claimtrack.domain.model import BatchImportRecord, Claim, RevalidationCycle

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from claimtrack.domain.model import ClaimIdentifier, Grading


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class ClaimRepository(Repository[Claim], Protocol):
    """Persistence contract for claim aggregates (including their versions)."""

    def find(self, tenant_id: str, identifier: ClaimIdentifier) -> Claim | None: ...

    def save_all(self, claims: Iterable[Claim]) -> None: ...

    def find_eligible(
        self,
        tenant_id: str | None,
        gradings: Collection[Grading],
        *,
        limit: int | None = None,
    ) -> list[Claim]:
        """Claims in ``gradings``, most recently updated first; ``None`` spans all tenants."""
        ...

    def count_by_grading(self, tenant_id: str) -> dict[Grading, int]: ...


@runtime_checkable
class BatchRecordRepository(Repository[BatchImportRecord], Protocol):
    def count_for_tenant(self, tenant_id: str) -> int: ...

    def list_recent(self, tenant_id: str, *, limit: int = 10) -> list[BatchImportRecord]: ...


@runtime_checkable
class CycleRecordRepository(Repository[RevalidationCycle], Protocol):
    def list_recent(
        self, tenant_id: str | None = None, *, limit: int = 10
    ) -> list[RevalidationCycle]: ...
