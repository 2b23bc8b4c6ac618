"""Claim aggregate and its append-only version history.

A ``Claim`` is identified by ``(tenant_id, identifier)``. Its current cost,
grading and reason always mirror the last ``ClaimVersion``; the only way to
change them is through :meth:`Claim.update_cost` and :meth:`Claim.reevaluate`,
which append a new version instead of editing the previous one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .base import new_id, utcnow
from .enums import ActorKind, OperationKind
from .errors import NoChange, TerminalStateViolation
from .grading import Grading, can_transition

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from .base import Clock, IdFactory
    from .primitives import ClaimIdentifier, MonetaryAmount


@dataclass(eq=False, kw_only=True)
class ClaimVersion:
    """One recorded change; written once by the owning claim and never edited."""

    id: UUID
    sequence: int
    previous_cost: MonetaryAmount | None
    new_cost: MonetaryAmount
    previous_grading: Grading | None
    new_grading: Grading
    reason: str
    operation: OperationKind
    actor: ActorKind
    created_at: datetime
    batch_id: UUID | None = None

    @property
    def cost_changed(self) -> bool:
        return self.previous_cost is not None and self.previous_cost != self.new_cost

    @property
    def grading_changed(self) -> bool:
        return self.previous_grading is not None and self.previous_grading is not self.new_grading


@dataclass(eq=False, kw_only=True)
class Claim:
    id: UUID
    tenant_id: str
    identifier: ClaimIdentifier
    first_seen_at: datetime
    _cost: MonetaryAmount
    _grading: Grading
    _reason: str
    _updated_at: datetime
    _versions: list[ClaimVersion] = field(default_factory=list["ClaimVersion"], repr=False)

    @classmethod
    def create(
        cls,
        *,
        tenant_id: str,
        identifier: ClaimIdentifier,
        cost: MonetaryAmount,
        grading: Grading,
        reason: str,
        actor: ActorKind = ActorKind.BATCH_IMPORT,
        batch_id: UUID | None = None,
        clock: Clock = utcnow,
        id_factory: IdFactory = new_id,
    ) -> Claim:
        """Register a claim seen for the first time, with its ``CREATION`` version."""

        now = clock()
        claim = cls(
            id=id_factory(),
            tenant_id=tenant_id,
            identifier=identifier,
            first_seen_at=now,
            _cost=cost,
            _grading=grading,
            _reason=reason,
            _updated_at=now,
        )
        claim._append(
            ClaimVersion(
                id=id_factory(),
                sequence=1,
                previous_cost=None,
                new_cost=cost,
                previous_grading=None,
                new_grading=grading,
                reason=reason,
                operation=OperationKind.CREATION,
                actor=actor,
                created_at=now,
                batch_id=batch_id,
            )
        )
        return claim

    @property
    def cost(self) -> MonetaryAmount:
        return self._cost

    @property
    def grading(self) -> Grading:
        return self._grading

    @property
    def reason(self) -> str:
        return self._reason

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def versions(self) -> tuple[ClaimVersion, ...]:
        return tuple(self._versions)

    @property
    def version_count(self) -> int:
        return len(self._versions)

    @property
    def current_version(self) -> ClaimVersion:
        return self._versions[-1]

    @property
    def is_approved(self) -> bool:
        return self._grading is Grading.APPROVED

    @property
    def has_cost_change(self) -> bool:
        return any(version.cost_changed for version in self._versions)

    def can_be_reevaluated(self) -> bool:
        return not self._grading.is_terminal

    def update_cost(
        self,
        new_cost: MonetaryAmount,
        new_grading: Grading,
        reason: str,
        *,
        actor: ActorKind,
        batch_id: UUID | None = None,
        clock: Clock = utcnow,
        id_factory: IdFactory = new_id,
    ) -> ClaimVersion:
        """Record a new declared cost and/or grading.

        Raises ``NoChange`` when both already match; callers treat that as a no-op.
        An approved claim may have its cost corrected but can never leave
        ``APPROVED``; attempting to do so raises ``TerminalStateViolation``.
        """

        cost_differs = new_cost != self._cost
        if not cost_differs and new_grading is self._grading:
            raise NoChange(f"Claim {self.identifier} already has cost {new_cost} ({new_grading})")
        if not can_transition(self._grading, new_grading):
            raise TerminalStateViolation(
                f"Claim {self.identifier} is {self._grading} and cannot become {new_grading}"
            )

        operation = (
            OperationKind.COST_UPDATE if cost_differs else OperationKind.PERIODIC_REEVALUATION
        )
        return self._record(
            new_cost=new_cost,
            new_grading=new_grading,
            reason=reason,
            operation=operation,
            actor=actor,
            batch_id=batch_id,
            clock=clock,
            id_factory=id_factory,
        )

    def reevaluate(
        self,
        new_grading: Grading,
        reason: str,
        *,
        actor: ActorKind = ActorKind.PERIODIC_JOB,
        clock: Clock = utcnow,
        id_factory: IdFactory = new_id,
    ) -> bool:
        """Re-grade without touching the cost; returns whether anything changed."""

        if not self.can_be_reevaluated():
            raise TerminalStateViolation(f"Claim {self.identifier} is approved and closed")
        if new_grading is self._grading:
            return False

        self._record(
            new_cost=self._cost,
            new_grading=new_grading,
            reason=reason,
            operation=OperationKind.PERIODIC_REEVALUATION,
            actor=actor,
            batch_id=None,
            clock=clock,
            id_factory=id_factory,
        )
        return True

    def _record(
        self,
        *,
        new_cost: MonetaryAmount,
        new_grading: Grading,
        reason: str,
        operation: OperationKind,
        actor: ActorKind,
        batch_id: UUID | None,
        clock: Clock,
        id_factory: IdFactory,
    ) -> ClaimVersion:
        version = ClaimVersion(
            id=id_factory(),
            sequence=len(self._versions) + 1,
            previous_cost=self._cost,
            new_cost=new_cost,
            previous_grading=self._grading,
            new_grading=new_grading,
            reason=reason,
            operation=operation,
            actor=actor,
            created_at=clock(),
            batch_id=batch_id,
        )
        self._append(version)
        return version

    def _append(self, version: ClaimVersion) -> None:
        self._versions.append(version)
        self._cost = version.new_cost
        self._grading = version.new_grading
        self._reason = version.reason
        self._updated_at = version.created_at
