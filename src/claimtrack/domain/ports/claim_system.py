"""Port for the external system that holds authoritative claim costs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from claimtrack.domain.model import MonetaryAmount

if TYPE_CHECKING:
    from claimtrack.domain.model import ClaimIdentifier


@dataclass(frozen=True, slots=True)
class LookupResult:
    found: bool
    system_cost: MonetaryAmount = field(default_factory=MonetaryAmount.zero)

    @classmethod
    def not_found(cls) -> LookupResult:
        return cls(found=False)


@runtime_checkable
class ClaimSystem(Protocol):
    """Lookup and release operations offered by the external claim system.

    ``lookup`` may raise on transport failures; callers isolate those per claim.
    ``release`` is best-effort and reports failure through its return value.
    """

    def lookup(
        self, identifier: ClaimIdentifier, declared_cost: MonetaryAmount
    ) -> LookupResult: ...

    def release(self, identifier: ClaimIdentifier, cost: MonetaryAmount) -> bool: ...
