"""Port for announcing revalidation outcomes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from claimtrack.domain.revalidation import RevalidationResult


@runtime_checkable
class RevalidationNotifier(Protocol):
    def __call__(self, result: RevalidationResult) -> None: ...
