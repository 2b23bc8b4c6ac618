"""Domain port definitions for adapters."""

from __future__ import annotations

from .claim_system import ClaimSystem, LookupResult
from .notification import RevalidationNotifier
from .persistence import (
    BatchRecordRepository,
    ClaimRepository,
    CycleRecordRepository,
    Repository,
)
from .unit_of_work import (
    ClaimRepositories,
    ClaimUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "BatchRecordRepository",
    "ClaimRepositories",
    "ClaimRepository",
    "ClaimSystem",
    "ClaimUnitOfWork",
    "CycleRecordRepository",
    "LookupResult",
    "Repository",
    "RepositoryCollection",
    "RevalidationNotifier",
    "UnitOfWork",
]
