"""Closed vocabularies for claim history records."""

from __future__ import annotations

from enum import StrEnum


class OperationKind(StrEnum):
    CREATION = "creation"
    COST_UPDATE = "cost_update"
    PERIODIC_REEVALUATION = "periodic_reevaluation"


class ActorKind(StrEnum):
    BATCH_IMPORT = "batch_import"
    PERIODIC_JOB = "periodic_job"
