"""Revalidation cycle defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass

from claimtrack.domain.model import Grading
from claimtrack.domain.revalidation import DEFAULT_ELIGIBLE_GRADINGS, DEFAULT_MAX_BATCH_SIZE

from .env import env_int
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class RevalidationConfig:
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    eligible_gradings: tuple[Grading, ...] = DEFAULT_ELIGIBLE_GRADINGS


def _eligible_gradings() -> tuple[Grading, ...]:
    raw = os.getenv("CLAIMTRACK_REVALIDATION_GRADINGS")
    if raw is None or not raw.strip():
        return DEFAULT_ELIGIBLE_GRADINGS
    gradings: list[Grading] = []
    for item in raw.split(","):
        name = item.strip().lower()
        if not name:
            continue
        try:
            grading = Grading(name)
        except ValueError as exc:
            raise ConfigurationError(
                f"Unknown grading in CLAIMTRACK_REVALIDATION_GRADINGS: {item!r}"
            ) from exc
        if grading is Grading.APPROVED:
            raise ConfigurationError("Approved claims cannot be revalidated")
        if grading not in gradings:
            gradings.append(grading)
    if not gradings:
        raise ConfigurationError("CLAIMTRACK_REVALIDATION_GRADINGS must name at least one grading")
    return tuple(gradings)


def get_revalidation_config() -> RevalidationConfig:
    return RevalidationConfig(
        max_batch_size=env_int(
            "CLAIMTRACK_REVALIDATION_BATCH_SIZE", default=DEFAULT_MAX_BATCH_SIZE, minimum=1
        ),
        eligible_gradings=_eligible_gradings(),
    )
