"""Normalization and intra-batch deduplication of raw import rows.

Responsibilities of this stage:
- parse every raw row into value objects, rejecting the whole batch on the first bad row
- collapse repeated claim numbers so the last occurrence wins
- avoid persistence side effects
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from claimtrack.domain.model import (
    ClaimEngineError,
    ClaimIdentifier,
    InvalidInputRow,
    MonetaryAmount,
)

if TYPE_CHECKING:
    from collections.abc import Iterable


type RawRow = tuple[object, object]

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NormalizedRow:
    position: int
    identifier: ClaimIdentifier
    cost: MonetaryAmount


@dataclass(slots=True)
class NormalizationResult:
    """Surviving rows in first-seen order, plus how many rows were collapsed."""

    rows: list[NormalizedRow]
    collapsed: int

    @property
    def identifiers(self) -> list[ClaimIdentifier]:
        return [row.identifier for row in self.rows]


def parse_row(position: int, raw: RawRow) -> NormalizedRow:
    raw_identifier, raw_cost = raw
    try:
        identifier = ClaimIdentifier.parse(raw_identifier)
        cost = MonetaryAmount.of(raw_cost)
    except ClaimEngineError as exc:
        raise InvalidInputRow(position, raw, exc) from exc
    return NormalizedRow(position=position, identifier=identifier, cost=cost)


def normalize_rows(rows: Iterable[RawRow]) -> NormalizationResult:
    """Parse ``rows`` (1-based positions) and keep the last cost per claim number."""

    by_identifier: dict[ClaimIdentifier, NormalizedRow] = {}
    collapsed = 0
    for position, raw in enumerate(rows, start=1):
        row = parse_row(position, raw)
        previous = by_identifier.get(row.identifier)
        if previous is not None:
            collapsed += 1
            log.warning(
                "Duplicate claim %s at row %s (first seen at row %s); keeping cost %s",
                row.identifier,
                position,
                previous.position,
                row.cost,
            )
        by_identifier[row.identifier] = row
    return NormalizationResult(rows=list(by_identifier.values()), collapsed=collapsed)
