"""Grading rules applied to a declared cost and an external system lookup.

``evaluate`` is pure: it neither persists nor releases anything, it only
decides which grading a declared cost deserves and why.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import IntEnum, StrEnum
from typing import TYPE_CHECKING, Final

from claimtrack.domain.model import Grading

if TYPE_CHECKING:
    from claimtrack.domain.model import MonetaryAmount
    from claimtrack.domain.ports.claim_system import LookupResult

EXACT_MATCH_TOLERANCE: Final[Decimal] = Decimal("0.01")
DEFAULT_MARGIN_PERCENT: Final[Decimal] = Decimal(10)


class Rule(IntEnum):
    """Approval rules in priority order."""

    EXACT_MATCH = 1
    MARGIN = 2
    SURPLUS = 3


class NotFoundPolicy(StrEnum):
    """How a lookup result is judged to mean "claim not available"."""

    FOUND_FLAG = "found_flag"
    ZERO_COST = "zero_cost"


DEFAULT_NOT_FOUND_POLICY: Final[NotFoundPolicy] = NotFoundPolicy.ZERO_COST


@dataclass(frozen=True, slots=True)
class RuleSet:
    exact_match: bool = True
    margin: bool = False
    surplus: bool = False
    margin_percent: Decimal = DEFAULT_MARGIN_PERCENT

    def __post_init__(self) -> None:
        if not self.exact_match:
            # exact match may only be disabled together with another rule
            if not (self.margin or self.surplus):
                raise ValueError("At least one approval rule must be enabled")
        if self.margin_percent < 0:
            raise ValueError("Margin percent must not be negative")

    @property
    def enabled(self) -> tuple[Rule, ...]:
        flags = {
            Rule.EXACT_MATCH: self.exact_match,
            Rule.MARGIN: self.margin,
            Rule.SURPLUS: self.surplus,
        }
        return tuple(rule for rule, on in flags.items() if on)


@dataclass(frozen=True, slots=True)
class Evaluation:
    grading: Grading
    reason: str
    rule: Rule | None
    should_release: bool


def is_not_found(lookup: LookupResult, policy: NotFoundPolicy = DEFAULT_NOT_FOUND_POLICY) -> bool:
    if not lookup.found:
        return True
    return policy is NotFoundPolicy.ZERO_COST and lookup.system_cost.is_zero


def evaluate(
    declared: MonetaryAmount,
    lookup: LookupResult,
    rules: RuleSet | None = None,
    *,
    not_found_policy: NotFoundPolicy = DEFAULT_NOT_FOUND_POLICY,
) -> Evaluation:
    """Grade ``declared`` against the external ``lookup`` using ``rules``."""

    rules = rules or RuleSet()
    if is_not_found(lookup, not_found_policy):
        return Evaluation(
            grading=Grading.NOT_FOUND,
            reason="Claim not found in external system",
            rule=None,
            should_release=False,
        )

    external = lookup.system_cost
    variance = declared.variance(external)

    if rules.exact_match and declared.difference(external) < EXACT_MATCH_TOLERANCE:
        return _approved(Rule.EXACT_MATCH, f"Exact match: declared {declared} = system {external}")
    if rules.margin and variance <= rules.margin_percent:
        return _approved(
            Rule.MARGIN,
            f"Within {rules.margin_percent}% margin: declared {declared}, "
            f"system {external}, variance {variance:.2f}%",
        )
    if rules.surplus and declared > external:
        return _approved(
            Rule.SURPLUS,
            f"Declared {declared} exceeds system {external}",
        )

    return Evaluation(
        grading=Grading.PENDING,
        reason=(
            f"No rule matched: declared {declared}, system {external}, variance {variance:.2f}%"
        ),
        rule=None,
        should_release=False,
    )


def _approved(rule: Rule, reason: str) -> Evaluation:
    return Evaluation(grading=Grading.APPROVED, reason=reason, rule=rule, should_release=True)
