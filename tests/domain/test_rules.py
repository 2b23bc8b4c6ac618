from __future__ import annotations

from decimal import Decimal

import pytest

from claimtrack.domain.model import Grading
from claimtrack.domain.ports import LookupResult
from claimtrack.domain.rules import NotFoundPolicy, Rule, RuleSet, evaluate, is_not_found
from tests.helpers.claims import money


def _found(cost: str) -> LookupResult:
    return LookupResult(found=True, system_cost=money(cost))


def test_exact_match_approves() -> None:
    result = evaluate(money("100.00"), _found("100.00"), RuleSet())

    assert result.grading is Grading.APPROVED
    assert result.rule is Rule.EXACT_MATCH
    assert result.should_release


def test_margin_rule_approves_within_percent() -> None:
    rules = RuleSet(exact_match=False, margin=True)

    result = evaluate(money("100.00"), _found("108.00"), rules)

    assert result.grading is Grading.APPROVED
    assert result.rule is Rule.MARGIN
    assert "7.41%" in result.reason


def test_surplus_rule_approves_when_declared_exceeds_system() -> None:
    rules = RuleSet(exact_match=False, margin=False, surplus=True)

    result = evaluate(money("100.00"), _found("95.00"), rules)

    assert result.grading is Grading.APPROVED
    assert result.rule is Rule.SURPLUS


def test_no_rule_matches_leaves_claim_pending() -> None:
    rules = RuleSet(exact_match=True, margin=True, surplus=True)

    result = evaluate(money("100.00"), _found("150.00"), rules)

    assert result.grading is Grading.PENDING
    assert result.rule is None
    assert not result.should_release
    assert "33.33%" in result.reason


def test_rules_are_tried_in_priority_order() -> None:
    rules = RuleSet(exact_match=True, margin=True, surplus=True)

    assert evaluate(money("50"), _found("50"), rules).rule is Rule.EXACT_MATCH
    assert evaluate(money("50"), _found("49"), rules).rule is Rule.MARGIN


def test_exact_match_tolerates_sub_cent_noise() -> None:
    result = evaluate(money("100.004"), _found("100.00"))
    assert result.grading is Grading.APPROVED


def test_margin_boundary_is_inclusive() -> None:
    rules = RuleSet(exact_match=False, margin=True, margin_percent=Decimal(10))

    assert evaluate(money("90"), _found("100"), rules).grading is Grading.APPROVED
    assert evaluate(money("89.99"), _found("100"), rules).grading is Grading.PENDING


def test_missing_claim_is_not_found() -> None:
    result = evaluate(money("10"), LookupResult.not_found())

    assert result.grading is Grading.NOT_FOUND
    assert not result.should_release


def test_zero_cost_policy_treats_zero_as_not_found() -> None:
    lookup = _found("0")

    assert is_not_found(lookup, NotFoundPolicy.ZERO_COST)
    assert not is_not_found(lookup, NotFoundPolicy.FOUND_FLAG)
    assert evaluate(money("0"), lookup).grading is Grading.NOT_FOUND
    found_flag = evaluate(money("0"), lookup, not_found_policy=NotFoundPolicy.FOUND_FLAG)
    assert found_flag.grading is Grading.APPROVED


def test_rule_set_requires_an_enabled_rule() -> None:
    with pytest.raises(ValueError, match="At least one approval rule"):
        RuleSet(exact_match=False)
    with pytest.raises(ValueError, match="negative"):
        RuleSet(margin_percent=Decimal(-1))


def test_enabled_lists_rules_in_order() -> None:
    assert RuleSet().enabled == (Rule.EXACT_MATCH,)
    assert RuleSet(exact_match=False, surplus=True, margin=True).enabled == (
        Rule.MARGIN,
        Rule.SURPLUS,
    )
