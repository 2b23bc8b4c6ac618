"""Grading rule toggles and the not-found policy."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from claimtrack.domain.rules import (
    DEFAULT_MARGIN_PERCENT,
    DEFAULT_NOT_FOUND_POLICY,
    NotFoundPolicy,
    RuleSet,
)

from .env import env_flag
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class RuleConfig:
    rules: RuleSet
    not_found_policy: NotFoundPolicy = DEFAULT_NOT_FOUND_POLICY


def _margin_percent() -> Decimal:
    raw = os.getenv("CLAIMTRACK_RULE_MARGIN_PERCENT")
    if raw is None or not raw.strip():
        return DEFAULT_MARGIN_PERCENT
    try:
        value = Decimal(raw.strip())
    except InvalidOperation as exc:
        raise ConfigurationError(
            f"CLAIMTRACK_RULE_MARGIN_PERCENT must be a number: {raw!r}"
        ) from exc
    if not value.is_finite():
        raise ConfigurationError(f"CLAIMTRACK_RULE_MARGIN_PERCENT must be finite: {raw!r}")
    return value


def _not_found_policy() -> NotFoundPolicy:
    raw = os.getenv("CLAIMTRACK_NOT_FOUND_POLICY")
    if raw is None or not raw.strip():
        return DEFAULT_NOT_FOUND_POLICY
    try:
        return NotFoundPolicy(raw.strip().lower())
    except ValueError as exc:
        choices = ", ".join(policy.value for policy in NotFoundPolicy)
        raise ConfigurationError(
            f"CLAIMTRACK_NOT_FOUND_POLICY must be one of {choices}, got {raw!r}"
        ) from exc


def get_rule_config() -> RuleConfig:
    """Exact match is always on unless explicitly disabled; margin and surplus are opt-in."""

    try:
        rules = RuleSet(
            exact_match=env_flag("CLAIMTRACK_RULE_EXACT", default=True),
            margin=env_flag("CLAIMTRACK_RULE_MARGIN", default=False),
            surplus=env_flag("CLAIMTRACK_RULE_SURPLUS", default=False),
            margin_percent=_margin_percent(),
        )
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    return RuleConfig(rules=rules, not_found_policy=_not_found_policy())
