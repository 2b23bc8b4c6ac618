"""Domain primitives: normalized claim numbers and monetary amounts.

Both are immutable value objects; construction is the only place where raw
spreadsheet/system input is validated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import total_ordering
from typing import Final

from .errors import InvalidAmount, InvalidIdentifier

IDENTIFIER_MIN_LENGTH: Final[int] = 3
IDENTIFIER_MAX_LENGTH: Final[int] = 50

_IDENTIFIER_PATTERN: Final = re.compile(r"^[A-Z0-9-]+$")
_WHITESPACE: Final = re.compile(r"\s+")
_AMOUNT_NOISE: Final = re.compile(r"[\s,$]")

CENT: Final[Decimal] = Decimal("0.01")
MAX_AMOUNT: Final[Decimal] = Decimal("999999999.99")
AMOUNT_EPSILON: Final[Decimal] = Decimal("0.001")


@dataclass(frozen=True, slots=True)
class ClaimIdentifier:
    """Normalized claim number (upper-case, whitespace-free, ``[A-Z0-9-]``)."""

    value: str

    def __post_init__(self) -> None:
        value = self.value
        if not value:
            raise InvalidIdentifier("Claim number must not be empty")
        if not IDENTIFIER_MIN_LENGTH <= len(value) <= IDENTIFIER_MAX_LENGTH:
            raise InvalidIdentifier(
                f"Claim number must be {IDENTIFIER_MIN_LENGTH}-{IDENTIFIER_MAX_LENGTH} "
                f"characters long: {value!r}"
            )
        if not _IDENTIFIER_PATTERN.match(value):
            raise InvalidIdentifier(
                f"Claim number may only contain letters, digits and dashes: {value!r}"
            )

    @classmethod
    def parse(cls, raw: object) -> ClaimIdentifier:
        """Normalize ``raw`` and build an identifier from it."""

        if raw is None:
            raise InvalidIdentifier("Claim number must not be empty")
        text = raw if isinstance(raw, str) else str(raw)
        return cls(_WHITESPACE.sub("", text).upper())

    def __str__(self) -> str:
        return self.value


def _to_decimal(raw: object) -> Decimal:
    if isinstance(raw, bool) or not isinstance(raw, Decimal | int | float | str):
        raise InvalidAmount(f"Not a monetary amount: {raw!r}")
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, int):
        return Decimal(raw)
    if isinstance(raw, float):
        # via repr so 0.1 stays 0.1 instead of its binary expansion
        return Decimal(repr(raw))
    cleaned = _AMOUNT_NOISE.sub("", raw)
    if not cleaned:
        raise InvalidAmount(f"Not a monetary amount: {raw!r}")
    try:
        return Decimal(cleaned)
    except InvalidOperation as exc:
        raise InvalidAmount(f"Not a monetary amount: {raw!r}") from exc


@total_ordering
@dataclass(frozen=True, slots=True, eq=False)
class MonetaryAmount:
    """Non-negative amount rounded half-up to cents.

    Equality tolerates differences below ``AMOUNT_EPSILON``; since values are
    always stored at cent precision this coincides with exact cent equality,
    which keeps ``__hash__`` consistent with ``__eq__``.
    """

    value: Decimal

    def __post_init__(self) -> None:
        value = self.value
        if not value.is_finite():
            raise InvalidAmount(f"Amount must be finite: {value}")
        if value < 0:
            raise InvalidAmount(f"Amount must not be negative: {value}")
        if value > MAX_AMOUNT + CENT:
            raise InvalidAmount(f"Amount exceeds maximum of {MAX_AMOUNT}: {value}")
        rounded = value.quantize(CENT, rounding=ROUND_HALF_UP)
        if rounded > MAX_AMOUNT:
            raise InvalidAmount(f"Amount exceeds maximum of {MAX_AMOUNT}: {value}")
        if rounded.is_zero():
            rounded = abs(rounded)
        object.__setattr__(self, "value", rounded)

    @classmethod
    def of(cls, raw: object) -> MonetaryAmount:
        """Parse ``raw`` (number or formatted string such as ``"$1,234.50"``)."""

        if isinstance(raw, MonetaryAmount):
            return raw
        return cls(_to_decimal(raw))

    @classmethod
    def zero(cls) -> MonetaryAmount:
        return cls(Decimal(0))

    @property
    def is_zero(self) -> bool:
        return self.value == 0

    @property
    def cents(self) -> int:
        return int(self.value * 100)

    @classmethod
    def from_cents(cls, cents: int) -> MonetaryAmount:
        return cls(Decimal(cents) / 100)

    def difference(self, other: MonetaryAmount) -> Decimal:
        return abs(self.value - other.value)

    def variance(self, other: MonetaryAmount) -> Decimal:
        """Percentage difference relative to the larger of both amounts."""

        larger = max(self.value, other.value)
        if larger == 0:
            return Decimal(0)
        return self.difference(other) / larger * 100

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MonetaryAmount):
            return NotImplemented
        return self.difference(other) < AMOUNT_EPSILON

    def __hash__(self) -> int:
        return hash(self.value)

    def __lt__(self, other: MonetaryAmount) -> bool:
        if not isinstance(other, MonetaryAmount):
            return NotImplemented
        return self.value < other.value and self != other

    def __str__(self) -> str:
        return f"{self.value:.2f}"

    def formatted(self) -> str:
        return f"${self.value:,.2f}"
