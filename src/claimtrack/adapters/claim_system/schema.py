"""Pydantic models describing the claim gateway payloads."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_zero(value: object) -> object:
    if value is None:
        return Decimal(0)
    if isinstance(value, str) and not value.strip():
        return Decimal(0)
    return value


class ClaimSystemModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LookupPayload(ClaimSystemModel):
    found: bool
    system_cost: Decimal = Field(default=Decimal(0), alias="systemCost")

    _normalize_cost = field_validator("system_cost", mode="before")(_blank_to_zero)


class ReleaseRequest(ClaimSystemModel):
    cost: str


class ReleasePayload(ClaimSystemModel):
    released: bool
    message: str | None = None
