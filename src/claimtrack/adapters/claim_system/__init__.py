"""Adapter for the external claim gateway."""

from __future__ import annotations

from .client import ClaimSystemError, HttpClaimSystem, build_retry
from .schema import LookupPayload, ReleasePayload, ReleaseRequest

__all__ = [
    "ClaimSystemError",
    "HttpClaimSystem",
    "LookupPayload",
    "ReleasePayload",
    "ReleaseRequest",
    "build_retry",
]
