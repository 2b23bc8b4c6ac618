"""External claim system connection settings."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx

from .env import env_float, env_int, require_env_vars

CLAIM_SYSTEM_TIMEOUT_SECONDS = 30.0


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    total: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    respect_retry_after_header: bool = True
    # release is not idempotent, so POST is never retried
    allowed_methods: frozenset[str] = field(default_factory=lambda: frozenset({"GET"}))
    status_forcelist: frozenset[int] = field(
        default_factory=lambda: frozenset({429, 500, 502, 503, 504})
    )
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )


@dataclass(frozen=True)
class ClaimSystemConfig:
    """Holds the external claim system endpoint and credentials."""

    base_url: str
    token: str
    timeout_seconds: float = CLAIM_SYSTEM_TIMEOUT_SECONDS
    retry: RetryPolicy = field(default_factory=RetryPolicy)


def get_claim_system_config() -> ClaimSystemConfig:
    values = require_env_vars(("CLAIMTRACK_SYSTEM_URL", "CLAIMTRACK_SYSTEM_TOKEN"))
    return ClaimSystemConfig(
        base_url=values["CLAIMTRACK_SYSTEM_URL"].rstrip("/"),
        token=values["CLAIMTRACK_SYSTEM_TOKEN"],
        timeout_seconds=env_float(
            "CLAIMTRACK_SYSTEM_TIMEOUT", default=CLAIM_SYSTEM_TIMEOUT_SECONDS
        ),
        retry=RetryPolicy(total=env_int("CLAIMTRACK_SYSTEM_RETRIES", default=3, minimum=0)),
    )
