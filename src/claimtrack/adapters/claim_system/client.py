"""HTTP client for the external claim gateway."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from httpx_retries import Retry, RetryTransport

from claimtrack.config.claim_system import ClaimSystemConfig, RetryPolicy, get_claim_system_config
from claimtrack.domain.model import MonetaryAmount
from claimtrack.domain.ports.claim_system import LookupResult

from .schema import LookupPayload, ReleasePayload, ReleaseRequest

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from claimtrack.domain.model import ClaimIdentifier

log = getLogger(__name__)


class ClaimSystemError(RuntimeError):
    """Raised when a lookup cannot be answered by the claim gateway."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
    )


def _default_client_factory(config: ClaimSystemConfig) -> httpx.Client:
    return httpx.Client(
        base_url=config.base_url,
        timeout=config.timeout_seconds,
        headers={
            "Authorization": f"Bearer {config.token}",
            "Accept": "application/json",
        },
        transport=RetryTransport(retry=build_retry(config.retry)),
    )


@dataclass(slots=True)
class HttpClaimSystem:
    """``ClaimSystem`` implementation speaking JSON over HTTP."""

    config: ClaimSystemConfig = field(default_factory=get_claim_system_config)
    client_factory: Callable[[ClaimSystemConfig], httpx.Client] = field(
        default=_default_client_factory
    )
    _client: httpx.Client | None = field(default=None, init=False, repr=False)

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = self.client_factory(self.config)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> HttpClaimSystem:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def lookup(self, identifier: ClaimIdentifier, declared_cost: MonetaryAmount) -> LookupResult:
        try:
            response = self.client.get(
                f"/claims/{identifier}",
                params={"declared_cost": str(declared_cost)},
            )
        except httpx.HTTPError as exc:
            raise ClaimSystemError(f"Lookup of claim {identifier} failed: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            log.debug("Claim %s not known to the claim gateway", identifier)
            return LookupResult.not_found()
        if response.is_error:
            raise ClaimSystemError(
                f"Lookup of claim {identifier} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = LookupPayload.model_validate(response.json())
            system_cost = MonetaryAmount.of(payload.system_cost)
        except ValueError as exc:
            raise ClaimSystemError(f"Malformed lookup response for claim {identifier}") from exc
        return LookupResult(found=payload.found, system_cost=system_cost)

    def release(self, identifier: ClaimIdentifier, cost: MonetaryAmount) -> bool:
        request = ReleaseRequest(cost=str(cost))
        try:
            response = self.client.post(
                f"/claims/{identifier}/release",
                json=request.model_dump(),
            )
            response.raise_for_status()
            payload = ReleasePayload.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("Release of claim %s failed: %s", identifier, exc)
            return False
        if not payload.released and payload.message:
            log.info("Claim gateway declined release of %s: %s", identifier, payload.message)
        return payload.released


if TYPE_CHECKING:
    from claimtrack.domain.ports.claim_system import ClaimSystem

    _check: ClaimSystem = HttpClaimSystem()
