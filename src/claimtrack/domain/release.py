"""Best-effort release of approved claims in the external system."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from claimtrack.domain.model import Claim
    from claimtrack.domain.ports import ClaimSystem

log = logging.getLogger(__name__)


def attempt_release(claim_system: ClaimSystem, claim: Claim) -> bool:
    """Ask the external system to release ``claim``; failures are logged, never raised."""

    try:
        released = claim_system.release(claim.identifier, claim.cost)
    except Exception:
        log.exception("Release of claim %s raised; continuing", claim.identifier)
        return False
    if released:
        log.info("Released claim %s for %s", claim.identifier, claim.cost)
    else:
        log.warning("External system refused release of claim %s", claim.identifier)
    return released
