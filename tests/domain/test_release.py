from __future__ import annotations

import logging

import pytest

from claimtrack.domain.model import Grading
from claimtrack.domain.release import attempt_release
from tests.helpers.claims import FakeClaimSystem, make_claim, money


def test_successful_release() -> None:
    claim_system = FakeClaimSystem()
    claim = make_claim("CLM-9", cost="75", grading=Grading.APPROVED)

    assert attempt_release(claim_system, claim)
    assert claim_system.releases == [("CLM-9", money("75"))]


def test_refused_release_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    claim_system = FakeClaimSystem(release_result=False)

    with caplog.at_level(logging.WARNING):
        released = attempt_release(claim_system, make_claim("CLM-9", grading=Grading.APPROVED))

    assert not released
    assert "refused release of claim CLM-9" in caplog.text


def test_raising_release_is_contained(caplog: pytest.LogCaptureFixture) -> None:
    claim_system = FakeClaimSystem(release_result="raise")

    with caplog.at_level(logging.ERROR):
        released = attempt_release(claim_system, make_claim("CLM-9", grading=Grading.APPROVED))

    assert not released
    assert "Release of claim CLM-9 raised" in caplog.text
