"""Benefit Lifecycle — tests for status parsing, transitions, and claimability.

Tests cover:
    - parse_status accepts only the four lowercase values
    - can_transition follows the transition table; same status is a no-op
    - check_claimable precedence: deleted > paused > expired
    - expiry computed from expires_at even while status is active
    - claim_page_status: lifecycle blocks win over the viewer's own claim
"""

from datetime import datetime, timedelta, timezone

import pytest

from giftredeem.core.domain_types import BenefitStatus, ClaimPageStatus
from giftredeem.core.lifecycle import (
    ClaimBlock,
    can_transition,
    check_claimable,
    claim_page_status,
    parse_status,
)

NOW = datetime(2026, 5, 1, tzinfo=timezone.utc)
FUTURE = NOW + timedelta(days=1)
PAST = NOW - timedelta(seconds=1)


# ─── parse_status ────────────────────────────────────────────────

@pytest.mark.parametrize("raw", ["active", "paused", "expired", "deleted"])
def test_parse_status_accepts_known_values(raw):
    assert parse_status(raw) == BenefitStatus(raw)


@pytest.mark.parametrize("raw", ["", "ACTIVE", "archived", "claimed"])
def test_parse_status_rejects_other_values(raw):
    assert parse_status(raw) is None


# ─── can_transition ──────────────────────────────────────────────

def test_active_can_pause_and_paused_can_resume():
    assert can_transition(BenefitStatus.ACTIVE, BenefitStatus.PAUSED)
    assert can_transition(BenefitStatus.PAUSED, BenefitStatus.ACTIVE)


def test_expired_cannot_become_active_again():
    assert not can_transition(BenefitStatus.EXPIRED, BenefitStatus.ACTIVE)
    assert not can_transition(BenefitStatus.EXPIRED, BenefitStatus.PAUSED)
    assert can_transition(BenefitStatus.EXPIRED, BenefitStatus.DELETED)


def test_deleted_is_final():
    for target in (BenefitStatus.ACTIVE, BenefitStatus.PAUSED, BenefitStatus.EXPIRED):
        assert not can_transition(BenefitStatus.DELETED, target)


def test_same_status_is_allowed():
    for status in BenefitStatus:
        assert can_transition(status, status)


# ─── check_claimable ─────────────────────────────────────────────

def test_active_unexpired_is_claimable():
    assert check_claimable(BenefitStatus.ACTIVE, FUTURE, NOW) is None


def test_active_past_expiry_reports_expired():
    assert check_claimable(BenefitStatus.ACTIVE, PAST, NOW) == ClaimBlock.EXPIRED


def test_expiry_instant_itself_is_expired():
    assert check_claimable(BenefitStatus.ACTIVE, NOW, NOW) == ClaimBlock.EXPIRED


def test_paused_wins_over_timestamp_expiry():
    assert check_claimable(BenefitStatus.PAUSED, PAST, NOW) == ClaimBlock.PAUSED


def test_deleted_reports_not_found():
    assert check_claimable(BenefitStatus.DELETED, FUTURE, NOW) == ClaimBlock.NOT_FOUND


def test_expired_status_blocks_even_with_future_timestamp():
    assert check_claimable(BenefitStatus.EXPIRED, FUTURE, NOW) == ClaimBlock.EXPIRED


def test_naive_expires_at_treated_as_utc():
    naive_past = PAST.replace(tzinfo=None)
    assert check_claimable(BenefitStatus.ACTIVE, naive_past, NOW) == ClaimBlock.EXPIRED


# ─── claim_page_status ───────────────────────────────────────────

def test_page_available_for_new_viewer():
    assert claim_page_status(
        BenefitStatus.ACTIVE, FUTURE, NOW, viewer_has_claim=False,
    ) == ClaimPageStatus.AVAILABLE


def test_page_claimed_for_viewer_with_claim():
    assert claim_page_status(
        BenefitStatus.ACTIVE, FUTURE, NOW, viewer_has_claim=True,
    ) == ClaimPageStatus.CLAIMED


def test_page_paused_even_for_viewer_with_claim():
    assert claim_page_status(
        BenefitStatus.PAUSED, FUTURE, NOW, viewer_has_claim=True,
    ) == ClaimPageStatus.PAUSED


def test_page_expired_by_timestamp():
    assert claim_page_status(
        BenefitStatus.ACTIVE, PAST, NOW, viewer_has_claim=False,
    ) == ClaimPageStatus.EXPIRED


def test_page_hidden_for_deleted_benefit():
    assert claim_page_status(
        BenefitStatus.DELETED, FUTURE, NOW, viewer_has_claim=True,
    ) is None
