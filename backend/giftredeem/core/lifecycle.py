"""Benefit Lifecycle — status parsing, transitions, and claimability.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - Claimable iff status == active AND now < expires_at
    - Expiration is computed on read; status is never auto-flipped to expired
    - expired and deleted never become claimable again
    - Block precedence: deleted (not found) > paused > expired

Design Decisions:
    - Return enums/None (not exceptions): services map them to typed errors
    - Same-status transition is an accepted no-op (idempotent PUT)
"""

from datetime import datetime
from enum import Enum

from giftredeem.core.clock import as_utc
from giftredeem.core.domain_types import BenefitStatus, ClaimPageStatus


class ClaimBlock(str, Enum):
    """Why a benefit refuses claims right now."""
    NOT_FOUND = "not_found"
    PAUSED = "paused"
    EXPIRED = "expired"


ALLOWED_TRANSITIONS: dict[BenefitStatus, frozenset[BenefitStatus]] = {
    BenefitStatus.ACTIVE: frozenset({
        BenefitStatus.PAUSED, BenefitStatus.EXPIRED, BenefitStatus.DELETED,
    }),
    BenefitStatus.PAUSED: frozenset({
        BenefitStatus.ACTIVE, BenefitStatus.EXPIRED, BenefitStatus.DELETED,
    }),
    BenefitStatus.EXPIRED: frozenset({BenefitStatus.DELETED}),
    BenefitStatus.DELETED: frozenset(),
}


def parse_status(value: str) -> BenefitStatus | None:
    """Map a raw status string to BenefitStatus. Exact, lowercase match only."""
    try:
        return BenefitStatus(value)
    except ValueError:
        return None


def can_transition(current: BenefitStatus, target: BenefitStatus) -> bool:
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS[current]


def check_claimable(
    status: BenefitStatus, expires_at: datetime, now: datetime,
) -> ClaimBlock | None:
    """Return the reason a benefit cannot be claimed, or None if claimable."""
    if status == BenefitStatus.DELETED:
        return ClaimBlock.NOT_FOUND
    if status == BenefitStatus.PAUSED:
        return ClaimBlock.PAUSED
    if status == BenefitStatus.EXPIRED:
        return ClaimBlock.EXPIRED
    if as_utc(now) >= as_utc(expires_at):
        return ClaimBlock.EXPIRED
    return None


def claim_page_status(
    status: BenefitStatus,
    expires_at: datetime,
    now: datetime,
    viewer_has_claim: bool,
) -> ClaimPageStatus | None:
    """Status shown on the public claim page. None means "not found".

    Lifecycle blocks win over the viewer's own claim: a paused benefit shows
    paused even to someone who already holds a code.
    """
    block = check_claimable(status, expires_at, now)
    if block == ClaimBlock.NOT_FOUND:
        return None
    if block == ClaimBlock.PAUSED:
        return ClaimPageStatus.PAUSED
    if block == ClaimBlock.EXPIRED:
        return ClaimPageStatus.EXPIRED
    if viewer_has_claim:
        return ClaimPageStatus.CLAIMED
    return ClaimPageStatus.AVAILABLE
