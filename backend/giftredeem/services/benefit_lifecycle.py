"""Benefit Lifecycle Service — creator status transitions and the public claim page view.

Invariants:
    - Only the creator can change status; anyone else gets NotFound
    - Only active, paused, expired, deleted are accepted (InvalidInput otherwise)
    - expired and deleted never go back to a claimable state
    - Deleted benefits are invisible on the claim page (NotFound)

Design Decisions:
    - Status write is a single-row update; an in-flight claim re-reads status
      inside its own transaction, so no coordination with claims is needed
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from giftredeem.core.clock import utc_now
from giftredeem.core.domain_types import (
    BenefitStatus, ClaimPageStatus, LinkToken, UserId,
)
from giftredeem.core.errors import BenefitNotFoundError, InvalidInputError
from giftredeem.core.lifecycle import can_transition, claim_page_status, parse_status
from giftredeem.models.benefit import Benefit
from giftredeem.services.inventory_store import InventoryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimPage:
    """Benefit as seen by a (possibly anonymous) visitor of its claim link."""
    benefit: Benefit
    claim_status: ClaimPageStatus
    remaining: int


class BenefitLifecycleService:
    def __init__(
        self, db: AsyncSession, clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.store = InventoryStore(db)
        self.clock = clock

    async def update_status(
        self, creator_id: UserId, link_token: LinkToken, raw_status: str,
    ) -> Benefit:
        """Creator-initiated transition. Same status is a no-op."""
        target = parse_status(raw_status)
        if target is None:
            raise InvalidInputError(
                f"Invalid status '{raw_status}'; expected one of "
                + ", ".join(s.value for s in BenefitStatus),
                "status",
            )
        benefit = await self.store.get_owned_benefit(link_token, creator_id)
        if benefit is None:
            raise BenefitNotFoundError(link_token)

        current = BenefitStatus(benefit.status)
        if not can_transition(current, target):
            raise InvalidInputError(
                f"Cannot change status from {current.value} to {target.value}",
                "status",
            )
        if current != target:
            benefit.status = target.value
            await self.db.commit()
            logger.info(
                f"Benefit status {current.value} -> {target.value}",
                extra={"benefit_token": link_token, "user_id": creator_id},
            )
        return benefit

    async def get_claim_page(
        self, link_token: LinkToken, viewer_id: UserId | None = None,
    ) -> ClaimPage:
        benefit = await self.store.get_benefit_by_token(link_token)
        if benefit is None:
            raise BenefitNotFoundError(link_token)
        has_claim = viewer_id is not None and (
            await self.store.find_claim_id(viewer_id, benefit.id) is not None
        )
        status = claim_page_status(
            BenefitStatus(benefit.status), benefit.expires_at,
            self.clock(), has_claim,
        )
        if status is None:
            raise BenefitNotFoundError(link_token)
        return ClaimPage(
            benefit=benefit,
            claim_status=status,
            remaining=benefit.total_count - benefit.claimed_count,
        )
