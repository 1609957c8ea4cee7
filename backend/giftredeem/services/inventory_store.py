"""Inventory Store — every query and write the engine issues against benefits, codes, and claims.

Invariants:
    - Operates on a caller-supplied AsyncSession; never opens or commits a
      transaction itself (the caller owns the transactional handle)
    - reserve_available_code is the ONLY place a code leaves `available`
    - Reservation is a single conditional UPDATE ... RETURNING: two concurrent
      callers can never receive the same row
    - increment_claimed_count never lets claimed_count pass total_count

Design Decisions:
    - Lowest-id available code first: deterministic allocation, served by the
      (benefit_id, status, id) index
    - FOR UPDATE SKIP LOCKED in the candidate subquery: on PostgreSQL a
      contender skips rows another claim is holding instead of queueing on
      them (ADR: SQLite ignores the clause; BEGIN IMMEDIATE serializes there)
    - Duplicate claims detected from the unique-constraint violation, not a
      prior read (ADR: the constraint is the final arbiter)
"""

import logging
from datetime import datetime

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from giftredeem.core.domain_types import BenefitId, CodeStatus, LinkToken, UserId
from giftredeem.models.benefit import Benefit
from giftredeem.models.claim import Claim
from giftredeem.models.redemption_code import RedemptionCode
from giftredeem.models.user import User

logger = logging.getLogger(__name__)

_DUPLICATE_CLAIM_MARKERS = (
    "uq_claims_user_benefit",
    "claims.user_id, claims.benefit_id",
)


def is_duplicate_claim(exc: IntegrityError) -> bool:
    """True when the violation is the one-claim-per-user-per-benefit constraint."""
    text = str(exc.orig)
    return any(marker in text for marker in _DUPLICATE_CLAIM_MARKERS)


class DuplicateClaimError(Exception):
    """Claim insert hit uq_claims_user_benefit."""


class InventoryStore:
    """Persistence surface used by authoring, the claim coordinator, and reporting."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Benefits ────────────────────────────────────────────────

    async def get_benefit_by_token(self, link_token: LinkToken) -> Benefit | None:
        result = await self.db.execute(
            select(Benefit).where(Benefit.link_token == link_token),
        )
        return result.scalar_one_or_none()

    async def get_owned_benefit(
        self, link_token: LinkToken, creator_id: UserId,
    ) -> Benefit | None:
        """Benefit by token, only if creator_id owns it."""
        result = await self.db.execute(
            select(Benefit).where(
                Benefit.link_token == link_token,
                Benefit.creator_id == creator_id,
            ),
        )
        return result.scalar_one_or_none()

    async def add_benefit_with_codes(
        self, benefit: Benefit, codes: tuple[str, ...],
    ) -> Benefit:
        """Stage a benefit and one available row per code. Caller commits."""
        self.db.add(benefit)
        await self.db.flush()
        self.db.add_all([
            RedemptionCode(
                benefit_id=benefit.id,
                code=code,
                status=CodeStatus.AVAILABLE.value,
            )
            for code in codes
        ])
        await self.db.flush()
        return benefit

    async def list_benefits_by_creator(self, creator_id: UserId) -> list[Benefit]:
        result = await self.db.execute(
            select(Benefit)
            .where(Benefit.creator_id == creator_id)
            .order_by(Benefit.created_at.desc(), Benefit.id.desc()),
        )
        return list(result.scalars().all())

    async def increment_claimed_count(self, benefit_id: BenefitId) -> int | None:
        """claimed_count += 1 unless it would exceed total_count. Returns new count."""
        result = await self.db.execute(
            update(Benefit)
            .where(
                Benefit.id == benefit_id,
                Benefit.claimed_count < Benefit.total_count,
            )
            .values(claimed_count=Benefit.claimed_count + 1)
            .returning(Benefit.claimed_count)
            .execution_options(synchronize_session=False),
        )
        return result.scalar_one_or_none()

    # ─── Users ───────────────────────────────────────────────────

    async def get_user(self, user_id: UserId) -> User | None:
        return await self.db.get(User, user_id)

    # ─── Codes ───────────────────────────────────────────────────

    async def reserve_available_code(
        self, benefit_id: BenefitId, claimant_id: UserId, now: datetime,
    ) -> tuple[int, str] | None:
        """Atomically mark one available code claimed. Returns (id, code) or None."""
        candidate = aliased(RedemptionCode)
        next_available = (
            select(candidate.id)
            .where(
                candidate.benefit_id == benefit_id,
                candidate.status == CodeStatus.AVAILABLE.value,
            )
            .order_by(candidate.id)
            .limit(1)
            .with_for_update(skip_locked=True)
            .scalar_subquery()
        )
        result = await self.db.execute(
            update(RedemptionCode)
            .where(
                RedemptionCode.id == next_available,
                RedemptionCode.status == CodeStatus.AVAILABLE.value,
            )
            .values(
                status=CodeStatus.CLAIMED.value,
                claimed_by=claimant_id,
                claimed_at=now,
            )
            .returning(RedemptionCode.id, RedemptionCode.code)
            .execution_options(synchronize_session=False),
        )
        row = result.first()
        if row is None:
            return None
        return row.id, row.code

    async def count_available_codes(self, benefit_id: BenefitId) -> int:
        result = await self.db.execute(
            select(func.count(RedemptionCode.id)).where(
                RedemptionCode.benefit_id == benefit_id,
                RedemptionCode.status == CodeStatus.AVAILABLE.value,
            ),
        )
        return result.scalar_one()

    async def count_codes_by_status(self, benefit_id: BenefitId) -> dict[str, int]:
        """Code counts keyed by status; every CodeStatus present (zero-filled)."""
        result = await self.db.execute(
            select(RedemptionCode.status, func.count(RedemptionCode.id))
            .where(RedemptionCode.benefit_id == benefit_id)
            .group_by(RedemptionCode.status),
        )
        counts = {status.value: 0 for status in CodeStatus}
        for status, count in result.all():
            counts[status] = count
        return counts

    # ─── Claims ──────────────────────────────────────────────────

    async def find_claim_id(
        self, user_id: UserId, benefit_id: BenefitId,
    ) -> int | None:
        result = await self.db.execute(
            select(Claim.id).where(
                Claim.user_id == user_id, Claim.benefit_id == benefit_id,
            ),
        )
        return result.scalar_one_or_none()

    async def insert_claim(self, claim: Claim) -> Claim:
        """Flush a new claim. Raises DuplicateClaimError on the uniqueness guard."""
        self.db.add(claim)
        try:
            await self.db.flush()
        except IntegrityError as e:
            if is_duplicate_claim(e):
                raise DuplicateClaimError(str(e.orig)) from e
            raise
        return claim

    async def list_claims_by_user(self, user_id: UserId) -> list[Claim]:
        result = await self.db.execute(
            select(Claim)
            .where(Claim.user_id == user_id)
            .order_by(Claim.claimed_at.desc(), Claim.id.desc()),
        )
        return list(result.unique().scalars().all())

    async def list_claims_by_benefit(self, benefit_id: BenefitId) -> list[Claim]:
        result = await self.db.execute(
            select(Claim)
            .where(Claim.benefit_id == benefit_id)
            .order_by(Claim.claimed_at.desc(), Claim.id.desc()),
        )
        return list(result.unique().scalars().all())
