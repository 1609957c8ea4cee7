"""Benefit Reporting — read-only views for creators and claimants.

Invariants:
    - Read-only: never mutates benefits, codes, or claims
    - Claim lists and inventory of a benefit are visible to its creator only
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from giftredeem.core.domain_types import LinkToken, UserId
from giftredeem.core.errors import BenefitNotFoundError
from giftredeem.models.benefit import Benefit
from giftredeem.models.claim import Claim
from giftredeem.services.inventory_store import InventoryStore


@dataclass(frozen=True)
class InventorySummary:
    benefit: Benefit
    by_status: dict[str, int]


class BenefitReporting:
    def __init__(self, db: AsyncSession):
        self.store = InventoryStore(db)

    async def benefits_created_by(self, creator_id: UserId) -> list[Benefit]:
        return await self.store.list_benefits_by_creator(creator_id)

    async def claims_of_user(self, user_id: UserId) -> list[Claim]:
        return await self.store.list_claims_by_user(user_id)

    async def claims_of_benefit(
        self, creator_id: UserId, link_token: LinkToken,
    ) -> list[Claim]:
        benefit = await self._owned(creator_id, link_token)
        return await self.store.list_claims_by_benefit(benefit.id)

    async def inventory(
        self, creator_id: UserId, link_token: LinkToken,
    ) -> InventorySummary:
        benefit = await self._owned(creator_id, link_token)
        counts = await self.store.count_codes_by_status(benefit.id)
        return InventorySummary(benefit=benefit, by_status=counts)

    async def _owned(self, creator_id: UserId, link_token: LinkToken) -> Benefit:
        benefit = await self.store.get_owned_benefit(link_token, creator_id)
        if benefit is None:
            raise BenefitNotFoundError(link_token)
        return benefit
