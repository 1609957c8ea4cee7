"""Claim Routes — public claim page, claiming, and the caller's own claims.

Invariants:
    - GET /claim/{token} works anonymously; claim_status is personalized
      when an identity is present
    - POST /claim/{token} delegates entirely to ClaimCoordinator
    - Network address and User-Agent are recorded with the claim, clipped to
      their column widths so an oversized header never fails a valid claim
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from giftredeem.api.dependencies import (
    Identity, get_claim_coordinator, optional_identity, require_identity,
)
from giftredeem.core.domain_types import (
    IP_ADDRESS_MAX_LENGTH, USER_AGENT_MAX_LENGTH, LinkToken,
)
from giftredeem.infrastructure.database import get_db
from giftredeem.schemas.benefit import ClaimPageResponse
from giftredeem.schemas.claim import ClaimCodeResponse, MyClaimResponse
from giftredeem.services.benefit_lifecycle import BenefitLifecycleService
from giftredeem.services.benefit_reporting import BenefitReporting
from giftredeem.services.claim_coordinator import ClaimCoordinator, ClaimRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["claims"])


def _clip(value: str | None, limit: int) -> str | None:
    return value[:limit] if value else value


@router.get("/claim/{link_token}", response_model=ClaimPageResponse)
async def get_claim_page(
    link_token: str,
    identity: Identity | None = Depends(optional_identity),
    db: AsyncSession = Depends(get_db),
):
    """Public claim page. Deleted benefits are not found."""
    page = await BenefitLifecycleService(db).get_claim_page(
        link_token, identity.user_id if identity else None,
    )
    benefit = page.benefit
    return ClaimPageResponse(
        link_token=benefit.link_token,
        title=benefit.title,
        description=benefit.description,
        creator_name=benefit.creator.display_name or benefit.creator.username,
        total_count=benefit.total_count,
        claimed_count=benefit.claimed_count,
        remaining=page.remaining,
        expires_at=benefit.expires_at,
        allowed_providers=list(benefit.allowed_providers or []),
        min_account_age_days=benefit.min_account_age_days,
        claim_status=page.claim_status.value,
    )


@router.post("/claim/{link_token}", response_model=ClaimCodeResponse)
async def claim_benefit(
    link_token: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    coordinator: ClaimCoordinator = Depends(get_claim_coordinator),
):
    """Claim one code. Exactly one per user per benefit."""
    result = await coordinator.claim(ClaimRequest(
        claimant_id=identity.user_id,
        link_token=LinkToken(link_token),
        provider=identity.provider,
        network_address=_clip(
            request.client.host if request.client else None,
            IP_ADDRESS_MAX_LENGTH,
        ),
        client_descriptor=_clip(
            request.headers.get("user-agent"), USER_AGENT_MAX_LENGTH,
        ),
    ))
    return ClaimCodeResponse.from_result(result)


@router.get("/claims/my", response_model=list[MyClaimResponse])
async def list_my_claims(
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    claims = await BenefitReporting(db).claims_of_user(identity.user_id)
    return [MyClaimResponse.from_model(c) for c in claims]
