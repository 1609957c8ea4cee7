"""Benefit Routes — creator-facing create, list, status, claims, and inventory.

Invariants:
    - Every route requires an identity
    - Owner-only routes answer NotFound to non-owners (no existence leak)
    - Benefits are addressed by link_token; internal ids never leave the API
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from giftredeem.api.dependencies import Identity, require_identity, resolve_base_url
from giftredeem.config import Settings, get_settings
from giftredeem.infrastructure.database import get_db
from giftredeem.schemas.benefit import (
    AuthoringReportResponse,
    BenefitCreate,
    BenefitCreateResponse,
    BenefitResponse,
    InventoryResponse,
    StatusUpdate,
)
from giftredeem.schemas.claim import BenefitClaimResponse
from giftredeem.services.benefit_authoring import BenefitAuthoring, CreateBenefitInput
from giftredeem.services.benefit_lifecycle import BenefitLifecycleService
from giftredeem.services.benefit_reporting import BenefitReporting

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/benefits", tags=["benefits"])


@router.post(
    "", response_model=BenefitCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_benefit(
    body: BenefitCreate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    base_url: str = Depends(resolve_base_url),
):
    """Create a benefit and its code inventory."""
    authoring = BenefitAuthoring(
        db,
        lifetime_days=settings.default_benefit_lifetime_days,
        max_codes=settings.max_codes_per_benefit,
    )
    created = await authoring.create_benefit(
        identity.user_id,
        CreateBenefitInput(
            title=body.title,
            codes=body.codes,
            description=body.description,
            expires_at=body.expires_at,
            allowed_providers=body.allowed_providers,
            min_account_age_days=body.min_account_age_days,
            claim_conditions=body.claim_conditions,
        ),
    )
    return BenefitCreateResponse(
        benefit=BenefitResponse.from_model(created.benefit, base_url),
        report=AuthoringReportResponse(
            submitted=created.report.submitted,
            unique=created.report.unique,
            duplicates_collapsed=created.report.duplicates_collapsed,
            blank_discarded=created.report.blank_discarded,
        ),
    )


@router.get("/my", response_model=list[BenefitResponse])
async def list_my_benefits(
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
    base_url: str = Depends(resolve_base_url),
):
    benefits = await BenefitReporting(db).benefits_created_by(identity.user_id)
    return [BenefitResponse.from_model(b, base_url) for b in benefits]


@router.put("/{link_token}/status", response_model=BenefitResponse)
async def update_benefit_status(
    link_token: str,
    body: StatusUpdate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
    base_url: str = Depends(resolve_base_url),
):
    """Creator-only status transition (active, paused, expired, deleted)."""
    benefit = await BenefitLifecycleService(db).update_status(
        identity.user_id, link_token, body.status,
    )
    return BenefitResponse.from_model(benefit, base_url)


@router.get("/{link_token}/claims", response_model=list[BenefitClaimResponse])
async def list_benefit_claims(
    link_token: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    claims = await BenefitReporting(db).claims_of_benefit(
        identity.user_id, link_token,
    )
    return [BenefitClaimResponse.from_model(c) for c in claims]


@router.get("/{link_token}/inventory", response_model=InventoryResponse)
async def get_benefit_inventory(
    link_token: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    summary = await BenefitReporting(db).inventory(identity.user_id, link_token)
    return InventoryResponse(
        link_token=summary.benefit.link_token,
        total_count=summary.benefit.total_count,
        claimed_count=summary.benefit.claimed_count,
        by_status=summary.by_status,
    )
