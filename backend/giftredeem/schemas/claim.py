"""Claim Schemas — responses for claiming and listing claims.

Invariants:
    - A claimant only ever sees their own codes
    - Creator claim listings expose claimant username, never internal ids
"""

from datetime import datetime

from pydantic import BaseModel

from giftredeem.models.claim import Claim
from giftredeem.services.claim_coordinator import ClaimResult


class ClaimCodeResponse(BaseModel):
    """Successful claim — the allocated code."""
    code: str
    claimed_at: datetime
    provider: str
    benefit_token: str
    benefit_title: str
    benefit_description: str | None
    claimed_count: int
    total_count: int

    @classmethod
    def from_result(cls, result: ClaimResult) -> "ClaimCodeResponse":
        return cls(
            code=result.code,
            claimed_at=result.claimed_at,
            provider=result.provider,
            benefit_token=result.benefit_token,
            benefit_title=result.benefit_title,
            benefit_description=result.benefit_description,
            claimed_count=result.claimed_count,
            total_count=result.total_count,
        )


class ClaimedBenefitSummary(BaseModel):
    link_token: str
    title: str
    description: str | None
    status: str
    expires_at: datetime


class MyClaimResponse(BaseModel):
    """One of the caller's claims with the benefit it came from."""
    code: str
    provider: str
    claimed_at: datetime
    benefit: ClaimedBenefitSummary

    @classmethod
    def from_model(cls, claim: Claim) -> "MyClaimResponse":
        return cls(
            code=claim.code.code,
            provider=claim.provider,
            claimed_at=claim.claimed_at,
            benefit=ClaimedBenefitSummary(
                link_token=claim.benefit.link_token,
                title=claim.benefit.title,
                description=claim.benefit.description,
                status=claim.benefit.status,
                expires_at=claim.benefit.expires_at,
            ),
        )


class BenefitClaimResponse(BaseModel):
    """A claim on one of the creator's benefits."""
    claimant_username: str
    claimant_display_name: str | None
    provider: str
    code: str
    claimed_at: datetime

    @classmethod
    def from_model(cls, claim: Claim) -> "BenefitClaimResponse":
        return cls(
            claimant_username=claim.user.username,
            claimant_display_name=claim.user.display_name,
            provider=claim.provider,
            code=claim.code.code,
            claimed_at=claim.claimed_at,
        )
