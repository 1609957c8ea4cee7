"""Benefit Schemas — request/response contracts for the creator-facing API.

Invariants:
    - Responses address a benefit only by link_token and claim_url; internal
      integer ids never appear
    - Request models check shape only; business rules (empty title, zero
      codes, past expiry) are enforced in core/authoring and reported as
      INVALID_INPUT

Design Decisions:
    - from_model classmethods keep ORM -> response mapping next to the contract
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from giftredeem.core.authoring import build_claim_url
from giftredeem.models.benefit import Benefit


class BenefitCreate(BaseModel):
    """Benefit creation — codes arrive raw and are cleaned server-side."""
    title: str
    description: str | None = Field(None, max_length=5000)
    codes: list[str]
    expires_at: datetime | None = None
    allowed_providers: list[str] = Field(default_factory=list)
    min_account_age_days: int = 0
    claim_conditions: dict[str, Any] = Field(default_factory=dict)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return v.strip()

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class StatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def strip_status(cls, v: str) -> str:
        return v.strip()


class BenefitResponse(BaseModel):
    """Benefit as seen by its creator."""
    link_token: str
    claim_url: str
    title: str
    description: str | None
    status: str
    total_count: int
    claimed_count: int
    remaining: int
    created_at: datetime
    expires_at: datetime
    allowed_providers: list[str]
    min_account_age_days: int
    claim_conditions: dict[str, Any]

    @classmethod
    def from_model(cls, benefit: Benefit, base_url: str) -> "BenefitResponse":
        return cls(
            link_token=benefit.link_token,
            claim_url=build_claim_url(base_url, benefit.link_token),
            title=benefit.title,
            description=benefit.description,
            status=benefit.status,
            total_count=benefit.total_count,
            claimed_count=benefit.claimed_count,
            remaining=benefit.total_count - benefit.claimed_count,
            created_at=benefit.created_at,
            expires_at=benefit.expires_at,
            allowed_providers=list(benefit.allowed_providers or []),
            min_account_age_days=benefit.min_account_age_days,
            claim_conditions=dict(benefit.claim_conditions or {}),
        )


class AuthoringReportResponse(BaseModel):
    """Tells the creator why total_count may be lower than the submitted list."""
    submitted: int
    unique: int
    duplicates_collapsed: int
    blank_discarded: int


class BenefitCreateResponse(BaseModel):
    benefit: BenefitResponse
    report: AuthoringReportResponse


class InventoryResponse(BaseModel):
    link_token: str
    total_count: int
    claimed_count: int
    by_status: dict[str, int]


class ClaimPageResponse(BaseModel):
    """Public view of a claim link, personalized by claim_status."""
    link_token: str
    title: str
    description: str | None
    creator_name: str
    total_count: int
    claimed_count: int
    remaining: int
    expires_at: datetime
    allowed_providers: list[str]
    min_account_age_days: int
    claim_status: str
