"""Benefit Authoring — creates a benefit and its full code inventory in one transaction.

Invariants:
    - total_count == number of unique cleaned codes == rows inserted
    - status starts active, claimed_count starts 0
    - Benefit row and every code row commit together or not at all
    - Creator is told how many submitted codes were collapsed or dropped

Design Decisions:
    - Validation happens before any write (pure core/authoring checks)
    - Session handed in by the caller: the route's get_db session, or a
      manager.transaction() in tests (ADR: explicit transactional handle)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from giftredeem.core.authoring import (
    CleanedCodes,
    clean_codes,
    clean_providers,
    resolve_expiry,
    validate_authoring,
)
from giftredeem.core.clock import utc_now
from giftredeem.core.domain_types import BenefitStatus, DEFAULT_BENEFIT_LIFETIME_DAYS
from giftredeem.core.errors import InvalidInputError, UnauthenticatedError
from giftredeem.models.benefit import Benefit
from giftredeem.services.inventory_store import InventoryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateBenefitInput:
    """Creator input after transport parsing; codes are still raw."""
    title: str
    codes: list[str]
    description: str | None = None
    expires_at: datetime | None = None
    allowed_providers: list[str] | None = None
    min_account_age_days: int = 0
    claim_conditions: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuthoringReport:
    """What happened to the submitted code list."""
    submitted: int
    unique: int
    duplicates_collapsed: int
    blank_discarded: int

    @classmethod
    def from_cleaned(cls, cleaned: CleanedCodes) -> "AuthoringReport":
        return cls(
            submitted=cleaned.submitted,
            unique=cleaned.unique,
            duplicates_collapsed=cleaned.duplicates_collapsed,
            blank_discarded=cleaned.blank_discarded,
        )


@dataclass(frozen=True)
class CreatedBenefit:
    benefit: Benefit
    report: AuthoringReport


class BenefitAuthoring:
    """Validates creator input and persists benefit + codes atomically."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        lifetime_days: int = DEFAULT_BENEFIT_LIFETIME_DAYS,
        max_codes: int = 10_000,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.store = InventoryStore(db)
        self.lifetime_days = lifetime_days
        self.max_codes = max_codes
        self.clock = clock

    async def create_benefit(
        self, creator_id: int, data: CreateBenefitInput,
    ) -> CreatedBenefit:
        now = self.clock()
        cleaned = clean_codes(data.codes)
        expires_at = resolve_expiry(data.expires_at, now, self.lifetime_days)
        violation = validate_authoring(
            data.title, cleaned, data.min_account_age_days,
            expires_at, now, self.max_codes,
        )
        if violation:
            raise InvalidInputError(violation.message, violation.field)

        if await self.store.get_user(creator_id) is None:
            raise UnauthenticatedError("Unknown creator")

        benefit = Benefit(
            title=data.title.strip(),
            description=data.description,
            creator_id=creator_id,
            total_count=cleaned.unique,
            claimed_count=0,
            created_at=now,
            expires_at=expires_at,
            status=BenefitStatus.ACTIVE.value,
            allowed_providers=list(clean_providers(data.allowed_providers)),
            min_account_age_days=data.min_account_age_days,
            claim_conditions=dict(data.claim_conditions),
        )
        await self.store.add_benefit_with_codes(benefit, cleaned.codes)
        await self.db.commit()

        report = AuthoringReport.from_cleaned(cleaned)
        logger.info(
            f"Benefit created with {report.unique} codes "
            f"({report.duplicates_collapsed} duplicates collapsed, "
            f"{report.blank_discarded} blanks dropped)",
            extra={"benefit_token": benefit.link_token, "user_id": creator_id},
        )
        return CreatedBenefit(benefit=benefit, report=report)
