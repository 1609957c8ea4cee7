"""Claim Transaction Coordinator — allocates exactly one code per eligible claimant, exactly once.

Invariants:
    - One claim attempt == one database transaction (steps 1-6 + commit)
    - Failure precedence: not found > paused/expired > provider > account age
      > already claimed > no code available
    - Side effects (code mark, claim row, counter) happen only on success;
      every error leaves the transaction rolled back before it is raised
    - Exhaustion is detected by the conditional UPDATE affecting zero rows,
      never by a count taken before the write
    - Conflicts are retried up to max_retries with jittered backoff; each
      attempt is bounded by timeout_seconds and never retried on timeout

Design Decisions:
    - Transactional handle injected (DatabaseSessionManager), never read from
      the module singleton (ADR: explicit dependency over ambient pool)
    - Unique (user_id, benefit_id) is the final arbiter for same-user races;
      its violation maps to AlreadyClaimed, not to a retry
    - Zero-row reservation with available codes still present means another
      transaction holds them: surfaced as TransactionConflictError (retryable)
    - Clock injected for deterministic expiry tests
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from giftredeem.config import Settings
from giftredeem.core.clock import utc_now
from giftredeem.core.domain_types import (
    BenefitStatus, LinkToken, ProviderName, UserId, UserStatus,
)
from giftredeem.core.eligibility import (
    ClaimantProfile, EligibilityDenial, EligibilityRules, evaluate_eligibility,
)
from giftredeem.core.errors import (
    AccountTooNewError,
    AlreadyClaimedError,
    BenefitExpiredError,
    BenefitNotFoundError,
    BenefitPausedError,
    DatabaseError,
    ErrorContext,
    NoCodeAvailableError,
    ProviderNotAllowedError,
    TransactionConflictError,
    TransactionTimeoutError,
    UnauthenticatedError,
)
from giftredeem.core.lifecycle import ClaimBlock, check_claimable
from giftredeem.infrastructure.database import DatabaseSessionManager
from giftredeem.models.benefit import Benefit
from giftredeem.models.claim import Claim
from giftredeem.services.inventory_store import DuplicateClaimError, InventoryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimRequest:
    """Trusted, already-authenticated claim input from the delivery layer."""
    claimant_id: UserId
    link_token: LinkToken
    provider: ProviderName
    network_address: str | None = None
    client_descriptor: str | None = None


@dataclass(frozen=True)
class ClaimResult:
    """Allocated code plus claim metadata. Holds no internal benefit id."""
    code: str
    code_id: int
    claimed_at: datetime
    provider: str
    benefit_token: str
    benefit_title: str
    benefit_description: str | None
    claimed_count: int
    total_count: int


def _raise_for_block(block: ClaimBlock | None, link_token: str) -> None:
    if block == ClaimBlock.NOT_FOUND:
        raise BenefitNotFoundError(link_token)
    if block == ClaimBlock.PAUSED:
        raise BenefitPausedError(link_token)
    if block == ClaimBlock.EXPIRED:
        raise BenefitExpiredError(link_token)


def _rules_of(benefit: Benefit) -> EligibilityRules:
    return EligibilityRules(
        allowed_providers=tuple(benefit.allowed_providers or ()),
        min_account_age_days=benefit.min_account_age_days,
    )


async def claim_in_transaction(
    db: AsyncSession, request: ClaimRequest, now: datetime,
) -> ClaimResult:
    """Run steps 1-6 of a claim on an open transaction. Caller commits.

    Raises a GiftRedeemError subclass on every denial; the caller's
    transaction scope rolls back before the error leaves it.
    """
    store = InventoryStore(db)
    token = request.link_token

    # 1. Benefit by link token
    benefit = await store.get_benefit_by_token(token)
    if benefit is None:
        raise BenefitNotFoundError(token)

    # 2. Lifecycle, read inside this transaction
    _raise_for_block(
        check_claimable(BenefitStatus(benefit.status), benefit.expires_at, now),
        token,
    )

    # 3. Eligibility against the stored profile
    claimant = await store.get_user(request.claimant_id)
    if claimant is None or claimant.status != UserStatus.ACTIVE.value:
        raise UnauthenticatedError("Unknown or inactive claimant")
    rules = _rules_of(benefit)
    decision = evaluate_eligibility(
        rules,
        ClaimantProfile(
            user_id=claimant.id,
            provider=request.provider,
            account_created_at=claimant.created_at,
        ),
        now,
    )
    if decision.denial == EligibilityDenial.PROVIDER_NOT_ALLOWED:
        raise ProviderNotAllowedError(
            request.provider, list(rules.allowed_providers),
            ErrorContext(benefit_token=token, user_id=claimant.id),
        )
    if decision.denial == EligibilityDenial.ACCOUNT_TOO_NEW:
        raise AccountTooNewError(
            decision.account_age_days or 0, rules.min_account_age_days,
            ErrorContext(benefit_token=token, user_id=claimant.id),
        )

    # 4. Existing claim (fast path; the unique constraint still guards step 6)
    if await store.find_claim_id(claimant.id, benefit.id) is not None:
        raise AlreadyClaimedError(token)

    # 5. Reserve one code with a conditional update
    reserved = await store.reserve_available_code(benefit.id, claimant.id, now)
    if reserved is None:
        if await store.count_available_codes(benefit.id) > 0:
            raise TransactionConflictError(
                "Available codes are held by concurrent claims",
                ErrorContext(benefit_token=token),
            )
        raise NoCodeAvailableError(token)
    code_id, code = reserved

    # 6. Claim row + counter
    try:
        await store.insert_claim(Claim(
            user_id=claimant.id,
            benefit_id=benefit.id,
            code_id=code_id,
            provider=request.provider,
            claimed_at=now,
            ip_address=request.network_address,
            user_agent=request.client_descriptor,
        ))
    except DuplicateClaimError:
        raise AlreadyClaimedError(token)
    claimed_count = await store.increment_claimed_count(benefit.id)
    if claimed_count is None:
        raise DatabaseError(
            "claimed_count would exceed total_count", "increment",
            ErrorContext(benefit_token=token),
        )

    return ClaimResult(
        code=code,
        code_id=code_id,
        claimed_at=now,
        provider=request.provider,
        benefit_token=benefit.link_token,
        benefit_title=benefit.title,
        benefit_description=benefit.description,
        claimed_count=claimed_count,
        total_count=benefit.total_count,
    )


class ClaimCoordinator:
    """Runs claim_in_transaction with retry on conflict and a per-attempt timeout."""

    def __init__(
        self,
        db_manager: DatabaseSessionManager,
        *,
        max_retries: int = 3,
        base_delay_ms: int = 20,
        max_delay_ms: int = 500,
        timeout_seconds: float = 10.0,
        isolation_level: str | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db_manager = db_manager
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.timeout_seconds = timeout_seconds
        self.isolation_level = isolation_level
        self.clock = clock

    @classmethod
    def from_settings(
        cls, db_manager: DatabaseSessionManager, settings: Settings,
    ) -> "ClaimCoordinator":
        return cls(
            db_manager,
            max_retries=settings.claim_max_retries,
            base_delay_ms=settings.claim_retry_base_delay_ms,
            max_delay_ms=settings.claim_retry_max_delay_ms,
            timeout_seconds=settings.claim_transaction_timeout_seconds,
            isolation_level=settings.claim_isolation_level,
        )

    async def claim(self, request: ClaimRequest) -> ClaimResult:
        """Claim one code for request.claimant_id from request.link_token."""
        log_extra = {
            "benefit_token": request.link_token,
            "user_id": request.claimant_id,
            "provider": request.provider,
        }
        for attempt in range(self.max_retries + 1):
            try:
                result = await asyncio.wait_for(
                    self._attempt(request), timeout=self.timeout_seconds,
                )
            except TransactionConflictError as e:
                await self._handle_conflict(e, attempt, log_extra)
                continue
            except asyncio.TimeoutError:
                logger.error(
                    f"Claim transaction timed out after {self.timeout_seconds}s",
                    extra={**log_extra, "attempt": attempt + 1},
                )
                raise TransactionTimeoutError(
                    self.timeout_seconds,
                    ErrorContext(benefit_token=request.link_token),
                )
            logger.info(
                "Claim succeeded",
                extra={**log_extra, "attempt": attempt + 1, "code_id": result.code_id},
            )
            return result
        # Unreachable: the last conflict is re-raised by _handle_conflict
        raise TransactionConflictError("Claim retries exhausted")

    async def _attempt(self, request: ClaimRequest) -> ClaimResult:
        async with self.db_manager.transaction(
            isolation_level=self.isolation_level,
            statement_timeout_ms=int(self.timeout_seconds * 1000),
        ) as db:
            return await claim_in_transaction(db, request, self.clock())

    async def _handle_conflict(
        self, e: TransactionConflictError, attempt: int, log_extra: dict,
    ) -> None:
        """Sleep before the next attempt, or re-raise once retries run out."""
        delay = self._backoff(attempt)
        if attempt >= self.max_retries:
            logger.warning(
                f"Claim conflict persisted after {self.max_retries} retries",
                extra={**log_extra, "attempt": attempt + 1, "error_code": e.code},
            )
            e.context.retry_after_ms = delay
            e.context.benefit_token = log_extra["benefit_token"]
            raise e
        logger.warning(
            f"Claim conflict, retry after {delay}ms: {e.message}",
            extra={**log_extra, "attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311
