"""Eligibility Evaluator — decides whether a claimant may claim a benefit.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Provider check runs before account-age check; first denial wins
    - Empty allowlist admits every provider; min age 0 disables the age rule
    - Account age is floor((now - created_at) / 1 day)

Design Decisions:
    - Return EligibilityDecision values (not exceptions): the coordinator maps a
      denial to its typed error, keeping this module free of transport concerns
    - claim_conditions are NOT evaluated here; they are stored metadata only
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from giftredeem.core.clock import as_utc


class EligibilityDenial(str, Enum):
    """Reasons a claimant can be refused by policy."""
    PROVIDER_NOT_ALLOWED = "provider_not_allowed"
    ACCOUNT_TOO_NEW = "account_too_new"


@dataclass(frozen=True)
class EligibilityRules:
    """Restriction fields copied from a Benefit."""
    allowed_providers: tuple[str, ...] = ()
    min_account_age_days: int = 0


@dataclass(frozen=True)
class ClaimantProfile:
    """What the identity layer tells us about the claimant for this session."""
    user_id: int
    provider: str
    account_created_at: datetime


@dataclass(frozen=True)
class EligibilityDecision:
    """Allow/deny verdict with the reason for a denial."""
    allowed: bool
    denial: EligibilityDenial | None = None
    account_age_days: int | None = None


ELIGIBLE = EligibilityDecision(allowed=True)


def account_age_days(account_created_at: datetime, now: datetime) -> int:
    """Whole days since account creation, floored."""
    return (as_utc(now) - as_utc(account_created_at)) // timedelta(days=1)


def check_provider(
    rules: EligibilityRules, provider: str,
) -> EligibilityDecision | None:
    """Rule 1: a non-empty allowlist must contain the session provider."""
    if rules.allowed_providers and provider not in rules.allowed_providers:
        return EligibilityDecision(
            allowed=False, denial=EligibilityDenial.PROVIDER_NOT_ALLOWED,
        )
    return None


def check_account_age(
    rules: EligibilityRules, account_created_at: datetime, now: datetime,
) -> EligibilityDecision | None:
    """Rule 2: account must be at least min_account_age_days old."""
    if rules.min_account_age_days <= 0:
        return None
    age = account_age_days(account_created_at, now)
    if age < rules.min_account_age_days:
        return EligibilityDecision(
            allowed=False,
            denial=EligibilityDenial.ACCOUNT_TOO_NEW,
            account_age_days=age,
        )
    return None


def evaluate_eligibility(
    rules: EligibilityRules, profile: ClaimantProfile, now: datetime,
) -> EligibilityDecision:
    """Chain all eligibility checks. Returns first denial or ELIGIBLE."""
    return (
        check_provider(rules, profile.provider)
        or check_account_age(rules, profile.account_created_at, now)
        or ELIGIBLE
    )
