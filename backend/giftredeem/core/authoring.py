"""Benefit Authoring Rules — code cleaning, deduplication, and input validation.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - Codes are trimmed, blanks dropped, duplicates collapsed (case-sensitive)
    - First occurrence order is preserved; total_count == len(codes)
    - validate_authoring chains all checks — first violation wins

Design Decisions:
    - CleanedCodes reports how many inputs were dropped so the caller can tell
      the creator that total_count is lower than the submitted list
    - Violations returned as values (field + message); the service raises
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from giftredeem.core.clock import as_utc

MAX_TITLE_LENGTH = 200
MAX_CODE_LENGTH = 255


@dataclass(frozen=True)
class CleanedCodes:
    """Unique, trimmed codes plus what was discarded on the way."""
    codes: tuple[str, ...]
    submitted: int
    blank_discarded: int
    duplicates_collapsed: int

    @property
    def unique(self) -> int:
        return len(self.codes)


@dataclass(frozen=True)
class AuthoringViolation:
    field: str
    message: str


def clean_codes(raw_codes: list[str]) -> CleanedCodes:
    """Trim each code, drop empties, dedupe preserving first occurrence."""
    seen: dict[str, None] = {}
    blanks = 0
    for raw in raw_codes:
        code = raw.strip()
        if not code:
            blanks += 1
            continue
        seen.setdefault(code, None)
    non_blank = len(raw_codes) - blanks
    return CleanedCodes(
        codes=tuple(seen),
        submitted=len(raw_codes),
        blank_discarded=blanks,
        duplicates_collapsed=non_blank - len(seen),
    )


def clean_providers(raw_providers: list[str] | None) -> tuple[str, ...]:
    """Ordered set of provider names. Empty means every provider is allowed."""
    if not raw_providers:
        return ()
    seen: dict[str, None] = {}
    for raw in raw_providers:
        name = raw.strip()
        if name:
            seen.setdefault(name, None)
    return tuple(seen)


def resolve_expiry(
    explicit: datetime | None, now: datetime, lifetime_days: int,
) -> datetime:
    """Explicit expiry wins; otherwise now + lifetime_days."""
    if explicit is not None:
        return as_utc(explicit)
    return as_utc(now) + timedelta(days=lifetime_days)


def check_title(title: str) -> AuthoringViolation | None:
    if not title.strip():
        return AuthoringViolation("title", "title is required")
    if len(title.strip()) > MAX_TITLE_LENGTH:
        return AuthoringViolation(
            "title", f"title must be at most {MAX_TITLE_LENGTH} characters",
        )
    return None


def check_codes(cleaned: CleanedCodes, max_codes: int) -> AuthoringViolation | None:
    if cleaned.unique == 0:
        return AuthoringViolation("codes", "at least one non-empty code is required")
    if cleaned.unique > max_codes:
        return AuthoringViolation(
            "codes", f"at most {max_codes} codes per benefit",
        )
    too_long = [c for c in cleaned.codes if len(c) > MAX_CODE_LENGTH]
    if too_long:
        return AuthoringViolation(
            "codes", f"codes must be at most {MAX_CODE_LENGTH} characters",
        )
    return None


def check_min_account_age(min_account_age_days: int) -> AuthoringViolation | None:
    if min_account_age_days < 0:
        return AuthoringViolation(
            "min_account_age", "min_account_age cannot be negative",
        )
    return None


def check_expiry(expires_at: datetime, now: datetime) -> AuthoringViolation | None:
    if as_utc(expires_at) <= as_utc(now):
        return AuthoringViolation("expires_at", "expires_at must be in the future")
    return None


def validate_authoring(
    title: str,
    cleaned: CleanedCodes,
    min_account_age_days: int,
    expires_at: datetime,
    now: datetime,
    max_codes: int,
) -> AuthoringViolation | None:
    """Chain all authoring checks. Returns first violation or None."""
    return (
        check_title(title)
        or check_codes(cleaned, max_codes)
        or check_min_account_age(min_account_age_days)
        or check_expiry(expires_at, now)
    )


def build_claim_url(base_url: str, link_token: str) -> str:
    """External benefit address: {base_url}/claim/{link_token}."""
    return f"{base_url.rstrip('/')}/claim/{link_token}"
