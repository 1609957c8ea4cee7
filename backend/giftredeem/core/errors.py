"""Error Hierarchy — typed, categorized exceptions for every GiftRedeem failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - retryable is True only for transaction conflicts and timeouts
    - Domain errors (400-level) never carry partial effects; the claim transaction
      is rolled back before any of them leaves the coordinator
    - to_response() produces the REST envelope; no internal details leaked

Design Decisions:
    - Single hierarchy with GiftRedeemError base: FastAPI global handler catches all (ADR: uniform error shape)
    - Lifecycle and eligibility denials are distinct classes so the delivery layer
      picks a status code and message without re-deriving the cause
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    BUSINESS_RULE = "business_rule"
    ELIGIBILITY = "eligibility"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    benefit_token: str | None = None
    user_id: int | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class GiftRedeemError(Exception):
    """Base exception for all GiftRedeem errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status
        self.retryable = retryable

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "retryable": self.retryable,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "benefit_token": self.context.benefit_token,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Request Errors (400-level) ─────────────────────────────────

class InvalidInputError(GiftRedeemError):
    """Malformed creation or status-update request."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_INPUT", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class UnauthenticatedError(GiftRedeemError):
    """No trusted identity reached the core, or the claimant is unknown."""
    def __init__(self, message: str = "Authentication required", context: ErrorContext | None = None):
        super().__init__(
            message, "UNAUTHENTICATED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class BenefitNotFoundError(GiftRedeemError):
    """Benefit does not exist, is deleted, or the caller does not own it."""
    def __init__(self, link_token: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.benefit_token = link_token
        super().__init__(
            f"Benefit '{link_token}' not found",
            "BENEFIT_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.INFO, ctx, 404,
        )


# ─── Lifecycle Denials ──────────────────────────────────────────

class BenefitPausedError(GiftRedeemError):
    """Benefit is paused by its creator."""
    def __init__(self, link_token: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.benefit_token = link_token
        super().__init__(
            "This benefit is temporarily paused",
            "BENEFIT_PAUSED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.INFO, ctx, 409,
        )


class BenefitExpiredError(GiftRedeemError):
    """Benefit expired by status or by expires_at."""
    def __init__(self, link_token: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.benefit_token = link_token
        super().__init__(
            "This benefit has expired",
            "BENEFIT_EXPIRED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.INFO, ctx, 410,
        )


# ─── Eligibility Denials ────────────────────────────────────────

class ProviderNotAllowedError(GiftRedeemError):
    """Claimant signed in with a provider outside the benefit's allowlist."""
    def __init__(
        self, provider: str, allowed: list[str], context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Your account provider '{provider}' is not allowed to claim this benefit",
            "PROVIDER_NOT_ALLOWED", ErrorCategory.ELIGIBILITY,
            ErrorSeverity.INFO, context, 403,
        )
        self.provider = provider
        self.allowed = allowed


class AccountTooNewError(GiftRedeemError):
    """Claimant account is younger than the benefit's minimum age."""
    def __init__(
        self, account_age_days: int, min_account_age_days: int,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Your account is too new to claim this benefit "
            f"({account_age_days} of {min_account_age_days} days)",
            "ACCOUNT_TOO_NEW", ErrorCategory.ELIGIBILITY,
            ErrorSeverity.INFO, context, 403,
        )
        self.account_age_days = account_age_days
        self.min_account_age_days = min_account_age_days


# ─── Claim Outcomes ─────────────────────────────────────────────

class AlreadyClaimedError(GiftRedeemError):
    """Claimant already holds a code from this benefit."""
    def __init__(self, link_token: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.benefit_token = link_token
        super().__init__(
            "You have already claimed this benefit",
            "ALREADY_CLAIMED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.INFO, ctx, 409,
        )


class NoCodeAvailableError(GiftRedeemError):
    """Inventory exhausted at claim time."""
    def __init__(self, link_token: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.benefit_token = link_token
        super().__init__(
            "No codes are left for this benefit",
            "NO_CODE_AVAILABLE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.INFO, ctx, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(GiftRedeemError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class TransactionConflictError(GiftRedeemError):
    """Concurrent transaction conflict (serialization failure, lock contention)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "TRANSACTION_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 503, retryable=True,
        )


class TransactionTimeoutError(GiftRedeemError):
    """Claim transaction did not commit within the configured timeout."""
    def __init__(self, timeout_seconds: float, context: ErrorContext | None = None):
        super().__init__(
            f"Claim transaction exceeded {timeout_seconds:g}s and was rolled back",
            "TRANSACTION_TIMEOUT", ErrorCategory.TIMEOUT,
            ErrorSeverity.ERROR, context, 503, retryable=True,
        )
        self.timeout_seconds = timeout_seconds
