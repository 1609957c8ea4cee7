"""Request Dependencies — trusted identity headers, base URL, and service wiring.

Invariants:
    - The upstream identity layer has already authenticated the caller and
      forwards (X-User-Id, X-Auth-Provider); no credential check happens here
    - A missing or malformed X-User-Id on a protected route is UNAUTHENTICATED
    - A missing provider header becomes "unknown" (fails any non-empty allowlist)
    - X-User-Id must fit the INTEGER key range; a provider name longer than
      the claims.provider column is UNAUTHENTICATED

Design Decisions:
    - Header contract over in-process OAuth/JWT: identity provisioning is an
      external collaborator (ADR: engine receives (user_id, provider) only)
    - ClaimCoordinator built per request from the injected session manager
"""

from dataclasses import dataclass

from fastapi import Depends, Header, Request

from giftredeem.config import Settings, get_settings
from giftredeem.core.domain_types import (
    MAX_USER_ID, PROVIDER_MAX_LENGTH, UNKNOWN_PROVIDER, ProviderName, UserId,
)
from giftredeem.core.errors import UnauthenticatedError
from giftredeem.infrastructure.database import (
    DatabaseSessionManager, get_db_manager,
)
from giftredeem.services.claim_coordinator import ClaimCoordinator


@dataclass(frozen=True)
class Identity:
    """Authenticated caller: internal user id + provider of this login session."""
    user_id: UserId
    provider: ProviderName


def _parse_user_id(raw: str) -> UserId:
    try:
        user_id = int(raw.strip())
    except ValueError:
        raise UnauthenticatedError("Invalid X-User-Id header")
    if not 0 < user_id <= MAX_USER_ID:
        raise UnauthenticatedError("Invalid X-User-Id header")
    return UserId(user_id)


def _parse_provider(raw: str | None) -> ProviderName:
    provider = (raw or "").strip() or UNKNOWN_PROVIDER
    if len(provider) > PROVIDER_MAX_LENGTH:
        raise UnauthenticatedError("Invalid X-Auth-Provider header")
    return ProviderName(provider)


async def optional_identity(
    x_user_id: str | None = Header(None),
    x_auth_provider: str | None = Header(None),
) -> Identity | None:
    """Identity when headers are present, None for anonymous visitors."""
    if not x_user_id or not x_user_id.strip():
        return None
    return Identity(
        user_id=_parse_user_id(x_user_id),
        provider=_parse_provider(x_auth_provider),
    )


async def require_identity(
    identity: Identity | None = Depends(optional_identity),
) -> Identity:
    if identity is None:
        raise UnauthenticatedError()
    return identity


def resolve_base_url(
    request: Request, settings: Settings = Depends(get_settings),
) -> str:
    """Public base URL for claim links; falls back to the request's own."""
    return (settings.public_base_url or str(request.base_url)).rstrip("/")


def get_claim_coordinator(
    manager: DatabaseSessionManager = Depends(get_db_manager),
    settings: Settings = Depends(get_settings),
) -> ClaimCoordinator:
    return ClaimCoordinator.from_settings(manager, settings)
