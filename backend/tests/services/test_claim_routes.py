"""Claim Routes — HTTP tests for the claim page, claiming, and my claims.

Tests cover:
    - POST /claim/{token} returns the code; repeat is 409 ALREADY_CLAIMED
    - error codes and statuses for paused, expired, provider, age, depleted, unknown
    - missing provider header counts as "unknown"
    - oversized User-Agent is clipped, oversized provider or user id is 401
    - GET /claim/{token} works anonymously and personalizes claim_status
    - GET /claims/my lists the caller's codes
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from giftredeem.models.claim import Claim
from tests.services.seeding import auth


# ─── claim ───────────────────────────────────────────────────────

async def test_claim_returns_code(client, seed):
    creator = await seed.user()
    claimant = await seed.user()
    token = await seed.benefit(creator, ["GIFT-1"], title="Coffee")

    res = await client.post(
        f"/api/v1/claim/{token}",
        headers={**auth(claimant), "User-Agent": "pytest-agent"},
    )

    assert res.status_code == 200
    data = res.json()
    assert data["code"] == "GIFT-1"
    assert data["benefit_token"] == token
    assert data["claimed_count"] == 1
    assert data["provider"] == "github"


async def test_second_claim_is_409_already_claimed(client, seed):
    creator = await seed.user()
    claimant = await seed.user()
    token = await seed.benefit(creator, ["A", "B"])
    await client.post(f"/api/v1/claim/{token}", headers=auth(claimant))

    res = await client.post(f"/api/v1/claim/{token}", headers=auth(claimant))

    assert res.status_code == 409
    assert res.json()["error"]["code"] == "ALREADY_CLAIMED"


async def test_depleted_is_409_no_code_available(client, seed):
    creator = await seed.user()
    token = await seed.benefit(creator, ["ONLY"])
    await client.post(f"/api/v1/claim/{token}", headers=auth(await seed.user()))

    res = await client.post(f"/api/v1/claim/{token}", headers=auth(await seed.user()))

    assert res.status_code == 409
    assert res.json()["error"]["code"] == "NO_CODE_AVAILABLE"
    assert res.json()["error"]["retryable"] is False


async def test_paused_is_409(client, seed):
    creator = await seed.user()
    token = await seed.benefit(creator, ["A"], status="paused")
    res = await client.post(f"/api/v1/claim/{token}", headers=auth(await seed.user()))
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "BENEFIT_PAUSED"


async def test_expired_is_410(client, seed):
    creator = await seed.user()
    token = await seed.benefit(
        creator, ["A"], expires_at=datetime.now(timezone.utc) - timedelta(days=1),
    )
    res = await client.post(f"/api/v1/claim/{token}", headers=auth(await seed.user()))
    assert res.status_code == 410
    assert res.json()["error"]["code"] == "BENEFIT_EXPIRED"


async def test_unknown_token_is_404(client, seed):
    res = await client.post("/api/v1/claim/missing", headers=auth(await seed.user()))
    assert res.status_code == 404


async def test_provider_not_allowed_is_403(client, seed):
    creator = await seed.user()
    token = await seed.benefit(creator, ["A"], allowed_providers=["github"])
    res = await client.post(
        f"/api/v1/claim/{token}", headers=auth(await seed.user(), provider="google"),
    )
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "PROVIDER_NOT_ALLOWED"


async def test_missing_provider_header_is_unknown_provider(client, seed):
    creator = await seed.user()
    claimant = await seed.user()
    token = await seed.benefit(creator, ["A"], allowed_providers=["github"])
    res = await client.post(
        f"/api/v1/claim/{token}", headers={"X-User-Id": str(claimant)},
    )
    assert res.status_code == 403


async def test_account_too_new_is_403(client, seed):
    creator = await seed.user()
    newcomer = await seed.user(created_at=datetime.now(timezone.utc))
    token = await seed.benefit(creator, ["A"], min_account_age_days=10)
    res = await client.post(f"/api/v1/claim/{token}", headers=auth(newcomer))
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "ACCOUNT_TOO_NEW"


async def test_claim_without_identity_is_401(client, seed):
    creator = await seed.user()
    token = await seed.benefit(creator, ["A"])
    res = await client.post(f"/api/v1/claim/{token}")
    assert res.status_code == 401


async def test_long_user_agent_is_clipped_not_refused(client, seed, db_manager):
    creator = await seed.user()
    claimant = await seed.user()
    token = await seed.benefit(creator, ["A"])

    res = await client.post(
        f"/api/v1/claim/{token}",
        headers={**auth(claimant), "User-Agent": "Mozilla/5.0 " + "x" * 600},
    )

    assert res.status_code == 200
    async with db_manager.session() as db:
        user_agent = (await db.execute(select(Claim.user_agent))).scalar_one()
    assert len(user_agent) == 500
    assert user_agent.startswith("Mozilla/5.0 ")


async def test_oversized_provider_is_401(client, seed):
    creator = await seed.user()
    token = await seed.benefit(creator, ["A"])
    res = await client.post(
        f"/api/v1/claim/{token}",
        headers=auth(await seed.user(), provider="g" * 51),
    )
    assert res.status_code == 401
    assert (await seed.snapshot(token)).claims == 0


@pytest.mark.parametrize("raw_id", ["9" * 25, "2147483648", "0", "-3", "abc"])
async def test_out_of_range_user_id_is_401(client, seed, raw_id):
    creator = await seed.user()
    token = await seed.benefit(creator, ["A"])
    res = await client.post(
        f"/api/v1/claim/{token}",
        headers={"X-User-Id": raw_id, "X-Auth-Provider": "github"},
    )
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "UNAUTHENTICATED"


# ─── claim page ──────────────────────────────────────────────────

async def test_claim_page_anonymous(client, seed):
    creator = await seed.user("alice", display_name="Alice")
    token = await seed.benefit(creator, ["A", "B"], title="Coffee")

    res = await client.get(f"/api/v1/claim/{token}")

    assert res.status_code == 200
    data = res.json()
    assert data["claim_status"] == "available"
    assert data["creator_name"] == "Alice"
    assert data["remaining"] == 2


async def test_claim_page_shows_claimed_to_claimant(client, seed):
    creator = await seed.user()
    claimant = await seed.user()
    token = await seed.benefit(creator, ["A", "B"])
    await client.post(f"/api/v1/claim/{token}", headers=auth(claimant))

    res = await client.get(f"/api/v1/claim/{token}", headers=auth(claimant))

    assert res.json()["claim_status"] == "claimed"
    assert res.json()["remaining"] == 1


async def test_claim_page_of_deleted_benefit_is_404(client, seed):
    creator = await seed.user()
    token = await seed.benefit(creator, ["A"], status="deleted")
    res = await client.get(f"/api/v1/claim/{token}")
    assert res.status_code == 404


# ─── my claims ───────────────────────────────────────────────────

async def test_my_claims_lists_codes(client, seed):
    creator = await seed.user()
    claimant = await seed.user()
    token = await seed.benefit(creator, ["MINE"], title="Coffee")
    await client.post(f"/api/v1/claim/{token}", headers=auth(claimant))

    res = await client.get("/api/v1/claims/my", headers=auth(claimant))

    assert res.status_code == 200
    assert res.json()[0]["code"] == "MINE"
    assert res.json()[0]["benefit"]["link_token"] == token
    assert res.json()[0]["benefit"]["title"] == "Coffee"


# ─── health ──────────────────────────────────────────────────────

async def test_health_and_readiness(client):
    assert (await client.get("/api/v1/health/")).status_code == 200
    ready = await client.get("/api/v1/health/ready")
    assert ready.status_code == 200
    assert ready.json()["checks"]["database"] == "healthy"
