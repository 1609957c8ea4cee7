"""Benefit Routes — HTTP tests for create, list, status, claims, and inventory.

Tests cover:
    - POST /benefits returns 201 with claim_url and authoring report
    - missing identity is 401; business-rule violations are 400 INVALID_INPUT
    - internal ids never appear in responses
    - status transition owner-only (404 for others), 400 for bad values
    - claims and inventory listings for the creator
"""

from giftredeem.config import Settings, get_settings
from giftredeem.main import app
from tests.services.seeding import auth


async def _create(client, creator, **overrides):
    body = {"title": "Coffee voucher", "codes": ["A", "a ", "A", "B"]}
    body.update(overrides)
    return await client.post("/api/v1/benefits", json=body, headers=auth(creator))


# ─── create ──────────────────────────────────────────────────────

async def test_create_benefit_returns_link_and_report(client, seed):
    creator = await seed.user()
    res = await _create(client, creator)

    assert res.status_code == 201
    data = res.json()
    benefit = data["benefit"]
    assert benefit["total_count"] == 3
    assert benefit["claimed_count"] == 0
    assert benefit["status"] == "active"
    assert benefit["claim_url"] == f"http://test/claim/{benefit['link_token']}"
    assert "id" not in benefit
    assert "creator_id" not in benefit
    assert data["report"] == {
        "submitted": 4, "unique": 3, "duplicates_collapsed": 1, "blank_discarded": 0,
    }


async def test_create_uses_public_base_url_when_configured(client, seed):
    creator = await seed.user()
    app.dependency_overrides[get_settings] = lambda: Settings(
        public_base_url="https://gifts.example.com/",
    )
    res = await _create(client, creator)
    token = res.json()["benefit"]["link_token"]
    assert res.json()["benefit"]["claim_url"] == f"https://gifts.example.com/claim/{token}"


async def test_create_without_identity_is_401(client, seed):
    res = await client.post("/api/v1/benefits", json={"title": "x", "codes": ["A"]})
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "UNAUTHENTICATED"


async def test_create_with_malformed_user_header_is_401(client, seed):
    res = await client.post(
        "/api/v1/benefits", json={"title": "x", "codes": ["A"]},
        headers={"X-User-Id": "not-a-number"},
    )
    assert res.status_code == 401


async def test_create_with_only_blank_codes_is_400(client, seed):
    creator = await seed.user()
    res = await _create(client, creator, codes=[" ", ""])
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_INPUT"


async def test_create_with_blank_title_is_400(client, seed):
    creator = await seed.user()
    res = await _create(client, creator, title="   ")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_INPUT"


async def test_create_with_wrong_shape_is_validation_error(client, seed):
    creator = await seed.user()
    res = await _create(client, creator, codes="A,B")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


# ─── list ────────────────────────────────────────────────────────

async def test_list_my_benefits(client, seed):
    alice = await seed.user()
    bob = await seed.user()
    await _create(client, alice, title="Mine")
    await _create(client, bob, title="Not mine")

    res = await client.get("/api/v1/benefits/my", headers=auth(alice))

    assert res.status_code == 200
    assert [b["title"] for b in res.json()] == ["Mine"]


# ─── status ──────────────────────────────────────────────────────

async def test_creator_pauses_benefit(client, seed):
    creator = await seed.user()
    token = await seed.benefit(creator, ["A"])

    res = await client.put(
        f"/api/v1/benefits/{token}/status", json={"status": "paused"},
        headers=auth(creator),
    )

    assert res.status_code == 200
    assert res.json()["status"] == "paused"


async def test_status_change_by_stranger_is_404(client, seed):
    creator = await seed.user()
    stranger = await seed.user()
    token = await seed.benefit(creator, ["A"])

    res = await client.put(
        f"/api/v1/benefits/{token}/status", json={"status": "deleted"},
        headers=auth(stranger),
    )

    assert res.status_code == 404
    assert res.json()["error"]["code"] == "BENEFIT_NOT_FOUND"


async def test_invalid_status_value_is_400(client, seed):
    creator = await seed.user()
    token = await seed.benefit(creator, ["A"])
    res = await client.put(
        f"/api/v1/benefits/{token}/status", json={"status": "archived"},
        headers=auth(creator),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_INPUT"


# ─── claims & inventory ──────────────────────────────────────────

async def test_creator_sees_claims_and_inventory(client, seed):
    creator = await seed.user()
    claimant = await seed.user("bob")
    token = await seed.benefit(creator, ["A", "B"])
    await client.post(f"/api/v1/claim/{token}", headers=auth(claimant))

    claims = await client.get(f"/api/v1/benefits/{token}/claims", headers=auth(creator))
    inventory = await client.get(f"/api/v1/benefits/{token}/inventory", headers=auth(creator))

    assert claims.status_code == 200
    assert claims.json()[0]["claimant_username"] == "bob"
    assert claims.json()[0]["code"] == "A"
    assert inventory.json()["by_status"]["claimed"] == 1
    assert inventory.json()["by_status"]["available"] == 1


async def test_claim_list_hidden_from_non_owner(client, seed):
    creator = await seed.user()
    token = await seed.benefit(creator, ["A"])
    res = await client.get(
        f"/api/v1/benefits/{token}/claims", headers=auth(await seed.user()),
    )
    assert res.status_code == 404
