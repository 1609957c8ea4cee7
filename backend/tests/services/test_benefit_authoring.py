"""Benefit Authoring — tests for atomic benefit + inventory creation.

Tests cover:
    - ["A", "a ", "A", "B"] yields total_count 3 with codes A, a, B
    - new benefit is active, claimed_count 0, one available row per unique code
    - default expiry is lifetime_days after creation
    - InvalidInput for blank title, zero codes, past expiry, negative min age
    - unknown creator is rejected; nothing persisted on failure
    - a code row failing after the benefit row is flushed leaves no rows behind
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from giftredeem.core.errors import (
    DatabaseError, InvalidInputError, UnauthenticatedError,
)
from giftredeem.models.benefit import Benefit
from giftredeem.models.redemption_code import RedemptionCode
from giftredeem.services.benefit_authoring import BenefitAuthoring, CreateBenefitInput
from giftredeem.services.inventory_store import InventoryStore

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


async def _create(db_manager, creator_id, data, **kwargs):
    kwargs.setdefault("clock", lambda: NOW)
    async with db_manager.session() as db:
        return await BenefitAuthoring(db, **kwargs).create_benefit(creator_id, data)


async def _count(db_manager, model) -> int:
    async with db_manager.transaction() as db:
        return (await db.execute(select(func.count(model.id)))).scalar_one()


async def test_duplicate_codes_collapse_case_sensitively(db_manager, seed):
    creator = await seed.user()
    created = await _create(db_manager, creator, CreateBenefitInput(
        title="Gift", codes=["A", "a ", "A", "B"],
    ))

    assert created.benefit.total_count == 3
    assert created.report.submitted == 4
    assert created.report.unique == 3
    assert created.report.duplicates_collapsed == 1
    async with db_manager.transaction() as db:
        codes = (await db.execute(
            select(RedemptionCode.code)
            .where(RedemptionCode.benefit_id == created.benefit.id)
            .order_by(RedemptionCode.id),
        )).scalars().all()
    assert codes == ["A", "a", "B"]


async def test_new_benefit_starts_active_with_available_inventory(db_manager, seed):
    creator = await seed.user()
    created = await _create(db_manager, creator, CreateBenefitInput(
        title="  Gift  ", codes=["X", "Y"], allowed_providers=["github", " github"],
        min_account_age_days=7, claim_conditions={"note": "stored only"},
    ))

    snap = await seed.snapshot(created.benefit.link_token)
    assert snap.status == "active"
    assert snap.claimed_count == 0
    assert snap.total_count == 2
    assert created.benefit.title == "Gift"
    assert created.benefit.allowed_providers == ["github"]
    assert created.benefit.claim_conditions == {"note": "stored only"}
    assert len(created.benefit.link_token) == 36


async def test_default_expiry_is_lifetime_after_now(db_manager, seed):
    creator = await seed.user()
    created = await _create(
        db_manager, creator, CreateBenefitInput(title="Gift", codes=["A"]),
        lifetime_days=30,
    )
    assert created.benefit.expires_at == NOW + timedelta(days=30)


@pytest.mark.parametrize("data, field", [
    (CreateBenefitInput(title=" ", codes=["A"]), "title"),
    (CreateBenefitInput(title="Gift", codes=["", "  "]), "codes"),
    (CreateBenefitInput(title="Gift", codes=[]), "codes"),
    (CreateBenefitInput(title="Gift", codes=["A"], min_account_age_days=-1), "min_account_age"),
    (CreateBenefitInput(title="Gift", codes=["A"], expires_at=NOW - timedelta(days=1)), "expires_at"),
])
async def test_invalid_input_persists_nothing(db_manager, seed, data, field):
    creator = await seed.user()
    with pytest.raises(InvalidInputError) as exc_info:
        await _create(db_manager, creator, data)
    assert exc_info.value.field == field
    assert await _count(db_manager, Benefit) == 0
    assert await _count(db_manager, RedemptionCode) == 0


async def test_code_limit_enforced(db_manager, seed):
    creator = await seed.user()
    with pytest.raises(InvalidInputError):
        await _create(
            db_manager, creator,
            CreateBenefitInput(title="Gift", codes=["A", "B", "C"]), max_codes=2,
        )


async def test_unknown_creator_rejected(db_manager):
    with pytest.raises(UnauthenticatedError):
        await _create(db_manager, 4242, CreateBenefitInput(title="Gift", codes=["A"]))
    assert await _count(db_manager, Benefit) == 0


async def test_failed_code_insert_leaves_no_benefit(db_manager, seed, monkeypatch):
    creator = await seed.user()
    real = InventoryStore.add_benefit_with_codes

    async def last_code_violates_not_null(self, benefit, codes):
        await real(self, benefit, codes)
        self.db.add(RedemptionCode(benefit_id=benefit.id, code=None, status="available"))
        await self.db.flush()

    monkeypatch.setattr(
        InventoryStore, "add_benefit_with_codes", last_code_violates_not_null,
    )
    with pytest.raises(DatabaseError):
        await _create(
            db_manager, creator, CreateBenefitInput(title="Gift", codes=["A", "B"]),
        )

    assert await _count(db_manager, Benefit) == 0
    assert await _count(db_manager, RedemptionCode) == 0
