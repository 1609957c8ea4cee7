"""Service test fixtures — file-backed SQLite manager, seeder, FastAPI test client.

Invariants:
    - Every test gets a fresh SQLite database file under tmp_path
    - db_manager module singleton patched for routes and restored afterwards

Design Decisions:
    - File database instead of :memory: so concurrent sessions get separate
      connections and really contend (ADR: in-memory SQLite shares one connection)
    - ASGITransport skips the lifespan, so the patched manager is never replaced
"""

import pytest
from httpx import ASGITransport, AsyncClient

import giftredeem.infrastructure.database as db_module
import giftredeem.models  # noqa: F401
from giftredeem.db.base import Base
from giftredeem.infrastructure.database import DatabaseSessionManager
from giftredeem.main import app
from tests.services.seeding import Seeder


@pytest.fixture
async def db_manager(tmp_path):
    manager = DatabaseSessionManager(
        f"sqlite+aiosqlite:///{tmp_path / 'giftredeem_test.db'}",
    )
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    await manager.dispose()


@pytest.fixture
def seed(db_manager) -> Seeder:
    return Seeder(db_manager)


@pytest.fixture
async def client(db_manager):
    """FastAPI test client bound to the per-test database."""
    original_manager = db_module.db_manager
    db_module.db_manager = db_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
