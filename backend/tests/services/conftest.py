"""Service test fixtures — in-memory repository, SQL-backed engine, FastAPI test client.

Invariants:
    - get_counter_engine overridden with an engine on the test DB and a fixed year
    - get_settings overridden so the admin token is known to the test
    - db_manager patched so the readiness check sees the test DB

Design Decisions:
    - Fixed year clock instead of freezing time: rollover tests just assign .year
    - Lifespan is not run by ASGITransport, so the engine singleton is never built here
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app.config import Settings, get_settings
from app.infrastructure.counter_repository import SqlCounterRepository
import app.infrastructure.database as db_module
from app.main import app
from app.services.counter_engine import CounterEngine, get_counter_engine
from tests.services.fakes import FixedYear, InMemoryCounterRepository

ADMIN_TOKEN = "s3cret-admin"


@pytest.fixture
def clock():
    return FixedYear(2026)


@pytest.fixture
def memory_repo():
    return InMemoryCounterRepository()


@pytest.fixture
def memory_engine(memory_repo, clock):
    return CounterEngine(memory_repo, clock)


@pytest.fixture
def sql_repo(test_db_manager):
    return SqlCounterRepository(test_db_manager)


@pytest.fixture
def sql_engine(sql_repo, clock):
    return CounterEngine(sql_repo, clock)


@pytest.fixture
async def client(sql_engine, test_db_manager):
    """FastAPI test client with the counter engine and settings overridden."""
    app.dependency_overrides[get_counter_engine] = lambda: sql_engine
    app.dependency_overrides[get_settings] = lambda: Settings(
        admin_token=ADMIN_TOKEN,
    )

    original_manager = db_module.db_manager
    db_module.db_manager = test_db_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}
