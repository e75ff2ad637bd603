"""Counter routes — HTTP contract for /api/peek, /api/next, /api/set.

Invariants:
    - Response keys are camelCase and `year` is the two-digit string
    - /api/set without the bearer token is 401 and leaves the row untouched
    - Malformed /api/set input falls back to defaults, never 400
    - Unknown paths and wrong methods are 404 with the NOT_FOUND envelope
"""

import asyncio

from fastapi.exceptions import RequestValidationError

from app.api.error_handlers import _build_validation_error_response
from app.config import Settings, get_settings
from app.core.case_numbers import CounterState
from app.main import app
from app.services.counter_engine import CounterEngine, get_counter_engine
from tests.services.fakes import FixedYear, InMemoryCounterRepository


# ─── /api/peek ──────────────────────────────────────────────────

async def test_peek_on_fresh_database(client, sql_repo):
    res = await client.get("/api/peek")
    assert res.status_code == 200
    assert res.json() == {
        "year": "26", "lastIssued": None, "next": 1, "caseNumber": "26/000001",
    }
    assert await sql_repo.load() is None


async def test_peek_after_issuance(client):
    await client.post("/api/next")
    res = await client.get("/api/peek")
    assert res.json() == {
        "year": "26", "lastIssued": 1, "next": 2, "caseNumber": "26/000002",
    }


async def test_peek_projects_rollover_without_writing(client, sql_repo, clock):
    await sql_repo.overwrite(CounterState(2024, 500))
    clock.year = 2025
    res = await client.get("/api/peek")
    assert res.json() == {
        "year": "25", "lastIssued": None, "next": 200, "caseNumber": "25/000200",
    }
    assert await sql_repo.load() == CounterState(2024, 500)


# ─── /api/next ──────────────────────────────────────────────────

async def test_next_issues_sequential_numbers(client):
    first = await client.post("/api/next")
    second = await client.post("/api/next")
    assert first.status_code == 200
    assert first.json() == {"year": "26", "counter": 1, "caseNumber": "26/000001"}
    assert second.json() == {"year": "26", "counter": 2, "caseNumber": "26/000002"}


async def test_next_rolls_over_into_2025_exception(client, sql_repo, clock):
    await sql_repo.overwrite(CounterState(2024, 500))
    clock.year = 2025
    res = await client.post("/api/next")
    assert res.json() == {"year": "25", "counter": 200, "caseNumber": "25/000200"}
    assert await sql_repo.load() == CounterState(2025, 200)


async def test_concurrent_next_requests_never_repeat(client):
    responses = await asyncio.gather(
        *(client.post("/api/next") for _ in range(20)),
    )
    assert all(r.status_code == 200 for r in responses)
    assert sorted(r.json()["counter"] for r in responses) == list(range(1, 21))


# ─── /api/set ───────────────────────────────────────────────────

async def test_set_seeds_2025(client, sql_repo, clock, admin_headers):
    clock.year = 2025
    res = await client.post(
        "/api/set", json={"year": 2025, "counter": 199}, headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json() == {
        "ok": True, "year": "25", "counter": 199, "caseNumber": "25/000199",
    }
    nxt = await client.post("/api/next")
    assert nxt.json()["counter"] == 200


async def test_set_zero_then_next_is_one(client, admin_headers):
    await client.post("/api/next")
    await client.post("/api/next")
    await client.post(
        "/api/set", json={"year": 2026, "counter": 0}, headers=admin_headers,
    )
    res = await client.post("/api/next")
    assert res.json()["counter"] == 1


async def test_set_without_token_is_unauthorized(client, sql_repo):
    await sql_repo.overwrite(CounterState(2026, 12))
    res = await client.post("/api/set", json={"year": 2026, "counter": 0})
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "UNAUTHORIZED"
    assert res.headers["www-authenticate"] == "Bearer"
    assert await sql_repo.load() == CounterState(2026, 12)


async def test_set_with_wrong_token_is_unauthorized(client, sql_repo):
    await sql_repo.overwrite(CounterState(2026, 12))
    res = await client.post(
        "/api/set",
        json={"year": 2026, "counter": 0},
        headers={"Authorization": "Bearer wrong"},
    )
    assert res.status_code == 401
    assert await sql_repo.load() == CounterState(2026, 12)


async def test_set_with_non_bearer_scheme_is_unauthorized(client):
    res = await client.post(
        "/api/set", json={}, headers={"Authorization": "Basic czNjcmV0"},
    )
    assert res.status_code == 401


async def test_set_with_malformed_json_uses_defaults(client, sql_repo, admin_headers):
    res = await client.post(
        "/api/set",
        content=b"{not json",
        headers={**admin_headers, "Content-Type": "application/json"},
    )
    assert res.status_code == 200
    assert res.json() == {
        "ok": True, "year": "26", "counter": 0, "caseNumber": "26/000000",
    }
    assert await sql_repo.load() == CounterState(2026, 0)


async def test_set_with_empty_body_uses_defaults(client, admin_headers):
    res = await client.post("/api/set", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["counter"] == 0


async def test_set_with_non_object_body_uses_defaults(client, admin_headers):
    res = await client.post("/api/set", json=[2025, 199], headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["year"] == "26"


async def test_set_with_invalid_values_uses_defaults(client, admin_headers):
    res = await client.post(
        "/api/set", json={"year": "2025", "counter": -4}, headers=admin_headers,
    )
    assert res.json() == {
        "ok": True, "year": "26", "counter": 0, "caseNumber": "26/000000",
    }


async def test_set_rejected_when_admin_token_unset(client, sql_repo):
    app.dependency_overrides[get_settings] = lambda: Settings(admin_token="")
    res = await client.post(
        "/api/set", json={"counter": 5}, headers={"Authorization": "Bearer "},
    )
    assert res.status_code == 401
    assert await sql_repo.load() is None


async def test_set_with_oversized_counter_uses_default(client, sql_repo, admin_headers):
    res = await client.post(
        "/api/set", json={"year": 2026, "counter": 10**20}, headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["counter"] == 0
    assert await sql_repo.load() == CounterState(2026, 0)


async def test_set_with_oversized_year_uses_default(client, sql_repo, admin_headers):
    res = await client.post(
        "/api/set", json={"year": 1e300, "counter": 1}, headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["year"] == "26"
    assert await sql_repo.load() == CounterState(2026, 1)


async def test_set_with_largest_storable_counter(client, sql_repo, admin_headers):
    res = await client.post(
        "/api/set", json={"year": 2026, "counter": 2**31 - 1}, headers=admin_headers,
    )
    assert res.status_code == 200
    assert await sql_repo.load() == CounterState(2026, 2**31 - 1)

    exhausted = await client.post("/api/next")
    assert exhausted.status_code == 409
    assert exhausted.json()["error"]["code"] == "SEQUENCE_EXHAUSTED"
    assert await sql_repo.load() == CounterState(2026, 2**31 - 1)


# ─── Routing & errors ───────────────────────────────────────────

async def test_unknown_path_is_not_found(client):
    res = await client.get("/api/unknown")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "NOT_FOUND"


async def test_wrong_method_is_not_found(client):
    res = await client.get("/api/next")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "NOT_FOUND"


def test_validation_envelope_uses_validation_category():
    exc = RequestValidationError([
        {"loc": ("body", "year"), "msg": "bad", "type": "int_parsing"},
    ])
    body = _build_validation_error_response(exc)["error"]
    assert body["code"] == "VALIDATION_ERROR"
    assert body["category"] == "validation"
    assert body["details"] == [
        {"field": "body.year", "message": "bad", "type": "int_parsing"},
    ]


async def test_storage_failure_is_503(client):
    repo = InMemoryCounterRepository()
    repo.fail_writes = True
    app.dependency_overrides[get_counter_engine] = lambda: CounterEngine(
        repo, FixedYear(2026),
    )
    res = await client.post("/api/next")
    assert res.status_code == 503
    assert res.json()["error"]["code"] == "DATABASE_ERROR"


async def test_cors_preflight_allows_configured_origin(client):
    res = await client.options(
        "/api/next",
        headers={
            "Origin": "https://p12m.github.io",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert res.status_code == 200
    assert res.headers["access-control-allow-origin"] == "https://p12m.github.io"


# ─── Health ─────────────────────────────────────────────────────

async def test_liveness(client):
    res = await client.get("/api/health/")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


async def test_readiness_with_database(client):
    res = await client.get("/api/health/ready")
    assert res.status_code == 200
    assert res.json()["checks"]["database"] == "healthy"
