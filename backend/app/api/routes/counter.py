"""Counter Routes — HTTP mapping for peek, next and the admin override.

Invariants:
    - GET /api/peek never mutates
    - POST /api/set requires the admin bearer token (checked before the body is parsed)
    - A malformed /api/set body is treated as {} (defaults apply), never a 400

Design Decisions:
    - Raw Request body for /api/set instead of a typed body parameter: FastAPI would
      turn bad JSON into a 400, but admin input is deliberately lenient
    - Routes contain no counter logic (delegate to CounterEngine)
"""

import json
import logging

from fastapi import APIRouter, Depends, Request

from app.api.auth import require_admin
from app.schemas.counter import (
    AdminSetRequest, AdminSetResponse, NextResponse, PeekResponse,
)
from app.services.counter_engine import CounterEngine, get_counter_engine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["counter"])


@router.get("/peek", response_model=PeekResponse)
async def peek(engine: CounterEngine = Depends(get_counter_engine)):
    """Show the number the next issuance would get."""
    return await engine.peek()


@router.post("/next", response_model=NextResponse)
async def issue_next(engine: CounterEngine = Depends(get_counter_engine)):
    """Issue the next case number."""
    return await engine.next()


@router.post(
    "/set",
    response_model=AdminSetResponse,
    dependencies=[Depends(require_admin)],
)
async def admin_set(
    request: Request, engine: CounterEngine = Depends(get_counter_engine),
):
    """Overwrite the counter (seeding / drift correction)."""
    body = await _read_json_object(request)
    return await engine.admin_set(AdminSetRequest.model_validate(body))


async def _read_json_object(request: Request) -> dict:
    raw = await request.body()
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        logger.warning("Ignoring malformed /api/set body")
        return {}
    return payload if isinstance(payload, dict) else {}
