"""Saksnummer API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery — ExMA anti-pattern)
    - Global error handlers map CaseNumberError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and the single CounterEngine created on startup via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - One SqlCounterRepository + one CounterEngine per process: every request for the
      counter goes to the same lock (ADR: single global sequence)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.routes import counter, health
from app.config import get_settings
from app.core.reference_clock import ReferenceClock
from app.infrastructure.counter_repository import SqlCounterRepository
from app.infrastructure.database import init_db
from app.infrastructure.observability import setup_logging
from app.services.counter_engine import init_counter_engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    init_counter_engine(
        SqlCounterRepository(manager),
        ReferenceClock(settings.reference_timezone),
    )
    if not settings.admin_token:
        logger.warning("ADMIN_TOKEN not set; /api/set will reject every call")
    logger.info(
        f"Saksnummer API started (reference timezone {settings.reference_timezone})",
    )
    yield
    await manager.dispose()
    logger.info("Saksnummer API shutting down")


app = FastAPI(
    title="Saksnummer API", version="1.0.0", lifespan=lifespan,
)

# CORS — configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=86400,
)

# Routes — explicit registration (ExMA: no convention-over-config)
app.include_router(health.router)
app.include_router(counter.router)

register_error_handlers(app)
