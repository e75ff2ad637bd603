"""Counter Engine — serialized peek / next / admin_set over the single global counter.

Invariants:
    - Exactly one CounterEngine per process (created in lifespan, see get_counter_engine)
    - next and admin_set run their read-modify-write under one asyncio.Lock
    - Every write is a compare-and-swap against the state just read; a refused
      swap raises ConcurrencyError and nothing is retried here
    - peek never writes, not even a detected rollover
    - No state cached between calls: storage is authoritative on every operation

Design Decisions:
    - Impureim sandwich: load (IO) -> normalize/issue_next (pure core) -> swap (IO)
      (ADR: ExMA functional core, imperative shell)
    - Lock plus CAS: the lock serializes callers inside this process, the CAS
      catches writers in other processes sharing the database
    - Rollover detected by peek stays a projection; the next mutating call persists
      it together with its own write, in one statement
"""

import asyncio
import logging
from typing import Callable

from app.core.case_numbers import (
    MAX_COUNTER,
    CounterState,
    format_case_number,
    issue_next,
    normalize,
    proposed_next,
    two_digit_year,
)
from app.core.errors import (
    ConcurrencyError, ErrorContext, SequenceExhaustedError,
)
from app.core.repository_protocols import CounterRepository
from app.schemas.counter import (
    AdminSetRequest, AdminSetResponse, NextResponse, PeekResponse,
)

logger = logging.getLogger(__name__)


class CounterEngine:
    """The case number counter. All access to CounterState goes through here."""

    def __init__(
        self,
        repository: CounterRepository,
        current_year: Callable[[], int],
    ):
        self._repository = repository
        self._current_year = current_year
        self._lock = asyncio.Lock()

    async def peek(self) -> PeekResponse:
        stored = await self._repository.load()
        state = normalize(stored, self._current_year())
        proposed = proposed_next(state)
        year2 = two_digit_year(state.year)
        return PeekResponse(
            year=year2,
            last_issued=state.last_issued if state.has_issued else None,
            next=proposed,
            case_number=format_case_number(year2, proposed),
        )

    async def next(self) -> NextResponse:
        async with self._lock:
            stored = await self._repository.load()
            state = normalize(stored, self._current_year())
            if stored is not None and stored.year != state.year:
                logger.info(
                    f"Counter rolled over from {stored.year} to {state.year}",
                    extra={"previous_year": stored.year, "year": state.year},
                )
            if proposed_next(state) > MAX_COUNTER:
                raise SequenceExhaustedError(
                    state.year, ErrorContext(operation="next"),
                )
            issued = issue_next(state)
            if not await self._repository.compare_and_swap(stored, issued):
                raise ConcurrencyError(
                    "Counter changed while issuing a number; retry the request",
                    ErrorContext(operation="next"),
                )

        year2 = two_digit_year(issued.year)
        case_number = format_case_number(year2, issued.last_issued)
        logger.info(
            f"Issued case number {case_number}",
            extra={
                "year": issued.year,
                "counter": issued.last_issued,
                "case_number": case_number,
            },
        )
        return NextResponse(
            year=year2, counter=issued.last_issued, case_number=case_number,
        )

    async def admin_set(self, request: AdminSetRequest) -> AdminSetResponse:
        """Overwrite the counter. Bypasses rollover and first-issuance rules."""
        year, counter = request.resolve(self._current_year())
        new = CounterState(year=year, last_issued=counter)
        async with self._lock:
            await self._repository.overwrite(new)

        year2 = two_digit_year(year)
        logger.warning(
            f"Counter overridden to year={year} last_issued={counter}",
            extra={"year": year, "counter": counter},
        )
        return AdminSetResponse(
            ok=True,
            year=year2,
            counter=counter,
            case_number=format_case_number(year2, counter),
        )


# Singleton (initialized on startup)
_engine: CounterEngine | None = None


def init_counter_engine(
    repository: CounterRepository, current_year: Callable[[], int],
) -> CounterEngine:
    global _engine
    _engine = CounterEngine(repository, current_year)
    return _engine


def get_counter_engine() -> CounterEngine:
    """FastAPI dependency for the process-wide engine."""
    if _engine is None:
        raise RuntimeError("Counter engine not initialized")
    return _engine
