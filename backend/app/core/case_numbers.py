"""Case Number Rules — pure rollover, first-issuance and formatting logic.

Invariants:
    - CounterState.last_issued is never negative; 0 means nothing issued this year
    - normalize() is the only place a stale year is reset
    - First issuance comes from HISTORICAL_FIRST_ISSUANCE, falling back to 1
    - Case numbers are always "YY/NNNNNN" (two-digit year, six-digit sequence)

Design Decisions:
    - Frozen dataclass: engine compares loaded vs. written state for compare-and-swap,
      so states must be values, not mutable records
    - Seed table over an inline `if year == ...`: one-off exceptions stay additive
      and auditable (ADR: future seeds go through adminSet, not code)
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


# ─── Historical Seed Data ───────────────────────────────────────

# Numbers 1-199 for 2025 were issued by hand before the service existed.
HISTORICAL_FIRST_ISSUANCE: Mapping[int, int] = MappingProxyType({2025: 200})

DEFAULT_FIRST_ISSUANCE = 1
SEQUENCE_WIDTH = 6

# Both columns of counter_state are 32-bit INTEGER.
MAX_COUNTER = 2_147_483_647
MAX_YEAR = 9999


@dataclass(frozen=True)
class CounterState:
    """The single global counter: year plus last number handed out."""
    year: int
    last_issued: int = 0

    def __post_init__(self):
        if not 0 <= self.last_issued <= MAX_COUNTER:
            raise ValueError(
                f"last_issued must be in 0..{MAX_COUNTER}, got {self.last_issued}",
            )

    @property
    def has_issued(self) -> bool:
        return self.last_issued > 0


def first_number_for_year(
    year: int,
    seeds: Mapping[int, int] = HISTORICAL_FIRST_ISSUANCE,
) -> int:
    """First sequence number handed out in a year with nothing issued yet."""
    return seeds.get(year, DEFAULT_FIRST_ISSUANCE)


def two_digit_year(year: int) -> str:
    return f"{year % 100:02d}"


def format_case_number(year2: str, number: int) -> str:
    return f"{year2}/{number:0{SEQUENCE_WIDTH}d}"


def normalize(state: CounterState | None, current_year: int) -> CounterState:
    """Apply lazy creation and year rollover.

    Missing state defaults to the current year with nothing issued. State
    from any other year is discarded, so the previous year's sequence is
    never reachable again.
    """
    if state is None or state.year != current_year:
        return CounterState(year=current_year, last_issued=0)
    return state


def proposed_next(state: CounterState) -> int:
    """Number the next issuance would return, without consuming it."""
    if not state.has_issued:
        return first_number_for_year(state.year)
    return state.last_issued + 1


def issue_next(state: CounterState) -> CounterState:
    """State after issuing one number (last_issued becomes the issued value)."""
    return CounterState(year=state.year, last_issued=proposed_next(state))
