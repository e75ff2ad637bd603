"""Counter Schemas — Pydantic models for the peek/next/set API boundary.

Invariants:
    - `year` in every response is the two-digit string form
    - Wire names are camelCase (lastIssued, caseNumber); Python names are snake_case
    - AdminSetRequest never rejects input: invalid year/counter become None and
      resolve() substitutes the defaults (current year / 0)

Design Decisions:
    - mode="before" validators for leniency: coercion happens before Pydantic's own
      int validation, so "abc" or true never surface as RequestValidationError
    - Only JSON numbers count: numeric strings are treated as invalid, integral floats
      (199.0) are accepted
    - Values beyond the storage range (year > 9999, counter > 2^31-1) are invalid too
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.case_numbers import MAX_COUNTER, MAX_YEAR


def _lenient_int(value: Any, minimum: int, maximum: int) -> int | None:
    """Integer value of a JSON number, or None when absent/invalid/out of range."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or not minimum <= value <= maximum:
        return None
    return value


class AdminSetRequest(BaseModel):
    """Admin override body: {year?: number, counter?: number}."""
    model_config = ConfigDict(extra="ignore")

    year: int | None = None
    counter: int | None = None

    @field_validator("year", mode="before")
    @classmethod
    def lenient_year(cls, v: Any) -> int | None:
        return _lenient_int(v, minimum=1, maximum=MAX_YEAR)

    @field_validator("counter", mode="before")
    @classmethod
    def lenient_counter(cls, v: Any) -> int | None:
        return _lenient_int(v, minimum=0, maximum=MAX_COUNTER)

    def resolve(self, current_year: int) -> tuple[int, int]:
        """(year, counter) with defaults applied."""
        year = self.year if self.year is not None else current_year
        counter = self.counter if self.counter is not None else 0
        return year, counter


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PeekResponse(_CamelModel):
    """What the next issuance would return, without consuming it."""
    year: str
    last_issued: int | None = Field(alias="lastIssued")
    next: int
    case_number: str = Field(alias="caseNumber")


class NextResponse(_CamelModel):
    """A freshly issued case number."""
    year: str
    counter: int
    case_number: str = Field(alias="caseNumber")


class AdminSetResponse(_CamelModel):
    """Result of an admin override; counter is the new last-issued value."""
    ok: bool = True
    year: str
    counter: int
    case_number: str = Field(alias="caseNumber")
