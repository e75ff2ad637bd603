"""CounterState ORM — the single named record holding {year, last_issued}.

Invariants:
    - Exactly one row is used, keyed by COUNTER_NAME
    - year and last_issued are read and written together, never column by column
    - last_issued >= 0 (CHECK constraint mirrors CounterState.__post_init__)

Design Decisions:
    - Named primary key over autoincrement id: "the" counter is addressable without a
      lookup, and a second insert for the same name fails on the key (ADR: single global sequence)
    - updated_at is bookkeeping only; the counter rules never read it
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.case_numbers import CounterState
from app.db.base import Base

COUNTER_NAME = "state"


class CounterStateRecord(Base):
    """Persisted counter, one row with name = COUNTER_NAME."""
    __tablename__ = "counter_state"
    __table_args__ = (
        CheckConstraint("last_issued >= 0", name="ck_counter_state_last_issued"),
    )

    name: Mapped[str] = mapped_column(String(32), primary_key=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    last_issued: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def to_state(self) -> CounterState:
        return CounterState(year=self.year, last_issued=self.last_issued)
