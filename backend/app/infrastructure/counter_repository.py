"""SQL Counter Repository — CounterRepository over the counter_state table.

Invariants:
    - One session (one transaction) per method call; nothing cached between calls
    - compare_and_swap writes only when the row still matches `expected`
    - A refused swap commits nothing

Design Decisions:
    - Conditional UPDATE ... WHERE year = :old AND last_issued = :old over SELECT FOR UPDATE:
      works the same on PostgreSQL and SQLite, and rowcount tells us if we won
    - Insert race resolved by the primary key: IntegrityError on the insert path
      is the "someone else created it first" signal, not a storage failure
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from app.core.case_numbers import CounterState
from app.infrastructure.database import DatabaseSessionManager
from app.models.counter_state import CounterStateRecord, COUNTER_NAME

logger = logging.getLogger(__name__)


class SqlCounterRepository:
    """Counter persistence through DatabaseSessionManager sessions."""

    def __init__(self, db: DatabaseSessionManager, name: str = COUNTER_NAME):
        self._db = db
        self._name = name

    async def load(self) -> CounterState | None:
        async with self._db.session() as session:
            result = await session.execute(
                select(CounterStateRecord).where(
                    CounterStateRecord.name == self._name,
                ),
            )
            record = result.scalar_one_or_none()
            return record.to_state() if record else None

    async def compare_and_swap(
        self, expected: CounterState | None, new: CounterState,
    ) -> bool:
        if expected is None:
            return await self._insert_if_absent(new)
        async with self._db.session() as session:
            result = await session.execute(
                update(CounterStateRecord)
                .where(
                    CounterStateRecord.name == self._name,
                    CounterStateRecord.year == expected.year,
                    CounterStateRecord.last_issued == expected.last_issued,
                )
                .values(year=new.year, last_issued=new.last_issued)
                .execution_options(synchronize_session=False),
            )
            if result.rowcount != 1:
                await session.rollback()
                return False
            await session.commit()
            return True

    async def overwrite(self, new: CounterState) -> None:
        async with self._db.session() as session:
            record = await session.get(CounterStateRecord, self._name)
            if record is None:
                session.add(CounterStateRecord(
                    name=self._name, year=new.year, last_issued=new.last_issued,
                ))
            else:
                record.year = new.year
                record.last_issued = new.last_issued
            await session.commit()

    async def _insert_if_absent(self, new: CounterState) -> bool:
        async with self._db.session() as session:
            session.add(CounterStateRecord(
                name=self._name, year=new.year, last_issued=new.last_issued,
            ))
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logger.warning("Counter record created concurrently")
                return False
            return True
