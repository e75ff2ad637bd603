"""ORM Models — SQLAlchemy declarative models for persisted state.

Invariants:
    - All models inherit from Base (db/base.py)
    - counter_state is the only table; it holds one row

Design Decisions:
    - Models imported here so Base.metadata is populated for create_all and alembic
"""

from app.models.counter_state import CounterStateRecord  # noqa: F401
