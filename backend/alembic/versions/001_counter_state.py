"""Counter state — single named row holding {year, last_issued}.

Revision ID: 001_counter_state
Revises: None
Create Date: 2025-01-06

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_counter_state"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "counter_state",
        sa.Column("name", sa.String(32), primary_key=True),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column("last_issued", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "last_issued >= 0", name="ck_counter_state_last_issued",
        ),
    )


def downgrade() -> None:
    op.drop_table("counter_state")
