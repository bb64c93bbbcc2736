"""add worker_locks table

Revision ID: 9d81e47c05aa
Revises: 3f2a9c1d7b40
Create Date: 2026-10-02 14:40:07.518339

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "9d81e47c05aa"
down_revision: Union[str, Sequence[str], None] = "3f2a9c1d7b40"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Named lock rows, used instead of advisory locks on SQLite."""
    op.create_table(
        "worker_locks",
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("holder", sa.String(), nullable=False),
        sa.Column("acquired_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("name"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("worker_locks")
