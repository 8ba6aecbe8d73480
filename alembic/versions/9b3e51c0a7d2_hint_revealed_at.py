"""record when a session's hint was revealed

Revision ID: 9b3e51c0a7d2
Revises: 4f2a9c1d7e30
Create Date: 2026-10-19 14:03:27.551904

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "9b3e51c0a7d2"
down_revision: Union[str, Sequence[str], None] = "4f2a9c1d7e30"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "problem_sessions",
        sa.Column("hint_revealed_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    with op.batch_alter_table("problem_sessions") as batch_op:
        batch_op.drop_column("hint_revealed_at")
