"""problem sessions, submissions and score accounts

Revision ID: 4f2a9c1d7e30
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4f2a9c1d7e30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "problem_sessions",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("problem_text", sa.Text(), nullable=False),
        sa.Column("correct_answer", sa.Float(), nullable=False),
        sa.Column("difficulty", sa.String(length=16), nullable=False),
        sa.Column("topic", sa.String(length=32), nullable=False),
        sa.Column("hint", sa.Text(), nullable=False),
        sa.Column("solution_steps", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_problem_sessions"),
    )
    op.create_index("ix_problem_sessions_created_at", "problem_sessions", ["created_at"])

    op.create_table(
        "problem_submissions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("session_id", sa.String(length=32), nullable=False),
        sa.Column("account_id", sa.String(length=64), nullable=False),
        sa.Column("user_answer", sa.Float(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("score_delta", sa.Integer(), nullable=False),
        sa.Column("hint_used", sa.Boolean(), nullable=False),
        sa.Column("feedback_text", sa.Text(), nullable=False),
        sa.Column("feedback_fallback", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["session_id"],
            ["problem_sessions.id"],
            name="fk_problem_submissions_session_id_problem_sessions",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_problem_submissions"),
        sa.UniqueConstraint("session_id", name="uq_problem_submissions_session_id"),
    )
    op.create_index(
        "ix_problem_submissions_account_id", "problem_submissions", ["account_id"]
    )

    op.create_table(
        "score_accounts",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("total", sa.Integer(), nullable=False),
        sa.Column("submissions", sa.Integer(), nullable=False),
        sa.Column("correct", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_score_accounts"),
    )


def downgrade() -> None:
    op.drop_table("score_accounts")
    op.drop_index("ix_problem_submissions_account_id", table_name="problem_submissions")
    op.drop_table("problem_submissions")
    op.drop_index("ix_problem_sessions_created_at", table_name="problem_sessions")
    op.drop_table("problem_sessions")
