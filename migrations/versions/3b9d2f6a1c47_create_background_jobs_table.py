"""create background_jobs table

Revision ID: 3b9d2f6a1c47
Revises:
Create Date: 2026-10-19 09:12:40.118204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3b9d2f6a1c47"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "background_jobs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "attempts",
            sa.Integer,
            nullable=False,
            server_default="0",
            comment="Number of times the job has been claimed",
        ),
        sa.Column(
            "handler",
            sa.Text,
            nullable=False,
            comment="JSON of the job name, path and args",
        ),
        sa.Column("queue", sa.Text, nullable=False),
        sa.Column(
            "priority", sa.Integer, nullable=False, comment="Lower is higher priority"
        ),
        sa.Column(
            "run_at",
            sa.TIMESTAMP(timezone=True),
            nullable=True,
            comment="Earliest time the job may be claimed",
        ),
        # Worker coordination fields
        sa.Column(
            "locked_at",
            sa.TIMESTAMP(timezone=True),
            nullable=True,
            comment="When job was locked by worker",
        ),
        sa.Column(
            "locked_by",
            sa.Text,
            nullable=True,
            comment="Worker process that locked the job",
        ),
        # Outcome fields
        sa.Column(
            "last_error",
            sa.Text,
            nullable=True,
            comment="Last error message and traceback",
        ),
        sa.Column(
            "failed_at",
            sa.TIMESTAMP(timezone=True),
            nullable=True,
            comment="Set once the job has exhausted its attempts",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # Claim query orders by priority then run_at
    op.create_index(
        "ix_background_jobs_priority_run_at", "background_jobs", ["priority", "run_at"]
    )
    op.create_index("ix_background_jobs_queue", "background_jobs", ["queue"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_background_jobs_queue", table_name="background_jobs")
    op.drop_index("ix_background_jobs_priority_run_at", table_name="background_jobs")
    op.drop_table("background_jobs")
