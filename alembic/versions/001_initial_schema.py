"""Initial schema with print_jobs table

Revision ID: 001
Revises: 
Create Date: 2024-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE print_job_status AS ENUM ('pending', 'processing', 'done', 'failed');
        EXCEPTION
            WHEN duplicate_object THEN null;
        END $$;
    """)

    op.create_table(
        "print_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("dedup_key", sa.String(255), nullable=True),
        sa.Column("payload", sa.Text, nullable=False),
        sa.Column("target", sa.String(255), nullable=True),
        sa.Column(
            "status",
            postgresql.ENUM(
                "pending", "processing", "done", "failed",
                name="print_job_status",
                create_type=False,
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("tries", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("tries >= 0", name="ck_print_jobs_tries_non_negative"),
    )

    # NULL dedup keys never collide, so keyless jobs are unconstrained
    op.create_unique_constraint(
        "uq_print_jobs_dedup_key",
        "print_jobs",
        ["dedup_key"],
    )

    # Oldest-pending lookup for claims
    op.create_index(
        "ix_print_jobs_status_created",
        "print_jobs",
        ["status", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_print_jobs_status_created")
    op.drop_constraint("uq_print_jobs_dedup_key", "print_jobs")
    op.drop_table("print_jobs")
    op.execute("DROP TYPE IF EXISTS print_job_status")
