"""Machine journeys, machine records and operators.

Revision ID: 001_machine_service_schema
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_machine_service_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create machine_journeys, machine_records and operators."""

    # --- machine_journeys ---
    op.create_table(
        "machine_journeys",
        sa.Column("barcode_id", sa.String(100), nullable=False),
        sa.Column(
            "current_workstation",
            sa.Integer(),
            nullable=True,
            comment="Station the machine is checked in to, if any",
        ),
        sa.Column(
            "completed_workstations",
            postgresql.JSONB(),
            nullable=False,
            comment="Stations finished, in order",
        ),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "end_time",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="Set on check-out from the final station",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("barcode_id"),
    )

    # --- machine_records ---
    op.create_table(
        "machine_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("barcode_id", sa.String(100), nullable=False),
        sa.Column("workstation", sa.Integer(), nullable=False),
        sa.Column("operator_name", sa.String(100), nullable=False),
        sa.Column("operator_epf", sa.String(20), nullable=False),
        sa.Column("checkin_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("checkout_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "wait_time_ms",
            sa.BigInteger(),
            nullable=True,
            comment="Estimated queue wait computed at check-in",
        ),
        sa.Column("tasks_completed", postgresql.JSONB(), nullable=False),
        sa.Column("total_tasks", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["barcode_id"], ["machine_journeys.barcode_id"], ondelete="CASCADE"),
    )
    op.create_index("ix_machine_records_barcode_id", "machine_records", ["barcode_id"])

    # --- operators ---
    op.create_table(
        "operators",
        sa.Column("epf_number", sa.String(20), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("epf_number"),
    )


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table("operators")
    op.drop_index("ix_machine_records_barcode_id", table_name="machine_records")
    op.drop_table("machine_records")
    op.drop_table("machine_journeys")
