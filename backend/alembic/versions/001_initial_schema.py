"""Initial schema — citizens, procedures, debts, installment_plans, receipts.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "citizens",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("national_id", sa.String(8), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False, server_default=""),
        sa.Column("email", sa.String(200), nullable=False),
        sa.Column("phone", sa.String(30), nullable=False),
        sa.Column("address", sa.String(300), nullable=False, server_default=""),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_citizens_national_id", "citizens", ["national_id"])

    op.create_table(
        "procedures",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("file_number", sa.String(30), nullable=False, unique=True),
        sa.Column("citizen_id", sa.Integer, sa.ForeignKey("citizens.id"), nullable=False),
        sa.Column("type", sa.String(60), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("amount_due", sa.Numeric(12, 2), nullable=False),
        sa.Column("history", sa.JSON, nullable=False),
    )
    op.create_index("ix_procedures_citizen_id", "procedures", ["citizen_id"])

    op.create_table(
        "debts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("citizen_id", sa.Integer, sa.ForeignKey("citizens.id"), nullable=False),
        sa.Column("type", sa.String(60), nullable=False),
        sa.Column("base_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("late_interest", sa.Numeric(12, 2), nullable=False),
        sa.Column("period", sa.String(40), nullable=False),
        sa.Column("due_date", sa.Date, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
    )
    op.create_index("ix_debts_citizen_id", "debts", ["citizen_id"])

    op.create_table(
        "installment_plans",
        sa.Column(
            "debt_id", sa.Integer, sa.ForeignKey("debts.id"),
            primary_key=True, autoincrement=False,
        ),
        sa.Column("number_of_installments", sa.Integer, nullable=False),
        sa.Column("installment_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("installments", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "receipts",
        sa.Column("id", sa.String(40), primary_key=True),
        sa.Column("target_kind", sa.String(20), nullable=False),
        sa.Column("target_id", sa.Integer, nullable=False),
        sa.Column("method", sa.String(40), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_receipts_target_id", "receipts", ["target_id"])


def downgrade() -> None:
    op.drop_table("receipts")
    op.drop_table("installment_plans")
    op.drop_table("debts")
    op.drop_table("procedures")
    op.drop_table("citizens")
