"""Debt ORM — debts and their (at most one) installment plan.

Invariants:
    - total_amount is not stored; it is derived from base_amount + late_interest
    - installment_plans.debt_id is the primary key: one plan per debt
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Integer, Date, DateTime, Numeric, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from tramites.db.base import Base


class DebtRow(Base):
    __tablename__ = "debts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    citizen_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("citizens.id"), nullable=False, index=True,
    )
    type: Mapped[str] = mapped_column(String(60), nullable=False)
    base_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    late_interest: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    period: Mapped[str] = mapped_column(String(40), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")


class InstallmentPlanRow(Base):
    __tablename__ = "installment_plans"

    debt_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("debts.id"), primary_key=True, autoincrement=False,
    )
    number_of_installments: Mapped[int] = mapped_column(Integer, nullable=False)
    installment_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # Amounts as strings: exact cents survive the JSON round-trip.
    installments: Mapped[list] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
