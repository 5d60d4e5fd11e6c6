"""Procedure ORM — procedure row with its transition history.

Invariants:
    - file_number unique and immutable
    - history stored in the same row as status, so both change in one UPDATE

Design Decisions:
    - JSON column for history: entries are only ever appended and read whole
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Integer, Text, DateTime, Numeric, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from tramites.db.base import Base


class ProcedureRow(Base):
    __tablename__ = "procedures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    file_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    citizen_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("citizens.id"), nullable=False, index=True,
    )
    type: Mapped[str] = mapped_column(String(60), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    amount_due: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    history: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
