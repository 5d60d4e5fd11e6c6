"""Citizen ORM — append-only identity records.

Invariants:
    - id issued by the repository (no autoincrement), immutable
    - national_id is exactly 8 characters and indexed (not unique)
"""

from datetime import datetime

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from tramites.db.base import Base


class CitizenRow(Base):
    __tablename__ = "citizens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    national_id: Mapped[str] = mapped_column(String(8), nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    address: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
